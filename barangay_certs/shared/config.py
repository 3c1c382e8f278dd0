from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from ..models import CertificateContentData, OfficialInfo


def configured_official(config: Mapping[str, Any], override: Any = None) -> OfficialInfo:
    """Signing official from ``override`` with blanks filled from app config."""
    supplied = OfficialInfo.from_mapping(override if isinstance(override, Mapping) else None)
    return OfficialInfo(
        name=supplied.name or config.get("OFFICIAL_NAME", ""),
        position=supplied.position or config.get("OFFICIAL_POSITION", ""),
    )


def with_configured_signature(
    data: CertificateContentData, config: Mapping[str, Any]
) -> CertificateContentData:
    url = config.get("SIGNATURE_URL") or ""
    if not url:
        return data
    return replace(data, has_signature=True, signature_url=url)


def seal_url(config: Mapping[str, Any]) -> str | None:
    return config.get("SEAL_IMAGE_URL") or None
