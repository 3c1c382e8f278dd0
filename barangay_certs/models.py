from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Any, Mapping


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def as_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass(frozen=True)
class CertificateContentData:
    """One certificate instance as supplied by the requesting workflow."""

    id: str
    type: str
    requested_by: str
    purpose: str
    generated_on: str
    age: str = ""
    address: str = ""
    occupation: str = ""
    income: str = ""
    income_year: str = ""
    job_title: str = ""
    employment_period: str = ""
    business_name: str = ""
    business_location: str = ""
    closure_date: str = ""
    closure_reason: str = ""
    relationship: str = ""
    non_residence_duration: str = ""
    support_details: str = ""
    allowance_amount: str = ""
    signature_url: str = ""
    has_signature: bool = False

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "CertificateContentData":
        """Build from camelCase or snake_case keys; unknown keys are ignored."""
        normalized: dict[str, Any] = {}
        for key, value in (mapping or {}).items():
            normalized[_snake_case(str(key))] = value
        values: dict[str, Any] = {}
        for field in fields(cls):
            raw = normalized.get(field.name)
            if field.name == "has_signature":
                values[field.name] = as_flag(raw)
            else:
                values[field.name] = _as_text(raw)
        return cls(**values)


@dataclass(frozen=True)
class OfficialInfo:
    name: str
    position: str

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "OfficialInfo":
        mapping = mapping or {}
        return cls(
            name=_as_text(mapping.get("name")),
            position=_as_text(mapping.get("position")),
        )
