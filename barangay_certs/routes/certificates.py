from __future__ import annotations

from dataclasses import replace
from io import BytesIO

from flask import Blueprint, Response, current_app, jsonify, request, send_file

from ..models import CertificateContentData, as_flag
from ..services.certificate_pdf import certificate_filename, generate_document
from ..services.certificates_preview import (
    build_printable_certificate_html,
    create_preview_markup,
)
from ..services.images import ImageFetcher, http_fetcher
from ..shared.certificate_templates import (
    get_certificate_template_config,
    list_certificate_templates,
)
from ..shared.config import configured_official, seal_url, with_configured_signature

bp = Blueprint("certificates", __name__, url_prefix="/certificates")


def _read_request():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None
    data = replace(
        CertificateContentData.from_mapping(payload), signature_url="", has_signature=False
    )
    if as_flag(payload.get("includeSignature")):
        data = with_configured_signature(data, current_app.config)
    official = configured_official(current_app.config, payload.get("official"))
    return data, official


def _fetcher() -> ImageFetcher:
    """Remote and data: sources only, plus the image paths set in app config."""
    config = current_app.config
    timeout = config["SEAL_FETCH_TIMEOUT"]
    trusted = {s.strip() for s in (seal_url(config), config.get("SIGNATURE_URL")) if s}
    local = http_fetcher(timeout)
    remote = http_fetcher(timeout, allow_local=False)

    def fetch(source: str) -> bytes:
        if (source or "").strip() in trusted:
            return local(source)
        return remote(source)

    return fetch


def _invalid_payload():
    return jsonify({"error": "Request body must be a JSON object."}), 400


@bp.get("/templates")
def templates():
    return jsonify(
        {
            "templates": [
                {"id": template_id, "description": description}
                for template_id, description in list_certificate_templates()
            ]
        }
    )


@bp.post("/preview")
def preview():
    parsed = _read_request()
    if parsed is None:
        return _invalid_payload()
    data, official = parsed
    template = get_certificate_template_config(data.type)
    html = create_preview_markup(data, official, seal_url=seal_url(current_app.config))
    return jsonify(
        {"html": html, "template": template.id, "title": template.preview_description}
    )


@bp.post("/print")
def printable():
    parsed = _read_request()
    if parsed is None:
        return _invalid_payload()
    data, official = parsed
    html = build_printable_certificate_html(
        data, official, seal_url=seal_url(current_app.config)
    )
    return Response(html, mimetype="text/html")


@bp.post("/pdf")
def pdf():
    parsed = _read_request()
    if parsed is None:
        return _invalid_payload()
    data, official = parsed
    result = generate_document(
        data,
        official,
        seal_url=seal_url(current_app.config),
        fetcher=_fetcher(),
    )
    if not result.success:
        current_app.logger.error("[CERT-FAIL] id=%s %s", data.id, result.error)
        return jsonify({"error": result.error}), 500
    resp = send_file(
        BytesIO(result.pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=certificate_filename(data),
    )
    if result.warnings:
        resp.headers["X-Certificate-Warnings"] = " | ".join(result.warnings)
    return resp
