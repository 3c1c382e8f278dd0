from __future__ import annotations

import json
import os
import uuid
from datetime import date

import click
from flask import current_app
from flask.cli import with_appcontext

from .models import CertificateContentData
from .services.certificate_pdf import certificate_filename, generate_document
from .services.certificates_preview import build_printable_certificate_html
from .services.images import http_fetcher
from .shared.certificate_templates import list_certificate_templates
from .shared.config import configured_official, seal_url, with_configured_signature
from .shared.storage import certificate_output_path, write_atomic
from .shared.text_layout import resolve_issuance_date

_FIELD_OPTIONS = {
    "cert_type": "type",
    "name": "requestedBy",
    "purpose": "purpose",
    "address": "address",
    "issued_on": "generatedOn",
    "cert_id": "id",
}


def certificate_options(func):
    options = [
        click.option("--type", "cert_type", help="Certificate type, e.g. 'Certificate of Indigency'."),
        click.option("--name", "name", help="Requesting resident's full name."),
        click.option("--purpose", "purpose"),
        click.option("--address", "address"),
        click.option("--date", "issued_on", help="Issuance date, YYYY-MM-DD."),
        click.option("--id", "cert_id"),
        click.option(
            "--json",
            "json_path",
            type=click.Path(exists=True, dir_okay=False),
            help="JSON file with certificate fields; flags override it.",
        ),
        click.option("--official-name"),
        click.option("--official-position"),
        click.option("--signature", is_flag=True, help="Include the configured signature."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _certificate_from_options(json_path, signature, **fields):
    payload: dict = {}
    if json_path:
        with open(json_path, encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise click.UsageError(f"{json_path} must contain a JSON object")
        payload.update(loaded)
    for option, key in _FIELD_OPTIONS.items():
        if fields.get(option) is not None:
            payload[key] = fields[option]
    payload.setdefault("id", f"CLI-{uuid.uuid4().hex[:8].upper()}")
    payload.setdefault("generatedOn", date.today().isoformat())
    if not payload.get("type") or not payload.get("requestedBy"):
        raise click.UsageError("Certificate type and requester name are required")

    data = CertificateContentData.from_mapping(payload)
    if signature:
        data = with_configured_signature(data, current_app.config)
    official = configured_official(
        current_app.config,
        {"name": fields.get("official_name"), "position": fields.get("official_position")},
    )
    return data, official


@click.command("gen-cert")
@certificate_options
@click.option("--output", "output", type=click.Path(dir_okay=False), help="Write here instead of SITE_ROOT.")
@with_appcontext
def gen_cert(json_path, signature, output, **fields):
    """Render a certificate PDF into SITE_ROOT/certificates/<year>/."""
    data, official = _certificate_from_options(json_path, signature, **fields)
    result = generate_document(
        data,
        official,
        seal_url=seal_url(current_app.config),
        fetcher=http_fetcher(current_app.config["SEAL_FETCH_TIMEOUT"]),
    )
    for warning in result.warnings:
        click.echo(f"warning: {warning}", err=True)
    if not result.success:
        raise click.ClickException(result.error or "Certificate generation failed")
    path = output or certificate_output_path(
        current_app.config["SITE_ROOT"],
        resolve_issuance_date(data.generated_on),
        certificate_filename(data),
    )
    write_atomic(path, result.pdf_bytes)
    current_app.logger.info("[CERT] wrote %s", path)
    click.echo(path)


@click.command("preview-cert")
@certificate_options
@click.option("--output", "output", type=click.Path(dir_okay=False), help="Write here instead of SITE_ROOT.")
@with_appcontext
def preview_cert(json_path, signature, output, **fields):
    """Write the printable HTML rendition of a certificate."""
    data, official = _certificate_from_options(json_path, signature, **fields)
    html = build_printable_certificate_html(
        data, official, seal_url=seal_url(current_app.config)
    )
    path = output or os.path.join(
        current_app.config["SITE_ROOT"],
        "previews",
        os.path.splitext(certificate_filename(data))[0] + ".html",
    )
    write_atomic(path, html.encode("utf-8"))
    click.echo(path)


@click.command("list-templates")
def list_templates():
    """List the certificate templates in matching order."""
    for template_id, description in list_certificate_templates():
        click.echo(f"{template_id}\t{description}")
