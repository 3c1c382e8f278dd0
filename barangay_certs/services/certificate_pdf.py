from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from io import BytesIO

from PyPDF2 import PdfReader
from reportlab.lib.colors import HexColor
from reportlab.pdfgen import canvas

from ..models import CertificateContentData, OfficialInfo
from ..shared.certificate_templates import (
    CertificateContent,
    get_certificate_template_config,
    resolve_certificate_content,
)
from ..shared.certificates_layout import (
    CERTIFICATE_LAYOUT,
    Box,
    CertificateLayoutConfig,
    centered_baseline,
    content_box,
    content_text_area,
    divider_box,
    footer_anchor_x,
    footer_baselines,
    header_baselines,
    header_region,
    pdf_font,
    ribbon_box,
    seal_box,
    sidebar_box,
    signature_geometry,
)
from ..shared.text_layout import (
    gradient_bands,
    pdf_safe_text,
    resolve_issuance_date,
    wrap_paragraphs,
)
from .images import ImageFetcher, ImageFetchError, http_fetcher, load_image

logger = logging.getLogger("barangay_certs.documents")

# Bands overlap by this much so viewers do not show hairline seams.
_BAND_OVERLAP_PT = 0.5


@dataclass(frozen=True)
class DocumentResult:
    success: bool
    pdf_bytes: bytes | None = None
    error: str | None = None
    warnings: tuple[str, ...] = ()


def slug_certificate_name(name: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9 ]+", "", name or "")
    slug = re.sub(r"\s+", "-", slug.strip()).lower()
    return slug or "name"


def certificate_filename(data: CertificateContentData) -> str:
    template = get_certificate_template_config(data.type)
    issued = resolve_issuance_date(data.generated_on)
    return f"{template.id}_{slug_certificate_name(data.requested_by)}_{issued:%Y-%m-%d}.pdf"


class _Page:
    """Maps margin-relative offsets onto PDF user space (origin bottom-left)."""

    def __init__(self, c: canvas.Canvas, layout: CertificateLayoutConfig):
        self.c = c
        self.layout = layout

    def x(self, offset: float) -> float:
        return self.layout.margin + offset

    def y(self, offset: float) -> float:
        return self.layout.page.height - self.layout.margin - offset

    def rect(self, box: Box, *, fill: bool = True, stroke: bool = False) -> None:
        self.c.rect(
            self.x(box.left),
            self.y(box.bottom),
            box.width,
            box.height,
            stroke=int(stroke),
            fill=int(fill),
        )

    def text(self, value: str, font: str, size: float, x: float, baseline: float, align: str = "left") -> None:
        self.c.setFont(font, size)
        value = pdf_safe_text(value)
        if align == "center":
            self.c.drawCentredString(self.x(x), self.y(baseline), value)
        elif align == "right":
            self.c.drawRightString(self.x(x), self.y(baseline), value)
        else:
            self.c.drawString(self.x(x), self.y(baseline), value)


def _validate_geometry(layout: CertificateLayoutConfig) -> None:
    for label, box in (
        ("sidebar", sidebar_box(layout)),
        ("content box", content_box(layout)),
        ("content text area", content_text_area(layout)),
    ):
        if box.width <= 0 or box.height <= 0:
            raise ValueError(f"Degenerate certificate geometry: {label} is {box}")
    if layout.sidebar.gradient_steps < 1:
        raise ValueError("Sidebar gradient needs at least one band")


def _draw_border(page: _Page) -> None:
    layout = page.layout
    page.c.setStrokeColor(HexColor(layout.border_color))
    page.c.setLineWidth(layout.border_width)
    page.rect(Box(0, 0, layout.inner_width, layout.inner_height), fill=False, stroke=True)


def _draw_seal_placeholder(page: _Page, box: Box) -> None:
    seal = page.layout.seal
    c = page.c
    cx = page.x(box.center_x)
    cy = page.y(box.top + box.height / 2)
    radius = box.width / 2 - seal.border_width
    c.setStrokeColor(HexColor(seal.color))
    c.setFillColor(HexColor(seal.color))
    c.setLineWidth(seal.border_width)
    c.circle(cx, cy, radius, stroke=1, fill=0)
    ring = radius * 0.8
    dot = seal.placeholder_dot_size
    for index in range(seal.placeholder_dots):
        angle = 2 * math.pi * index / seal.placeholder_dots
        c.rect(
            cx + ring * math.cos(angle) - dot / 2,
            cy + ring * math.sin(angle) - dot / 2,
            dot,
            dot,
            stroke=0,
            fill=1,
        )


def _draw_seal(page: _Page, seal_url: str | None, fetcher: ImageFetcher, warnings: list[str]) -> None:
    box = seal_box(page.layout)
    if seal_url:
        try:
            image = load_image(seal_url, fetcher)
        except ImageFetchError as exc:
            logger.warning("[CERT-SEAL] using placeholder: %s", exc)
            warnings.append("Seal image unavailable; drew placeholder.")
        else:
            page.c.drawImage(
                image,
                page.x(box.left),
                page.y(box.bottom),
                box.width,
                box.height,
                mask="auto",
                preserveAspectRatio=True,
                anchor="c",
            )
            return
    _draw_seal_placeholder(page, box)


def _draw_header(page: _Page) -> None:
    layout = page.layout
    header = layout.header
    region = header_region(layout)
    page.c.setFillColor(HexColor(header.color))
    for line, baseline in zip(header.lines, header_baselines(layout)):
        page.text(line.text, pdf_font(line.font), line.font_size, region.center_x, baseline, "center")

    page.c.setFillColor(HexColor(header.divider.color))
    page.rect(divider_box(layout))

    ribbon = header.ribbon
    box = ribbon_box(layout)
    page.c.setFillColor(HexColor(ribbon.background_color))
    page.c.setStrokeColor(HexColor(ribbon.border_color))
    page.c.setLineWidth(ribbon.border_width)
    page.rect(box, stroke=ribbon.border_width > 0)
    page.c.setFillColor(HexColor(ribbon.text_color))
    page.text(
        ribbon.text,
        pdf_font(ribbon.font),
        ribbon.font_size,
        box.center_x,
        centered_baseline(layout, box, ribbon.font_size),
        "center",
    )


def _draw_sidebar(page: _Page) -> None:
    layout = page.layout
    sidebar = layout.sidebar
    box = sidebar_box(layout)
    bands = gradient_bands(
        sidebar.background_top_color,
        sidebar.background_bottom_color,
        sidebar.gradient_steps,
    )
    for index, band in enumerate(bands):
        top = box.top + band.offset_ratio * box.height
        height = band.height_ratio * box.height
        if index < len(bands) - 1:
            height += _BAND_OVERLAP_PT
        page.c.setFillColorRGB(*band.color)
        page.rect(Box(box.left, top, box.width, height))
    if sidebar.border_width > 0:
        page.c.setStrokeColor(HexColor(sidebar.border_color))
        page.c.setLineWidth(sidebar.border_width)
        page.rect(box, fill=False, stroke=True)

    page.c.setFillColor(HexColor(sidebar.text_color))
    cursor = box.top + sidebar.content_top_offset
    for entry in sidebar.title + sidebar.entries:
        baseline = cursor + entry.font_size
        font = pdf_font(entry.font, entry.italic)
        if entry.center:
            page.text(entry.text, font, entry.font_size, box.center_x, baseline, "center")
        else:
            page.text(
                entry.text,
                font,
                entry.font_size,
                box.left + sidebar.text_horizontal_padding,
                baseline,
            )
        cursor += entry.font_size + entry.margin_bottom


def _draw_content_border(page: _Page) -> None:
    spec = page.layout.content_box
    page.c.setFillColor(HexColor(spec.background_color))
    page.c.setStrokeColor(HexColor(spec.border_color))
    page.c.setLineWidth(spec.border_width)
    page.rect(content_box(page.layout), stroke=spec.border_width > 0)


def _draw_title(page: _Page, content: CertificateContent) -> float:
    layout = page.layout
    area = content_text_area(layout)
    font = pdf_font(layout.title.font)
    page.c.setFillColor(HexColor(layout.title.color))
    cursor = area.top + layout.title.first_baseline_offset
    for line in content.title_lines:
        page.text(line.text, font, line.font_size, area.center_x, cursor, "center")
        cursor += line.margin_bottom
    return cursor


def _draw_body(page: _Page, content: CertificateContent, title_end: float) -> float:
    layout = page.layout
    body = layout.body
    area = content_text_area(layout)
    font = pdf_font(body.font)
    page.c.setFillColor(HexColor(body.color))
    cursor = title_end + body.top_spacing
    wrapped = wrap_paragraphs(content.paragraphs, font, body.font_size, area.width)
    for index, lines in enumerate(wrapped):
        for line in lines:
            page.text(line, font, body.font_size, area.left, cursor)
            cursor += body.line_height
        if index < len(wrapped) - 1:
            cursor += body.paragraph_spacing
    return cursor


def _draw_signature(
    page: _Page,
    data: CertificateContentData,
    content: CertificateContent,
    body_end: float,
    fetcher: ImageFetcher,
    warnings: list[str],
) -> None:
    layout = page.layout
    sig = layout.signature
    geo = signature_geometry(layout, body_end)
    page.c.setFillColor(HexColor(sig.color))
    page.rect(geo.rule)

    if data.has_signature and data.signature_url:
        try:
            image = load_image(data.signature_url, fetcher)
        except ImageFetchError as exc:
            logger.warning("[CERT-SIGNATURE] skipped: %s", exc)
            warnings.append("Signature image unavailable; left blank.")
        else:
            page.c.drawImage(
                image,
                page.x(geo.image.left),
                page.y(geo.image.bottom),
                geo.image.width,
                geo.image.height,
                mask="auto",
                preserveAspectRatio=True,
                anchor="s",
            )

    center_x = geo.rule.center_x
    page.c.setFillColor(HexColor(sig.color))
    page.text(
        content.signature_name,
        pdf_font(sig.name_font),
        sig.name_font_size,
        center_x,
        geo.name_baseline,
        "center",
    )
    page.text(
        content.signature_position,
        pdf_font(sig.position_font),
        sig.position_font_size,
        center_x,
        geo.position_baseline,
        "center",
    )


def _draw_footer(page: _Page, content: CertificateContent) -> None:
    layout = page.layout
    page.c.setFillColor(HexColor(layout.footer.color))
    anchor = footer_anchor_x(layout)
    for spec, text, baseline in zip(layout.footer.lines, content.footer_lines, footer_baselines(layout)):
        page.text(text, pdf_font(spec.font), spec.font_size, anchor, baseline, "right")


def _verify_document(pdf_bytes: bytes, layout: CertificateLayoutConfig) -> None:
    reader = PdfReader(BytesIO(pdf_bytes))
    if len(reader.pages) != 1:
        raise ValueError(f"Expected a single page, found {len(reader.pages)}")
    media = reader.pages[0].mediabox
    size = (round(float(media.width)), round(float(media.height)))
    if size != (round(layout.page.width), round(layout.page.height)):
        raise ValueError(f"Unexpected page size {size}")


def generate_document(
    certificate_data: CertificateContentData,
    official_info: OfficialInfo,
    *,
    seal_url: str | None = None,
    fetcher: ImageFetcher | None = None,
    layout: CertificateLayoutConfig = CERTIFICATE_LAYOUT,
) -> DocumentResult:
    """Render one certificate onto a single page.

    Never raises: any failure is logged and reported on the result, and no
    partial document is returned. Seal or signature images that cannot be
    fetched degrade to a placeholder (or nothing) and are listed in
    ``warnings``. Body text that runs past the content box is drawn as is
    and reported as a warning.
    """
    fetcher = fetcher or http_fetcher()
    warnings: list[str] = []
    try:
        _validate_geometry(layout)
        content = resolve_certificate_content(certificate_data, official_info, layout)

        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=(layout.page.width, layout.page.height))
        c.setTitle(content.description)
        c.setSubject(certificate_data.id)
        c.setAuthor(layout.header.ribbon.text)
        page = _Page(c, layout)

        _draw_border(page)
        _draw_seal(page, seal_url, fetcher, warnings)
        _draw_header(page)
        _draw_sidebar(page)
        _draw_content_border(page)
        title_end = _draw_title(page, content)
        body_end = _draw_body(page, content, title_end)
        if signature_geometry(layout, body_end).position_baseline > content_box(layout).bottom:
            logger.warning(
                "[CERT] body overflows content box id=%s type=%s",
                certificate_data.id,
                certificate_data.type,
            )
            warnings.append("Certificate text runs past the content box.")
        _draw_signature(page, certificate_data, content, body_end, fetcher, warnings)
        _draw_footer(page, content)

        c.showPage()
        c.save()
        pdf_bytes = buffer.getvalue()
        _verify_document(pdf_bytes, layout)
    except Exception as exc:
        logger.exception(
            "[CERT-FAIL] id=%s type=%s", certificate_data.id, certificate_data.type
        )
        return DocumentResult(
            success=False,
            error=f"Failed to generate certificate PDF: {exc}",
            warnings=tuple(warnings),
        )

    logger.info(
        "[CERT] id=%s template=%s bytes=%d",
        certificate_data.id,
        content.template_id,
        len(pdf_bytes),
    )
    return DocumentResult(success=True, pdf_bytes=pdf_bytes, warnings=tuple(warnings))
