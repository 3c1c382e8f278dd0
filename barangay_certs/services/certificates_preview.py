from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from dataclasses import asdict
from datetime import date

from markupsafe import Markup, escape

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
    FontRole,
    centered_baseline,
    content_box,
    content_text_area,
    css_font,
    divider_box,
    footer_anchor_x,
    footer_baselines,
    header_baselines,
    header_region,
    layout_fingerprint,
    pdf_font,
    ribbon_box,
    seal_box,
    sidebar_box,
    signature_geometry,
    text_box_top,
)
from ..shared.text_layout import wrap_paragraphs

logger = logging.getLogger("barangay_certs.preview")

_PX_PER_POINT = 96.0 / 72.0
_CACHE_TTL_SECONDS = 45

_preview_cache: dict[str, tuple[float, str]] = {}
_preview_cache_lock = threading.Lock()


def _px(value: float) -> str:
    return f"{value * _PX_PER_POINT:.2f}px"


def _style(**props: str) -> str:
    return ";".join(f"{name.replace('_', '-')}:{value}" for name, value in props.items())


class _Sheet:
    """Collects absolutely positioned elements in page coordinates."""

    def __init__(self, layout: CertificateLayoutConfig):
        self.layout = layout
        self.parts: list[str] = []

    def abs_x(self, offset: float) -> float:
        return self.layout.margin + offset

    def abs_y(self, offset: float) -> float:
        return self.layout.margin + offset

    def box(self, box: Box, css_class: str, inner: str = "", **props: str) -> None:
        style = _style(
            position="absolute",
            left=_px(self.abs_x(box.left)),
            top=_px(self.abs_y(box.top)),
            width=_px(box.width),
            height=_px(box.height),
            box_sizing="border-box",
            **props,
        )
        self.parts.append(f'<div class="{css_class}" style="{style}">{inner}</div>')

    def stroked_box(self, box: Box, css_class: str, border_width: float, border_color: str, **props: str) -> None:
        # PDF strokes straddle the path; widen the CSS box by half a stroke each side.
        half = border_width / 2
        grown = Box(box.left - half, box.top - half, box.width + border_width, box.height + border_width)
        self.box(grown, css_class, border=f"{_px(border_width)} solid {border_color}", **props)

    def text(
        self,
        value: str,
        role: FontRole,
        size: float,
        color: str,
        baseline: float,
        css_class: str,
        *,
        left: float | None = None,
        width: float | None = None,
        right_anchor: float | None = None,
        align: str = "left",
        italic: bool = False,
    ) -> None:
        family, weight = css_font(role)
        props = {
            "position": "absolute",
            "top": _px(self.abs_y(text_box_top(self.layout, baseline, size))),
            "font-family": family,
            "font-weight": weight,
            "font-size": _px(size),
            "line-height": _px(size),
            "color": color,
            "white-space": "nowrap",
            "text-align": align,
        }
        if italic:
            props["font-style"] = "italic"
        if right_anchor is not None:
            props["right"] = _px(self.layout.page.width - self.abs_x(right_anchor))
        else:
            props["left"] = _px(self.abs_x(left or 0))
            if width is not None:
                props["width"] = _px(width)
        style = ";".join(f"{name}:{val}" for name, val in props.items())
        self.parts.append(f'<div class="{css_class}" style="{style}">{escape(value)}</div>')


def _render_seal(sheet: _Sheet, seal_url: str | None) -> None:
    layout = sheet.layout
    box = seal_box(layout)
    if seal_url:
        img = (
            f'<img src="{escape(seal_url)}" alt="Barangay seal" '
            'style="width:100%;height:100%;object-fit:contain" />'
        )
        sheet.box(box, "cert-seal", img)
        return
    seal = layout.seal
    ring = box.width * 0.8
    offset = (box.width - ring) / 2
    dots = (
        '<div style="{}"></div>'.format(
            _style(
                position="absolute",
                left=_px(offset),
                top=_px(offset),
                width=_px(ring),
                height=_px(ring),
                border_radius="50%",
                border=f"{_px(seal.placeholder_dot_size)} dotted {seal.color}",
                box_sizing="border-box",
            )
        )
    )
    sheet.box(
        box,
        "cert-seal cert-seal-placeholder",
        dots,
        border=f"{_px(seal.border_width)} solid {seal.color}",
        border_radius="50%",
    )


def _render_header(sheet: _Sheet) -> None:
    layout = sheet.layout
    header = layout.header
    region = header_region(layout)
    for line, baseline in zip(header.lines, header_baselines(layout)):
        sheet.text(
            line.text,
            line.font,
            line.font_size,
            header.color,
            baseline,
            "cert-header-line",
            left=region.left,
            width=region.width,
            align="center",
        )
    sheet.box(divider_box(layout), "cert-divider", background=header.divider.color)

    ribbon = header.ribbon
    box = ribbon_box(layout)
    sheet.stroked_box(
        box,
        "cert-ribbon",
        ribbon.border_width,
        ribbon.border_color,
        background=ribbon.background_color,
    )
    sheet.text(
        ribbon.text,
        ribbon.font,
        ribbon.font_size,
        ribbon.text_color,
        centered_baseline(layout, box, ribbon.font_size),
        "cert-ribbon-label",
        left=box.left,
        width=box.width,
        align="center",
    )


def _render_sidebar(sheet: _Sheet) -> None:
    layout = sheet.layout
    sidebar = layout.sidebar
    box = sidebar_box(layout)
    gradient = (
        f"linear-gradient(to bottom, {sidebar.background_top_color}, "
        f"{sidebar.background_bottom_color})"
    )
    props = {"background": gradient}
    if sidebar.border_width > 0:
        props["outline"] = f"{_px(sidebar.border_width)} solid {sidebar.border_color}"
    sheet.box(box, "cert-sidebar", **props)

    cursor = box.top + sidebar.content_top_offset
    for entry in sidebar.title + sidebar.entries:
        baseline = cursor + entry.font_size
        if entry.center:
            sheet.text(
                entry.text,
                entry.font,
                entry.font_size,
                sidebar.text_color,
                baseline,
                "cert-sidebar-line",
                left=box.left,
                width=box.width,
                align="center",
                italic=entry.italic,
            )
        else:
            sheet.text(
                entry.text,
                entry.font,
                entry.font_size,
                sidebar.text_color,
                baseline,
                "cert-sidebar-line",
                left=box.left + sidebar.text_horizontal_padding,
                italic=entry.italic,
            )
        cursor += entry.font_size + entry.margin_bottom


def _render_content(
    sheet: _Sheet, data: CertificateContentData, content: CertificateContent
) -> None:
    layout = sheet.layout
    spec = layout.content_box
    sheet.stroked_box(
        content_box(layout),
        "cert-content",
        spec.border_width,
        spec.border_color,
        background=spec.background_color,
    )

    area = content_text_area(layout)
    cursor = area.top + layout.title.first_baseline_offset
    for line in content.title_lines:
        sheet.text(
            line.text,
            layout.title.font,
            line.font_size,
            layout.title.color,
            cursor,
            "cert-title-line",
            left=area.left,
            width=area.width,
            align="center",
        )
        cursor += line.margin_bottom

    body = layout.body
    cursor += body.top_spacing
    wrapped = wrap_paragraphs(content.paragraphs, pdf_font(body.font), body.font_size, area.width)
    for index, lines in enumerate(wrapped):
        sheet.parts.append('<div class="cert-paragraph">')
        for line in lines:
            sheet.text(
                line,
                body.font,
                body.font_size,
                body.color,
                cursor,
                "cert-body-line",
                left=area.left,
            )
            cursor += body.line_height
        sheet.parts.append("</div>")
        if index < len(wrapped) - 1:
            cursor += body.paragraph_spacing

    _render_signature(sheet, data, content, cursor)


def _render_signature(
    sheet: _Sheet,
    data: CertificateContentData,
    content: CertificateContent,
    body_end: float,
) -> None:
    layout = sheet.layout
    sig = layout.signature
    geo = signature_geometry(layout, body_end)
    sheet.box(geo.rule, "cert-signature-rule", background=sig.color)
    if data.has_signature and data.signature_url:
        img = (
            f'<img src="{escape(data.signature_url)}" alt="Signature" '
            'style="max-width:100%;max-height:100%;object-fit:contain" />'
        )
        sheet.box(
            geo.image,
            "cert-signature-image",
            img,
            display="flex",
            align_items="flex-end",
            justify_content="center",
        )
    sheet.text(
        content.signature_name,
        sig.name_font,
        sig.name_font_size,
        sig.color,
        geo.name_baseline,
        "cert-signature-name",
        left=geo.rule.left,
        width=geo.rule.width,
        align="center",
    )
    sheet.text(
        content.signature_position,
        sig.position_font,
        sig.position_font_size,
        sig.color,
        geo.position_baseline,
        "cert-signature-position",
        left=geo.rule.left,
        width=geo.rule.width,
        align="center",
    )


def _render_footer(sheet: _Sheet, content: CertificateContent) -> None:
    layout = sheet.layout
    footer = layout.footer
    anchor = footer_anchor_x(layout)
    for spec, text, baseline in zip(footer.lines, content.footer_lines, footer_baselines(layout)):
        sheet.text(
            text,
            spec.font,
            spec.font_size,
            footer.color,
            baseline,
            "cert-footer-line",
            right_anchor=anchor,
            align="right",
        )


def _empty_content(
    data: CertificateContentData, official: OfficialInfo, layout: CertificateLayoutConfig
) -> CertificateContent:
    template = get_certificate_template_config(data.type)
    return CertificateContent(
        template_id=template.id,
        description=template.preview_description,
        title_lines=template.title_lines,
        paragraphs=(),
        signature_name=(official.name or "").upper(),
        signature_position=official.position or "",
        footer_lines=tuple(line.text for line in layout.footer.lines),
    )


def _cache_key(
    data: CertificateContentData,
    official: OfficialInfo,
    seal_url: str | None,
    layout: CertificateLayoutConfig,
) -> str:
    raw = json.dumps(
        {
            "data": asdict(data),
            "official": asdict(official),
            "seal": seal_url or "",
            "layout": layout_fingerprint(layout),
            "today": date.today().isoformat(),
        },
        sort_keys=True,
    )
    return hashlib.sha256(raw.encode()).hexdigest()


def _cached(key: str, now: float) -> str | None:
    with _preview_cache_lock:
        cached = _preview_cache.get(key)
    if cached and now - cached[0] < _CACHE_TTL_SECONDS:
        return cached[1]
    return None


def _remember(key: str, markup: str, now: float) -> None:
    with _preview_cache_lock:
        expired = [k for k, (stamp, _) in _preview_cache.items() if now - stamp >= _CACHE_TTL_SECONDS]
        for k in expired:
            del _preview_cache[k]
        _preview_cache[key] = (now, markup)


def create_preview_markup(
    certificate_data: CertificateContentData,
    official_info: OfficialInfo,
    *,
    seal_url: str | None = None,
    layout: CertificateLayoutConfig = CERTIFICATE_LAYOUT,
) -> str:
    """HTML fragment positioned from the same geometry as the PDF renderer."""
    key = _cache_key(certificate_data, official_info, seal_url, layout)
    now = time.time()
    cached = _cached(key, now)
    if cached is not None:
        return cached

    try:
        content = resolve_certificate_content(certificate_data, official_info, layout)
    except Exception:
        logger.exception("[CERT-PREVIEW] content resolution failed id=%s", certificate_data.id)
        content = _empty_content(certificate_data, official_info, layout)

    sheet = _Sheet(layout)
    border = Box(0, 0, layout.inner_width, layout.inner_height)
    sheet.stroked_box(border, "cert-border", layout.border_width, layout.border_color)
    _render_seal(sheet, seal_url)
    _render_header(sheet)
    _render_sidebar(sheet)
    _render_content(sheet, certificate_data, content)
    _render_footer(sheet, content)

    page_style = _style(
        position="relative",
        width=_px(layout.page.width),
        height=_px(layout.page.height),
        background="#FFFFFF",
        overflow="hidden",
        box_sizing="border-box",
    )
    markup = (
        f'<div class="certificate-page" data-certificate-id="{escape(certificate_data.id)}" '
        f'data-template="{escape(content.template_id)}" style="{page_style}">'
        + "".join(sheet.parts)
        + "</div>"
    )
    _remember(key, markup, now)
    return markup


def build_printable_certificate_html(
    certificate_data: CertificateContentData,
    official_info: OfficialInfo,
    *,
    seal_url: str | None = None,
    layout: CertificateLayoutConfig = CERTIFICATE_LAYOUT,
) -> str:
    """A standalone document around the preview fragment, sized for print."""
    fragment = create_preview_markup(
        certificate_data, official_info, seal_url=seal_url, layout=layout
    )
    template = get_certificate_template_config(certificate_data.type)
    title = escape(f"{template.preview_description} - {certificate_data.requested_by}")
    page_size = f"{layout.page.width:g}pt {layout.page.height:g}pt"
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8" />'
        f"<title>{title}</title>"
        "<style>"
        f"@page {{ size: {page_size}; margin: 0; }}"
        "html, body { margin: 0; padding: 0; }"
        "body { -webkit-print-color-adjust: exact; print-color-adjust: exact; }"
        "@media screen { body { background: #E5E7EB; padding: 24px 0; }"
        " .certificate-page { margin: 0 auto; box-shadow: 0 2px 12px rgba(0,0,0,0.2); } }"
        "</style></head><body>"
        f"{Markup(fragment)}"
        "</body></html>"
    )
