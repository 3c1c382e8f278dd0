from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass
from enum import Enum


class FontRole(Enum):
    HELVETICA = "helvetica"
    HELVETICA_BOLD = "helveticaBold"
    TIMES = "times"
    TIMES_BOLD = "timesBold"
    ARIAL = "arial"
    ARIAL_BOLD = "arialBold"


# (regular, italic) base-14 names; Arial has no base-14 face of its own.
PDF_FONTS: dict[FontRole, tuple[str, str]] = {
    FontRole.HELVETICA: ("Helvetica", "Helvetica-Oblique"),
    FontRole.HELVETICA_BOLD: ("Helvetica-Bold", "Helvetica-BoldOblique"),
    FontRole.TIMES: ("Times-Roman", "Times-Italic"),
    FontRole.TIMES_BOLD: ("Times-Bold", "Times-BoldItalic"),
    FontRole.ARIAL: ("Helvetica", "Helvetica-Oblique"),
    FontRole.ARIAL_BOLD: ("Helvetica-Bold", "Helvetica-BoldOblique"),
}

CSS_FONTS: dict[FontRole, tuple[str, str]] = {
    FontRole.HELVETICA: ("Helvetica, Arial, sans-serif", "normal"),
    FontRole.HELVETICA_BOLD: ("Helvetica, Arial, sans-serif", "bold"),
    FontRole.TIMES: ("'Times New Roman', Times, serif", "normal"),
    FontRole.TIMES_BOLD: ("'Times New Roman', Times, serif", "bold"),
    FontRole.ARIAL: ("Arial, Helvetica, sans-serif", "normal"),
    FontRole.ARIAL_BOLD: ("Arial, Helvetica, sans-serif", "bold"),
}


def pdf_font(role: FontRole, italic: bool = False) -> str:
    regular, oblique = PDF_FONTS[role]
    return oblique if italic else regular


def css_font(role: FontRole) -> tuple[str, str]:
    return CSS_FONTS[role]


@dataclass(frozen=True)
class PageSpec:
    width: float
    height: float


@dataclass(frozen=True)
class TextLineSpec:
    text: str
    font: FontRole
    font_size: float


@dataclass(frozen=True)
class RibbonSpec:
    text: str
    font: FontRole
    font_size: float
    top_offset: float
    height: float
    background_color: str
    text_color: str
    border_width: float
    border_color: str


@dataclass(frozen=True)
class DividerSpec:
    left_offset: float
    right_offset: float
    y_offset: float
    height: float
    color: str


@dataclass(frozen=True)
class HeaderSpec:
    lines: tuple[TextLineSpec, ...]
    line_spacing: float
    top_offset: float
    side_inset: float
    color: str
    ribbon: RibbonSpec
    divider: DividerSpec


@dataclass(frozen=True)
class SealSpec:
    size: float
    top_offset: float
    left_offset: float
    border_width: float
    color: str
    placeholder_dots: int
    placeholder_dot_size: float


@dataclass(frozen=True)
class SidebarEntry:
    text: str
    font: FontRole
    font_size: float
    margin_bottom: float = 0
    italic: bool = False
    center: bool = False


@dataclass(frozen=True)
class SidebarSpec:
    width: float
    top_offset: float
    bottom_offset: float
    content_top_offset: float
    background_top_color: str
    background_bottom_color: str
    text_color: str
    text_horizontal_padding: float
    border_width: float
    border_color: str
    gradient_steps: int
    title: tuple[SidebarEntry, ...]
    entries: tuple[SidebarEntry, ...]


@dataclass(frozen=True)
class ContentBoxSpec:
    top_offset: float
    bottom_offset: float
    left_gap: float
    right_gap: float
    padding_top: float
    padding_left: float
    padding_right: float
    border_width: float
    border_color: str
    background_color: str


@dataclass(frozen=True)
class TitleSpec:
    font: FontRole
    color: str
    first_baseline_offset: float


@dataclass(frozen=True)
class BodySpec:
    font: FontRole
    font_size: float
    line_height: float
    paragraph_spacing: float
    top_spacing: float
    color: str


@dataclass(frozen=True)
class SignatureSpec:
    box_width: float
    box_height: float
    offset_from_body: float
    horizontal_offset: float
    line_width: float
    image_padding_x: float
    image_gap: float
    name_font: FontRole
    name_font_size: float
    name_offset_y: float
    position_font: FontRole
    position_font_size: float
    position_offset_y: float
    color: str


@dataclass(frozen=True)
class FooterSpec:
    lines: tuple[TextLineSpec, ...]
    line_spacing: float
    bottom_offset: float
    right_offset: float
    color: str


@dataclass(frozen=True)
class CertificateLayoutConfig:
    """Page geometry shared by the PDF and HTML renderers.

    Lengths are points. Vertical offsets are measured downward from the top
    margin and horizontal offsets rightward from the left margin, except
    fields named ``bottom_offset`` which are measured up from the bottom
    margin.
    """

    page: PageSpec
    margin: float
    border_width: float
    border_color: str
    text_baseline_ratio: float
    header: HeaderSpec
    seal: SealSpec
    sidebar: SidebarSpec
    content_box: ContentBoxSpec
    title: TitleSpec
    body: BodySpec
    signature: SignatureSpec
    footer: FooterSpec

    @property
    def inner_width(self) -> float:
        return self.page.width - 2 * self.margin

    @property
    def inner_height(self) -> float:
        return self.page.height - 2 * self.margin


@dataclass(frozen=True)
class Box:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2


@dataclass(frozen=True)
class SignatureGeometry:
    box_left: float
    rule: Box
    image: Box
    name_baseline: float
    position_baseline: float


def _official(text: str, margin_bottom: float = 0, *, size: float = 7) -> SidebarEntry:
    return SidebarEntry(text, FontRole.ARIAL_BOLD, size, margin_bottom)


def _committee(text: str, margin_bottom: float = 0) -> SidebarEntry:
    return SidebarEntry(text, FontRole.ARIAL_BOLD, 6, margin_bottom, italic=True)


CERTIFICATE_LAYOUT = CertificateLayoutConfig(
    page=PageSpec(width=595, height=842),
    margin=39,
    border_width=2,
    border_color="#000000",
    text_baseline_ratio=0.8,
    header=HeaderSpec(
        lines=(
            TextLineSpec("REPUBLIC OF THE PHILIPPINES", FontRole.HELVETICA_BOLD, 10),
            TextLineSpec("PROVINCE OF LAGUNA", FontRole.HELVETICA_BOLD, 11),
            TextLineSpec("MUNICIPALITY OF LOS BAÑOS", FontRole.HELVETICA_BOLD, 10),
            TextLineSpec("BARANGAY MALINTA", FontRole.HELVETICA_BOLD, 10),
        ),
        line_spacing=13,
        top_offset=18,
        side_inset=96,
        color="#000000",
        ribbon=RibbonSpec(
            text="OFFICE OF THE SANGGUNIANG BARANGAY",
            font=FontRole.HELVETICA_BOLD,
            font_size=16,
            top_offset=76,
            height=25,
            background_color="#000080",
            text_color="#FFFFFF",
            border_width=1,
            border_color="#000000",
        ),
        divider=DividerSpec(
            left_offset=96,
            right_offset=96,
            y_offset=66,
            height=1,
            color="#000000",
        ),
    ),
    seal=SealSpec(
        size=72,
        top_offset=2,
        left_offset=12,
        border_width=1,
        color="#000000",
        placeholder_dots=36,
        placeholder_dot_size=2,
    ),
    sidebar=SidebarSpec(
        width=124,
        top_offset=110,
        bottom_offset=55,
        content_top_offset=14,
        background_top_color="#C7D2FE",
        background_bottom_color="#FFFFFF",
        text_color="#0B1C68",
        text_horizontal_padding=6,
        border_width=0,
        border_color="#000000",
        gradient_steps=40,
        title=(
            SidebarEntry("SANGGUNIANG BARANGAY", FontRole.HELVETICA_BOLD, 7, 1, center=True),
            SidebarEntry("OF MALINTA", FontRole.HELVETICA_BOLD, 7, 6, center=True),
        ),
        entries=(
            _official("PUNONG BARANGAY", 1),
            _official("HON. JESUS H. DE UNA JR.", 6),
            _official("BARANGAY KAGAWAD", 1),
            _official("HON. ROLANDO L. ERROBA"),
            _committee("HEALTH & EDUCATION", 4),
            _official("HON. RANIE F. ANDAL", 6),
            _official("HON. ERNESTO G."),
            _official("ALCANTARA", 1),
            _committee("ENVIRONMENTAL PROTECTION", 5),
            _official("HON. ALLAN B. BIENES", 1),
            _committee("INFRASTRUCTURE", 5),
            _official("HON. BENY S. MORALDE", 1),
            _committee("PEACE AND ORDER", 5),
            _official("HON. SHERYL S. BAGNES", 1),
            _committee("WOMEN AND FAMILY", 5),
            _official("HON. GAUDENCIO D."),
            _official("MARIANO"),
            _committee("LIVELIHOOD &"),
            _committee("COOPERATIVE DEVT /"),
            _committee("APPROPRIATIONS, WAYS &"),
            _committee("MEANS", 5),
            _official("HON. EDMUND LLOYD E."),
            _official("VELASCO", 1),
            _committee("SPORTS & YOUTH"),
            _committee("DEVELOPMENT", 5),
            _official("MS. RICHET E. TAKAHASHI"),
            _committee("SECRETARY", 5),
            _official("MS. JANE CAMILLE"),
            _official("RETIRADO"),
            _committee("TREASURER", 5),
            _official("MR. JEFFREY BONITA"),
            _committee("ADMIN"),
        ),
    ),
    content_box=ContentBoxSpec(
        top_offset=110,
        bottom_offset=55,
        left_gap=8,
        right_gap=8,
        padding_top=35,
        padding_left=30,
        padding_right=30,
        border_width=1.5,
        border_color="#000000",
        background_color="#FFFFFF",
    ),
    title=TitleSpec(
        font=FontRole.TIMES_BOLD,
        color="#000000",
        first_baseline_offset=22,
    ),
    body=BodySpec(
        font=FontRole.TIMES,
        font_size=11,
        line_height=16,
        paragraph_spacing=10,
        top_spacing=20,
        color="#000000",
    ),
    signature=SignatureSpec(
        box_width=180,
        box_height=50,
        offset_from_body=30,
        horizontal_offset=0,
        line_width=1,
        image_padding_x=10,
        image_gap=2,
        name_font=FontRole.TIMES_BOLD,
        name_font_size=10,
        name_offset_y=14,
        position_font=FontRole.TIMES,
        position_font_size=8,
        position_offset_y=11,
        color="#000000",
    ),
    footer=FooterSpec(
        lines=(
            TextLineSpec("ADDRESS:", FontRole.HELVETICA_BOLD, 7),
            TextLineSpec(
                "SAN LUIS AVENUE/PUROK 2, BARANGAY MALINTA, LOS BAÑOS, LAGUNA 4030",
                FontRole.HELVETICA,
                7,
            ),
            TextLineSpec("TEL. NO. (049) 502-4396", FontRole.HELVETICA, 7),
        ),
        line_spacing=2,
        bottom_offset=12,
        right_offset=8,
        color="#000000",
    ),
)


def seal_box(layout: CertificateLayoutConfig) -> Box:
    seal = layout.seal
    return Box(seal.left_offset, seal.top_offset, seal.size, seal.size)


def header_region(layout: CertificateLayoutConfig) -> Box:
    header = layout.header
    height = header.line_spacing * max(len(header.lines), 1)
    return Box(
        header.side_inset,
        header.top_offset,
        layout.inner_width - 2 * header.side_inset,
        height,
    )


def header_baselines(layout: CertificateLayoutConfig) -> list[float]:
    header = layout.header
    return [header.top_offset + i * header.line_spacing for i in range(len(header.lines))]


def divider_box(layout: CertificateLayoutConfig) -> Box:
    divider = layout.header.divider
    return Box(
        divider.left_offset,
        divider.y_offset,
        layout.inner_width - divider.left_offset - divider.right_offset,
        divider.height,
    )


def ribbon_box(layout: CertificateLayoutConfig) -> Box:
    ribbon = layout.header.ribbon
    return Box(0, ribbon.top_offset, layout.inner_width, ribbon.height)


def sidebar_box(layout: CertificateLayoutConfig) -> Box:
    sidebar = layout.sidebar
    return Box(
        0,
        sidebar.top_offset,
        sidebar.width,
        layout.inner_height - sidebar.top_offset - sidebar.bottom_offset,
    )


def content_box(layout: CertificateLayoutConfig) -> Box:
    box = layout.content_box
    left = layout.sidebar.width + box.left_gap
    return Box(
        left,
        box.top_offset,
        layout.inner_width - left - box.right_gap,
        layout.inner_height - box.top_offset - box.bottom_offset,
    )


def content_text_area(layout: CertificateLayoutConfig) -> Box:
    outer = content_box(layout)
    box = layout.content_box
    return Box(
        outer.left + box.padding_left,
        outer.top + box.padding_top,
        outer.width - box.padding_left - box.padding_right,
        outer.height - box.padding_top,
    )


def text_box_top(layout: CertificateLayoutConfig, baseline: float, font_size: float) -> float:
    """Top edge of a one-line text box whose baseline sits at ``baseline``."""
    return baseline - font_size * layout.text_baseline_ratio


def centered_baseline(layout: CertificateLayoutConfig, box: Box, font_size: float) -> float:
    return box.top + (box.height - font_size) / 2 + font_size * layout.text_baseline_ratio


def signature_geometry(layout: CertificateLayoutConfig, body_end: float) -> SignatureGeometry:
    """Place the signature block relative to where the body text ended."""
    sig = layout.signature
    area = content_text_area(layout)
    box_left = area.right - sig.horizontal_offset - sig.box_width
    rule_top = body_end + sig.offset_from_body + sig.box_height
    image = Box(
        box_left + sig.image_padding_x,
        rule_top - sig.image_gap - sig.box_height,
        sig.box_width - 2 * sig.image_padding_x,
        sig.box_height,
    )
    name_baseline = rule_top + sig.name_offset_y
    return SignatureGeometry(
        box_left=box_left,
        rule=Box(box_left, rule_top, sig.box_width, sig.line_width),
        image=image,
        name_baseline=name_baseline,
        position_baseline=name_baseline + sig.position_offset_y,
    )


def footer_baselines(layout: CertificateLayoutConfig) -> list[float]:
    footer = layout.footer
    baselines: list[float] = []
    offset = layout.inner_height - footer.bottom_offset
    for line in reversed(footer.lines):
        baselines.append(offset)
        offset -= line.font_size + footer.line_spacing
    baselines.reverse()
    return baselines


def footer_anchor_x(layout: CertificateLayoutConfig) -> float:
    return layout.inner_width - layout.footer.right_offset


def _json_default(value):
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Unserializable layout value: {value!r}")


def layout_fingerprint(layout: CertificateLayoutConfig) -> str:
    raw = json.dumps(asdict(layout), sort_keys=True, default=_json_default)
    return hashlib.sha256(raw.encode()).hexdigest()
