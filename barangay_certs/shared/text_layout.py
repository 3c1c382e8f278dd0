from __future__ import annotations

from datetime import date, datetime
from typing import Callable, NamedTuple, Sequence

from reportlab.pdfbase.pdfmetrics import stringWidth

RGB = tuple[float, float, float]
FontMetric = Callable[[str, float], float]

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%m/%d/%Y",
    "%d %B %Y",
)


# Glyphs the base-14 fonts cannot encode.
_PDF_GLYPH_FALLBACKS = str.maketrans({"₱": "PHP "})


class GradientBand(NamedTuple):
    offset_ratio: float
    height_ratio: float
    color: RGB


def pdf_safe_text(text: str) -> str:
    return text.translate(_PDF_GLYPH_FALLBACKS)


def reportlab_metric(font_name: str) -> FontMetric:
    """Width function backed by reportlab's AFM tables for ``font_name``.

    Text is measured as the PDF will draw it so that both renderers break
    lines at the same words.
    """

    def measure(text: str, font_size: float) -> float:
        return stringWidth(pdf_safe_text(text), font_name, font_size)

    return measure


def split_paragraph_into_lines(
    text: str, font_metric: FontMetric, font_size: float, max_width: float
) -> list[str]:
    """Greedy word wrap; an over-wide word keeps a line to itself."""
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and font_metric(candidate, font_size) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def wrap_paragraphs(
    paragraphs: Sequence[str], font_name: str, font_size: float, max_width: float
) -> list[list[str]]:
    metric = reportlab_metric(font_name)
    return [
        split_paragraph_into_lines(paragraph, metric, font_size, max_width)
        for paragraph in paragraphs
    ]


def get_ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def resolve_issuance_date(generated_on: str | None = None) -> date:
    """Parse ``generated_on``; fall back to today when absent or unparsable."""
    raw = (generated_on or "").strip()
    if raw:
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(raw, fmt).date()
            except ValueError:
                continue
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    return date.today()


def get_issuance_paragraph(value: date) -> str:
    suffix = get_ordinal_suffix(value.day)
    return f"Given this {value.day}{suffix} day of {value.strftime('%B')}, {value.year}."


def hex_to_rgb_tuple(value: str) -> RGB:
    cleaned = value.strip().lstrip("#")
    if len(cleaned) != 6:
        raise ValueError(f"Expected #RRGGBB colour, got {value!r}")
    return tuple(int(cleaned[i : i + 2], 16) / 255.0 for i in (0, 2, 4))  # type: ignore[return-value]


def interpolate_color(start: RGB, end: RGB, ratio: float) -> RGB:
    ratio = min(max(ratio, 0.0), 1.0)
    return tuple(a + (b - a) * ratio for a, b in zip(start, end))  # type: ignore[return-value]


def gradient_bands(top_color: str, bottom_color: str, steps: int) -> list[GradientBand]:
    """Split a vertical gradient into ``steps`` solid horizontal bands."""
    steps = max(int(steps), 1)
    top = hex_to_rgb_tuple(top_color)
    bottom = hex_to_rgb_tuple(bottom_color)
    height = 1.0 / steps
    bands: list[GradientBand] = []
    for index in range(steps):
        ratio = index / (steps - 1) if steps > 1 else 0.0
        bands.append(GradientBand(index * height, height, interpolate_color(top, bottom, ratio)))
    return bands


def rgb_to_css(color: RGB) -> str:
    r, g, b = (int(round(channel * 255)) for channel in color)
    return f"rgb({r}, {g}, {b})"
