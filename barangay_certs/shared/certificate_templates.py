from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, NamedTuple

from ..models import CertificateContentData, OfficialInfo
from .certificates_layout import CERTIFICATE_LAYOUT, CertificateLayoutConfig
from .text_layout import get_issuance_paragraph, resolve_issuance_date

LOCALITY = "Brgy. Malinta, Los Baños, Laguna"
BARANGAY = "Barangay Malinta"

GENERIC_TEMPLATE_ID = "generic"


class TitleLine(NamedTuple):
    text: str
    font_size: float
    margin_bottom: float


BodyBuilder = Callable[[CertificateContentData], list[str]]


@dataclass(frozen=True)
class CertificateTemplateConfig:
    id: str
    keywords: tuple[str, ...]
    title_lines: tuple[TitleLine, ...]
    build_body: BodyBuilder
    preview_description: str

    def match(self, cert_type: str) -> bool:
        normalized = (cert_type or "").lower()
        if not self.keywords:
            return True
        return any(keyword in normalized for keyword in self.keywords)


@dataclass(frozen=True)
class CertificateContent:
    """Resolved text of one certificate, shared by both renderers."""

    template_id: str
    description: str
    title_lines: tuple[TitleLine, ...]
    paragraphs: tuple[str, ...]
    signature_name: str
    signature_position: str
    footer_lines: tuple[str, ...]


def spaced_uppercase(text: str) -> str:
    spaced = " ".join(text.upper())
    return re.sub(r"\s{3,}", "  ", spaced)


def _title(*words: str) -> tuple[TitleLine, ...]:
    lines: list[TitleLine] = []
    for word in words:
        if word == "OF":
            lines.append(TitleLine("O F", 20, 25))
        else:
            lines.append(TitleLine(" ".join(word.upper()), 22, 30))
    return tuple(lines)


def build_purpose_paragraph(data: CertificateContentData, default_text: str) -> str:
    base = (data.purpose or "").strip()
    if not base:
        return re.sub(r"\s+", " ", default_text)
    return (
        f"This certification is being issued upon the request of "
        f"{data.requested_by} for {base}."
    )


def build_residence_line(data: CertificateContentData) -> str:
    upper = (data.requested_by or "").upper()
    address = f" and residing at {data.address}" if data.address else ""
    return f"{upper}, of legal age{address}, is a resident of {LOCALITY}."


def _default_request(data: CertificateContentData, reason: str) -> str:
    return (
        f"This certification is being issued upon the request of "
        f"{data.requested_by} {reason}."
    )


def _certify(data: CertificateContentData, clause: str = "") -> str:
    sentence = f"This is to certify that {build_residence_line(data)}"
    return f"{sentence} {clause}" if clause else sentence


def _indigency_body(data: CertificateContentData) -> list[str]:
    return [
        _certify(
            data,
            "This certifies further that the aforementioned resident belongs to "
            "the indigent families of this barangay.",
        ),
        build_purpose_paragraph(
            data, _default_request(data, "for whatever legal purpose it may serve")
        ),
    ]


def _residency_body(data: CertificateContentData) -> list[str]:
    return [
        _certify(
            data,
            "The aforementioned resident is recognized as a bona fide member of "
            "this barangay.",
        ),
        build_purpose_paragraph(
            data, _default_request(data, "for residency verification purposes")
        ),
    ]


def _good_moral_body(data: CertificateContentData) -> list[str]:
    return [
        _certify(
            data,
            "The aforementioned resident is known to be of good moral character "
            f"and has no derogatory record within {BARANGAY}.",
        ),
        build_purpose_paragraph(
            data, _default_request(data, "for character verification purposes")
        ),
    ]


def _employment_body(data: CertificateContentData) -> list[str]:
    if data.job_title:
        served = (
            f" and has served {data.employment_period}" if data.employment_period else ""
        )
        job_sentence = (
            f"The aforementioned resident is employed as {data.job_title}{served}."
        )
    else:
        job_sentence = (
            "The aforementioned resident is currently engaged in gainful "
            f"employment within the jurisdiction of {BARANGAY}."
        )
    return [
        _certify(data, job_sentence),
        build_purpose_paragraph(
            data, _default_request(data, "for employment verification purposes")
        ),
    ]


def _no_pending_case_body(data: CertificateContentData) -> list[str]:
    return [
        _certify(
            data,
            "Based on barangay records, the aforementioned resident has no pending "
            f"case or complaint within {BARANGAY}.",
        ),
        build_purpose_paragraph(
            data, _default_request(data, "for legal clearance purposes")
        ),
    ]


def _clearance_body(data: CertificateContentData) -> list[str]:
    return [
        _certify(
            data,
            "The aforementioned resident is of good standing in the community and "
            "has no barangay liability to the best of our knowledge.",
        ),
        build_purpose_paragraph(
            data,
            f"This barangay clearance is being issued upon the request of "
            f"{data.requested_by} for official purposes.",
        ),
    ]


def _income_body(data: CertificateContentData) -> list[str]:
    if data.income and data.income.strip():
        income = f" an annual income of ₱{data.income}"
    else:
        income = " a reported income"
    income_year = f" for the year {data.income_year}" if data.income_year else ""
    return [
        _certify(data, f"The aforementioned resident declares{income}{income_year}."),
        build_purpose_paragraph(
            data, _default_request(data, "for income verification purposes")
        ),
    ]


def _business_closure_body(data: CertificateContentData) -> list[str]:
    business = (
        f"the business named {data.business_name}"
        if data.business_name
        else "their registered business"
    )
    location = f" located at {data.business_location}" if data.business_location else ""
    closure = f" effective {data.closure_date}" if data.closure_date else ""
    return [
        _certify(
            data,
            "The aforementioned resident has formally requested the closure of "
            f"{business}{location}{closure}.",
        ),
        build_purpose_paragraph(
            data, _default_request(data, "to document the closure of the business")
        ),
    ]


def _non_residence_body(data: CertificateContentData) -> list[str]:
    duration = f" for {data.non_residence_duration}" if data.non_residence_duration else ""
    return [
        _certify(
            data,
            f"The aforementioned resident is presently living outside the barangay{duration}.",
        ),
        build_purpose_paragraph(
            data, _default_request(data, "for documentation purposes")
        ),
    ]


def _no_income_body(data: CertificateContentData) -> list[str]:
    support = (
        f" and receives support through {data.support_details}"
        if data.support_details
        else ""
    )
    allowance = f" amounting to ₱{data.allowance_amount}" if data.allowance_amount else ""
    return [
        _certify(
            data,
            f"The aforementioned resident has no source of income{support}{allowance}.",
        ),
        build_purpose_paragraph(
            data, _default_request(data, "for documentation purposes")
        ),
    ]


def _generic_body(data: CertificateContentData) -> list[str]:
    return [
        _certify(data),
        build_purpose_paragraph(data, _default_request(data, "for official purposes")),
    ]


# Evaluated top to bottom; the first match wins. "no income" is listed ahead of
# "income" so the narrower keyword is not shadowed.
CERTIFICATE_TEMPLATES: tuple[CertificateTemplateConfig, ...] = (
    CertificateTemplateConfig(
        id="indigency",
        keywords=("indigency",),
        title_lines=_title("CERTIFICATE", "OF", "INDIGENCY"),
        build_body=_indigency_body,
        preview_description="Certificate of Indigency",
    ),
    CertificateTemplateConfig(
        id="residency",
        keywords=("residency",),
        title_lines=_title("CERTIFICATE", "OF", "RESIDENCY"),
        build_body=_residency_body,
        preview_description="Certificate of Residency",
    ),
    CertificateTemplateConfig(
        id="good-moral",
        keywords=("good moral",),
        title_lines=_title("CERTIFICATE", "OF", "GOOD MORAL", "CHARACTER"),
        build_body=_good_moral_body,
        preview_description="Certificate of Good Moral Character",
    ),
    CertificateTemplateConfig(
        id="employment",
        keywords=("employment",),
        title_lines=_title("CERTIFICATE", "OF", "EMPLOYMENT"),
        build_body=_employment_body,
        preview_description="Certificate of Employment",
    ),
    CertificateTemplateConfig(
        id="no-pending-case",
        keywords=("no pending case",),
        title_lines=_title("CERTIFICATE", "OF", "NO PENDING", "CASE"),
        build_body=_no_pending_case_body,
        preview_description="Certificate of No Pending Case",
    ),
    CertificateTemplateConfig(
        id="barangay-clearance",
        keywords=("barangay clearance", "clearance"),
        title_lines=_title("BARANGAY", "CLEARANCE"),
        build_body=_clearance_body,
        preview_description="Barangay Clearance",
    ),
    CertificateTemplateConfig(
        id="no-income",
        keywords=("no income",),
        title_lines=_title("CERTIFICATE", "OF", "NO INCOME"),
        build_body=_no_income_body,
        preview_description="Certificate of No Income",
    ),
    CertificateTemplateConfig(
        id="income",
        keywords=("income",),
        title_lines=_title("CERTIFICATE", "OF", "INCOME"),
        build_body=_income_body,
        preview_description="Certificate of Income",
    ),
    CertificateTemplateConfig(
        id="business-closure",
        keywords=("business closure",),
        title_lines=_title("BUSINESS", "CLOSURE", "CERTIFICATE"),
        build_body=_business_closure_body,
        preview_description="Business Closure Certification",
    ),
    CertificateTemplateConfig(
        id="non-residence",
        keywords=("non-residence",),
        title_lines=_title("CERTIFICATE", "OF", "NON-RESIDENCE"),
        build_body=_non_residence_body,
        preview_description="Certificate of Non-Residence",
    ),
)


def get_certificate_template_config(cert_type: str | None) -> CertificateTemplateConfig:
    normalized = (cert_type or "").lower()
    for template in CERTIFICATE_TEMPLATES:
        if template.match(normalized):
            return template
    label = cert_type or "Certificate"
    return CertificateTemplateConfig(
        id=GENERIC_TEMPLATE_ID,
        keywords=(),
        title_lines=(TitleLine(spaced_uppercase(label), 22, 30),),
        build_body=_generic_body,
        preview_description=label,
    )


def list_certificate_templates() -> list[tuple[str, str]]:
    return [(tmpl.id, tmpl.preview_description) for tmpl in CERTIFICATE_TEMPLATES]


def resolve_certificate_content(
    data: CertificateContentData,
    official: OfficialInfo,
    layout: CertificateLayoutConfig = CERTIFICATE_LAYOUT,
) -> CertificateContent:
    template = get_certificate_template_config(data.type)
    paragraphs = list(template.build_body(data))
    paragraphs.append(get_issuance_paragraph(resolve_issuance_date(data.generated_on)))
    return CertificateContent(
        template_id=template.id,
        description=template.preview_description,
        title_lines=template.title_lines,
        paragraphs=tuple(paragraphs),
        signature_name=(official.name or "").upper(),
        signature_position=official.position or "",
        footer_lines=tuple(line.text for line in layout.footer.lines),
    )
