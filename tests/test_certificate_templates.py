import pytest

from barangay_certs.models import CertificateContentData, OfficialInfo
from barangay_certs.shared.certificate_templates import (
    CERTIFICATE_TEMPLATES,
    GENERIC_TEMPLATE_ID,
    get_certificate_template_config,
    list_certificate_templates,
    resolve_certificate_content,
    spaced_uppercase,
)


def _data(**overrides):
    values = dict(
        id="REQ-9",
        type="Certificate of Residency",
        requested_by="Maria Santos",
        purpose="",
        generated_on="2024-03-02",
    )
    values.update(overrides)
    return CertificateContentData(**values)


@pytest.mark.parametrize(
    "cert_type, expected",
    [
        ("Certificate of Indigency", "indigency"),
        ("certificate of residency", "residency"),
        ("Certificate of Good Moral Character", "good-moral"),
        ("Certificate of Employment", "employment"),
        ("Certificate of No Pending Case", "no-pending-case"),
        ("Barangay Clearance", "barangay-clearance"),
        ("Certificate of Income", "income"),
        ("Certificate of No Income", "no-income"),
        ("Business Closure Certificate", "business-closure"),
        ("Certificate of Non-Residence", "non-residence"),
    ],
)
def test_template_selection_by_keyword(cert_type, expected):
    assert get_certificate_template_config(cert_type).id == expected


def test_first_match_wins_in_table_order():
    for cert_type in ("Indigency and Residency", "Residency clearance"):
        chosen = get_certificate_template_config(cert_type)
        first = next(t for t in CERTIFICATE_TEMPLATES if t.match(cert_type))
        assert chosen.id == first.id
    assert get_certificate_template_config("Indigency and Residency").id == "indigency"


def test_generic_fallback_spaces_title():
    template = get_certificate_template_config("Pet Ownership")
    assert template.id == GENERIC_TEMPLATE_ID
    assert template.preview_description == "Pet Ownership"
    assert [line.text for line in template.title_lines] == ["P E T  O W N E R S H I P"]
    assert template.title_lines[0].font_size == 22


def test_generic_fallback_for_missing_type():
    template = get_certificate_template_config(None)
    assert template.id == GENERIC_TEMPLATE_ID
    assert template.preview_description == "Certificate"


def test_spaced_uppercase_collapses_word_gaps():
    assert spaced_uppercase("Good Moral") == "G O O D  M O R A L"
    assert spaced_uppercase("abc") == "A B C"


def test_title_of_line_uses_smaller_size():
    lines = get_certificate_template_config("Certificate of Indigency").title_lines
    assert [line.text for line in lines] == [
        "C E R T I F I C A T E",
        "O F",
        "I N D I G E N C Y",
    ]
    assert lines[1].font_size == 20
    assert lines[1].margin_bottom == 25


def test_list_templates_matches_table():
    listed = list_certificate_templates()
    assert [tid for tid, _ in listed] == [t.id for t in CERTIFICATE_TEMPLATES]
    assert ("barangay-clearance", "Barangay Clearance") in listed


def test_resolve_content_for_indigency(indigency, official):
    content = resolve_certificate_content(indigency, official)
    assert content.template_id == "indigency"
    first = content.paragraphs[0]
    assert first.startswith("This is to certify that JUAN DELA CRUZ, of legal age")
    assert "123 Purok 1" in first
    assert "Brgy. Malinta, Los Baños, Laguna" in first
    assert content.paragraphs[-1] == "Given this 15th day of January, 2024."
    assert content.signature_name == "JESUS DE UNA"
    assert content.signature_position == "Punong Barangay"
    assert len(content.footer_lines) == 3


def test_purpose_paragraph_uses_purpose_when_given():
    content = resolve_certificate_content(
        _data(purpose="scholarship application"), OfficialInfo("A", "B")
    )
    assert (
        "This certification is being issued upon the request of Maria Santos "
        "for scholarship application." in content.paragraphs
    )


def test_purpose_paragraph_defaults_when_blank():
    content = resolve_certificate_content(_data(purpose="   "), OfficialInfo("A", "B"))
    assert any("for residency verification purposes." in p for p in content.paragraphs)


def test_address_clause_omitted_without_address():
    content = resolve_certificate_content(_data(address=""), OfficialInfo("A", "B"))
    assert "residing at" not in content.paragraphs[0]
    assert "MARIA SANTOS, of legal age, is a resident of" in content.paragraphs[0]


def test_income_body_includes_amount_and_year():
    data = _data(type="Certificate of Income", income="120,000", income_year="2023")
    body = resolve_certificate_content(data, OfficialInfo("A", "B")).paragraphs[0]
    assert "an annual income of ₱120,000 for the year 2023." in body


def test_no_income_body_not_shadowed_by_income():
    data = _data(type="Certificate of No Income", support_details="family remittances")
    content = resolve_certificate_content(data, OfficialInfo("A", "B"))
    assert content.template_id == "no-income"
    assert "no source of income and receives support through family remittances" in content.paragraphs[0]


def test_employment_body_with_and_without_job():
    with_job = resolve_certificate_content(
        _data(type="Certificate of Employment", job_title="Clerk", employment_period="2 years"),
        OfficialInfo("A", "B"),
    ).paragraphs[0]
    assert "employed as Clerk and has served 2 years." in with_job
    without_job = resolve_certificate_content(
        _data(type="Certificate of Employment"), OfficialInfo("A", "B")
    ).paragraphs[0]
    assert "gainful employment" in without_job


def test_business_closure_body():
    data = _data(
        type="Business Closure",
        business_name="Santos Sari-Sari",
        business_location="Purok 3",
        closure_date="March 1, 2024",
    )
    body = resolve_certificate_content(data, OfficialInfo("A", "B")).paragraphs[0]
    assert "the business named Santos Sari-Sari located at Purok 3 effective March 1, 2024." in body


def test_official_name_is_uppercased_and_blank_tolerated():
    content = resolve_certificate_content(_data(), OfficialInfo("", ""))
    assert content.signature_name == ""
    assert content.signature_position == ""


def test_from_mapping_accepts_camel_case():
    data = CertificateContentData.from_mapping(
        {
            "id": 7,
            "type": "Barangay Clearance",
            "requestedBy": "Ana Reyes",
            "generatedOn": "2024-02-01",
            "hasSignature": "true",
            "signatureUrl": "https://example.test/sig.png",
            "unknownField": "ignored",
        }
    )
    assert data.id == "7"
    assert data.requested_by == "Ana Reyes"
    assert data.purpose == ""
    assert data.has_signature is True
    assert data.signature_url == "https://example.test/sig.png"


def test_unknown_type_title_is_spaced_input():
    template = get_certificate_template_config("Totally Unknown Cert")
    assert template.id == GENERIC_TEMPLATE_ID
    assert template.title_lines[0].text == spaced_uppercase("Totally Unknown Cert")
    assert "   " not in template.title_lines[0].text


@pytest.mark.parametrize(
    "cert_type, line",
    [
        ("Certificate of Good Moral Character", "G O O D   M O R A L"),
        ("Certificate of No Pending Case", "N O   P E N D I N G"),
        ("Certificate of No Income", "N O   I N C O M E"),
    ],
)
def test_registered_titles_keep_wide_word_gaps(cert_type, line):
    texts = [t.text for t in get_certificate_template_config(cert_type).title_lines]
    assert texts[2] == line
