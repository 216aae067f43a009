"""Shared fixtures for the Invoice Splitter test suite."""

from pathlib import Path

import fitz
import pytest
from openpyxl import Workbook


# label rows of the per-company template (row -> (col A, col D))
TEMPLATE_ROWS = {
    1: ("Company", None),
    4: ("Tax filing", "TAX"),
    5: ("Accounting", "ACC"),
    6: ("BPO", "BPO"),
    7: ("Secretarial", "SEC"),
    8: ("Others", "Others"),
    9: ("CHSS", "CHSS Invoice"),
    10: ("Total", None),
}


def _build_template(rows=TEMPLATE_ROWS) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    for r, (label, code) in rows.items():
        if label is not None:
            ws.cell(row=r, column=1, value=label)
        if code is not None:
            ws.cell(row=r, column=4, value=code)
    return wb


def _make_pdf(path: Path, pages: list[str]) -> Path:
    """One PDF page per text; each '\\n' starts a new line."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text, fontsize=10)
    doc.save(str(path))
    doc.close()
    return path


def _pdf_texts(path: Path) -> list[str]:
    with fitz.open(str(path)) as doc:
        return [page.get_text("text") for page in doc]


@pytest.fixture
def template_ws():
    """Worksheet of an in-memory template."""
    return _build_template().active


@pytest.fixture
def template_path(tmp_path):
    p = tmp_path / "Template.xlsx"
    _build_template().save(p)
    return p


@pytest.fixture
def billing_run(tmp_path):
    """The three source PDFs of a small billing run for two companies."""
    input_dir = tmp_path / "input"
    input_dir.mkdir()
    _make_pdf(input_dir / "INVOICE - CHSS.pdf", [
        "Tax Invoice\nTo : Acme Corp Doc 001\nTotal payable inclusive of service tax : 1,000.00",
        "Tax Invoice\nTo : Beta Pte Ltd Doc 002\nTotal payable inclusive of service tax : 80.00",
    ])
    _make_pdf(input_dir / "SOA - SHAREBIZ.pdf", [
        "Statement of Account\nACME CORP",
        "Statement of Account\nBeta Pte. Ltd.",
    ])
    _make_pdf(input_dir / "INVOICE - SHAREBIZ.pdf", [
        'Invoice\nTo : Acme.Corp (123) Service Type : "SECRETARIAL"\nTotal : 40.00',
        'Invoice\nTo : Acme Corp (123) Service Type : "TAX"\nTotal : 250.50',
        'Invoice\nTo : Beta Pte Ltd (9) Service Type : "BPO"\nTotal : 20.00',
    ])
    return input_dir
