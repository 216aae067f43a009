# extractors.py
from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional

LINE_SPLIT_RE = re.compile(r"\r?\n")
COL_SPLIT = re.compile(r"\s{2,}")
# 1,234,567.89 | 1234567.89 | 1234; an ungrouped run of digits is read whole
AMOUNT_RE = re.compile(r"(\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+(?:\.\d{2})?)")

INVOICE_HEADER = "Invoice"
SOA_HEADER = "Statement of Account"
TO_LABEL_WIDE = "To  : "
TO_LABEL = "To : "
SERVICE_TYPE_LABEL = "Service Type :"
CHSS_TOTAL_MARKER = "Total payable inclusive of service tax :"
SHAREBIZ_TOTAL_MARKER = "Total :"


class SourceKind(str, Enum):
    PRIMARY_INVOICE = "primary_invoice"
    CATEGORIZED_INVOICE = "categorized_invoice"
    STATEMENT_OF_ACCOUNT = "statement_of_account"


@dataclass(frozen=True)
class PageFields:
    company_raw: Optional[str] = None
    service_type_raw: Optional[str] = None
    amount_raw: Optional[str] = None


EMPTY_FIELDS = PageFields()


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """'1,234.56' -> Decimal('1234.56'); empty or malformed -> None."""
    if raw is None:
        return None
    s = raw.strip().replace(",", "")
    if not s:
        return None
    try:
        val = Decimal(s)
    except InvalidOperation:
        return None
    if not val.is_finite():
        return None
    return val


def find_amount_after_marker(text: Optional[str], marker: Optional[str]) -> Optional[str]:
    """
    First amount-looking token after the first occurrence of `marker`.
    Returned verbatim (commas kept); callers run it through parse_amount.
    """
    if text is None or not marker:
        return None
    idx = text.find(marker)
    if idx < 0:
        return None
    m = AMOUNT_RE.search(text, idx + len(marker))
    return m.group(1) if m else None


def _split_lines(text: str) -> List[str]:
    lines = LINE_SPLIT_RE.split(text)
    # trailing blank lines carry nothing and must not count as "the next line"
    while lines and lines[-1] == "":
        lines.pop()
    return lines


def _after_to_label(line: str) -> Optional[str]:
    for label in (TO_LABEL_WIDE, TO_LABEL):
        idx = line.find(label)
        if idx >= 0:
            return line[idx + len(label):]
    return None


def extract_primary_invoice(page_text: Optional[str]) -> PageFields:
    """
    CHSS invoice layout:
        Invoice
        To : <company>   Doc No ...
        ...
        Total payable inclusive of service tax : 1,234.56
    """
    if not page_text:
        return EMPTY_FIELDS

    lines = _split_lines(page_text)
    target: Optional[str] = None
    for i, line in enumerate(lines):
        if INVOICE_HEADER in line:
            if i + 1 < len(lines):
                target = lines[i + 1]
            break

    if target is None:
        target = next((ln for ln in lines if TO_LABEL in ln), None)

    company = None
    if target is not None:
        after = _after_to_label(target)
        if after is not None:
            cut = after.find(" Doc")
            company = (after[:cut] if cut >= 0 else after).strip()

    amount = find_amount_after_marker(page_text, CHSS_TOTAL_MARKER)
    return PageFields(company, None, amount)


def extract_categorized_invoice(page_text: Optional[str]) -> PageFields:
    """
    ShareBiz invoice layout, one service type per page:
        Invoice
        To  : <company> (<ref>)   Service Type : "TAX"   ...
        ...
        Total : 1,234.56
    """
    if not page_text:
        return EMPTY_FIELDS

    lines = _split_lines(page_text)
    target: Optional[str] = None
    for i, line in enumerate(lines):
        if INVOICE_HEADER in line:
            if i + 1 < len(lines):
                target = lines[i + 1]
            break

    if target is None:
        target = next((ln for ln in lines if TO_LABEL_WIDE in ln or TO_LABEL in ln), None)

    company = None
    service_type = None
    if target is not None:
        after = _after_to_label(target)
        if after is not None:
            cut = after.find(" (")
            company = (after[:cut] if cut >= 0 else after).strip()

        st_idx = target.find(SERVICE_TYPE_LABEL)
        if st_idx >= 0:
            rest = target[st_idx + len(SERVICE_TYPE_LABEL):].strip()
            if rest.startswith('"'):
                rest = rest[1:].strip()
            parts = COL_SPLIT.split(rest)
            raw = (parts[0] if parts else rest).replace('"', "").strip()
            service_type = raw or None

    amount = find_amount_after_marker(page_text, SHAREBIZ_TOTAL_MARKER)
    return PageFields(company, service_type, amount)


def extract_statement_of_account(page_text: Optional[str]) -> PageFields:
    """
    SOA layout: the company sits in the first column of the line after the
    'Statement of Account' heading. No service type, no amount.
    """
    if not page_text:
        return EMPTY_FIELDS

    lines = _split_lines(page_text)
    target: Optional[str] = None
    for i, line in enumerate(lines):
        if SOA_HEADER in line:
            if i + 1 < len(lines):
                target = lines[i + 1]
            break

    company = None
    if target is not None:
        parts = COL_SPLIT.split(target)
        company = (parts[0] if parts else target).strip()

    return PageFields(company, None, None)


EXTRACTORS = {
    SourceKind.PRIMARY_INVOICE: extract_primary_invoice,
    SourceKind.CATEGORIZED_INVOICE: extract_categorized_invoice,
    SourceKind.STATEMENT_OF_ACCOUNT: extract_statement_of_account,
}


def extract_page(kind: SourceKind, page_text: Optional[str]) -> PageFields:
    return EXTRACTORS[SourceKind(kind)](page_text)
