# report_pipeline.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils import column_index_from_string
from openpyxl.worksheet.worksheet import Worksheet

from aggregate import AggregationState, grand_total
from grouping import FinalizedCompany
from normalize import UNKNOWN, ServiceCategory, category_code


@dataclass(frozen=True)
class TemplateLayout:
    name_cell: str = "A2"
    code_col: str = "D"          # TAX / ACC / BPO / SEC / OTHERS / CHSS Invoice
    amount_col: str = "B"
    total_label_col: str = "A"
    primary_label: str = "CHSS INVOICE"
    total_label: str = "Total"


DEFAULT_LAYOUT = TemplateLayout()


def build_code_index(ws: Worksheet, layout: TemplateLayout = DEFAULT_LAYOUT) -> Dict[str, int]:
    """One pass over the code column: upper-cased label -> row number (later rows win)."""
    col = column_index_from_string(layout.code_col)
    index: Dict[str, int] = {}
    for (cell,) in ws.iter_rows(min_col=col, max_col=col):
        if isinstance(cell.value, str):
            code = cell.value.strip().upper()
            if code:
                index[code] = cell.row
    return index


def find_total_row(ws: Worksheet, layout: TemplateLayout = DEFAULT_LAYOUT) -> Optional[int]:
    col = column_index_from_string(layout.total_label_col)
    want = layout.total_label.strip().lower()
    for (cell,) in ws.iter_rows(min_col=col, max_col=col):
        if isinstance(cell.value, str) and cell.value.strip().lower() == want:
            return cell.row
    return None


def fill_company_report(
    ws: Worksheet,
    display_name: str,
    category_totals: Optional[Mapping[ServiceCategory, Decimal]],
    primary_total: Optional[Decimal],
    layout: TemplateLayout = DEFAULT_LAYOUT,
) -> Dict[str, Decimal]:
    """
    Write one company's figures into the template sheet.
    Returns what was written, keyed by anchor label.
    Amounts whose anchor row is missing are dropped.
    """
    amount_col = column_index_from_string(layout.amount_col)
    written: Dict[str, Decimal] = {}

    ws[layout.name_cell] = display_name

    codes = build_code_index(ws, layout)

    if category_totals:
        for category, amt in category_totals.items():
            if amt is None:
                continue
            code = category_code(ServiceCategory(category))
            row = codes.get(code)
            if row is None:
                continue
            ws.cell(row=row, column=amount_col, value=float(amt))
            written[code] = amt

    if primary_total is not None:
        label = layout.primary_label.strip().upper()
        row = codes.get(label)
        if row is not None:
            ws.cell(row=row, column=amount_col, value=float(primary_total))
            written[label] = primary_total

    total = grand_total(primary_total, category_totals)
    if total > 0:
        row = find_total_row(ws, layout)
        if row is not None:
            ws.cell(row=row, column=amount_col, value=float(total))
            written[layout.total_label] = total
        else:
            print(f"[WARN] No '{layout.total_label}' row found in column "
                  f"{layout.total_label_col} for {display_name}")

    return written


def write_company_report(
    template_path: Path,
    out_path: Path,
    display_name: str,
    category_totals: Optional[Mapping[ServiceCategory, Decimal]],
    primary_total: Optional[Decimal],
    layout: TemplateLayout = DEFAULT_LAYOUT,
) -> Optional[Path]:
    """Copy-on-write of the template for one company. Returns None when skipped."""
    template_path = Path(template_path)
    if not template_path.exists():
        print(f"[WARN] Template not found: {template_path}, skip Excel for {display_name}")
        return None

    wb = load_workbook(template_path)
    try:
        ws = wb.worksheets[0]
        fill_company_report(ws, display_name, category_totals, primary_total, layout)
        wb.save(out_path)
    finally:
        wb.close()
    return Path(out_path)


def has_report_figures(company_key: str, totals: AggregationState) -> bool:
    return bool(totals.categories_for(company_key)) or totals.primary_for(company_key) is not None


SUMMARY_COLUMNS = (
    ["company_key", "display_name", "file_name", "pages", "primary_total"]
    + [c.value for c in ServiceCategory]
    + ["grand_total", "unknown_key"]
)


def build_summary(companies: List[FinalizedCompany], totals: AggregationState) -> pd.DataFrame:
    rows = []
    for c in companies:
        cats = totals.categories_for(c.company_key) or {}
        primary = totals.primary_for(c.company_key)
        row = {
            "company_key": c.company_key,
            "display_name": c.display_name,
            "file_name": c.file_name,
            "pages": len(c.pages),
            "primary_total": float(primary) if primary is not None else None,
        }
        for cat in ServiceCategory:
            amt = cats.get(cat)
            row[cat.value] = float(amt) if amt is not None else None
        row["grand_total"] = float(totals.grand_total(c.company_key))
        # pages that failed extraction all collapse into this one bucket
        row["unknown_key"] = c.company_key == UNKNOWN
        rows.append(row)
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def write_summary(companies: List[FinalizedCompany], totals: AggregationState, out_path: Path) -> Path:
    df = build_summary(companies, totals)
    df.to_excel(out_path, index=False, engine="openpyxl")
    print(f"Wrote: {out_path}")
    return Path(out_path)
