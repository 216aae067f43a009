#!/usr/bin/env python3
from __future__ import annotations

import argparse
from contextlib import ExitStack
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from extractors import SourceKind
from pdf_pipeline import (
    TEXT_BACKENDS,
    ScanResult,
    SourceConfig,
    TotalsRole,
    iter_page_texts,
    open_sources,
    scan_pages,
    write_company_pdf,
)
from report_pipeline import (
    DEFAULT_LAYOUT,
    TemplateLayout,
    has_report_figures,
    write_company_report,
    write_summary,
)

DEFAULT_INPUT_DIR = "input"
DEFAULT_TEMPLATE = "template/Template.xlsx"
DEFAULT_OUT_DIR = "output/companies"

CHSS_INVOICE = "INVOICE - CHSS.pdf"
SHAREBIZ_SOA = "SOA - SHAREBIZ.pdf"
SHAREBIZ_INVOICE = "INVOICE - SHAREBIZ.pdf"


def default_sources(input_dir: str | Path = DEFAULT_INPUT_DIR) -> List[SourceConfig]:
    """
    The three documents of one billing run, in output order:
      1) CHSS invoices          - most trusted name, feeds the CHSS total
      2) ShareBiz SOA           - name only
      3) ShareBiz invoices      - pages sorted by service type, feeds category totals
    """
    root = Path(input_dir)
    return [
        SourceConfig(str(root / CHSS_INVOICE), SourceKind.PRIMARY_INVOICE,
                     name_priority=1, source_order=1, sort_by_category=False,
                     totals=TotalsRole.PRIMARY),
        SourceConfig(str(root / SHAREBIZ_SOA), SourceKind.STATEMENT_OF_ACCOUNT,
                     name_priority=2, source_order=2, sort_by_category=False,
                     totals=TotalsRole.NONE),
        SourceConfig(str(root / SHAREBIZ_INVOICE), SourceKind.CATEGORIZED_INVOICE,
                     name_priority=3, source_order=3, sort_by_category=True,
                     totals=TotalsRole.CATEGORY),
    ]


def run_splitter(
    sources: Sequence[SourceConfig],
    out_dir: str | Path = DEFAULT_OUT_DIR,
    template_path: str | Path = DEFAULT_TEMPLATE,
    text_backend: str = "pymupdf",
    dump_pages: bool = False,
    summary: bool = False,
    layout: TemplateLayout = DEFAULT_LAYOUT,
) -> ScanResult:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    missing = [s.source_id for s in sources if not Path(s.source_id).exists()]
    if missing:
        raise FileNotFoundError(f"Source PDF(s) not found: {', '.join(missing)}")

    dump_dir = out_dir / "debug_pages" if dump_pages else None

    with ExitStack() as stack:
        docs = open_sources(sources, stack)
        result = scan_pages(
            ((src, iter_page_texts(docs[src.source_id], src.source_id, text_backend)) for src in sources),
            dump_dir=dump_dir,
        )
        print(f"[INFO] Pages scanned: {result.page_count}  Companies: {len(result.companies)}")

        for company in result.companies:
            name = company.file_name
            try:
                write_company_pdf(company, docs, out_dir / f"{name}.pdf")
                print(f"PDF Created for {name}")

                if has_report_figures(company.company_key, result.totals):
                    written = write_company_report(
                        Path(template_path),
                        out_dir / f"{name}.xlsx",
                        company.display_name,
                        result.totals.categories_for(company.company_key),
                        result.totals.primary_for(company.company_key),
                        layout,
                    )
                    if written is not None:
                        print(f"Excel Created for {name}")
            except Exception as e:
                print(f"[WARN] Could not write outputs for {name}: {type(e).__name__}: {e}")

    if summary:
        write_summary(result.companies, result.totals, out_dir / "summary.xlsx")

    return result


def sources_from_args(args: argparse.Namespace) -> List[SourceConfig]:
    sources = default_sources(args.input_dir)
    overrides = {
        SourceKind.PRIMARY_INVOICE: args.chss,
        SourceKind.STATEMENT_OF_ACCOUNT: args.soa,
        SourceKind.CATEGORIZED_INVOICE: args.sharebiz,
    }
    return [replace(s, path=str(overrides[s.kind])) if overrides.get(s.kind) else s for s in sources]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="invoice-splitter",
                                 description="Split and regroup invoice PDFs per company, with an Excel summary per company.")
    ap.add_argument("--input-dir", default=DEFAULT_INPUT_DIR, help=f"Folder holding the three source PDFs (default: {DEFAULT_INPUT_DIR})")
    ap.add_argument("--chss", help=f"CHSS invoice PDF (default: <input-dir>/{CHSS_INVOICE})")
    ap.add_argument("--soa", help=f"ShareBiz statement of account PDF (default: <input-dir>/{SHAREBIZ_SOA})")
    ap.add_argument("--sharebiz", help=f"ShareBiz invoice PDF (default: <input-dir>/{SHAREBIZ_INVOICE})")
    ap.add_argument("--template", default=DEFAULT_TEMPLATE, help=f"Excel template (default: {DEFAULT_TEMPLATE})")
    ap.add_argument("--out", default=DEFAULT_OUT_DIR, help=f"Output folder (default: {DEFAULT_OUT_DIR})")
    ap.add_argument("--text-backend", default="pymupdf", choices=TEXT_BACKENDS, help="PDF text extraction backend (default: pymupdf)")
    ap.add_argument("--dump-pages", action="store_true", help="Write each page's extracted text to <out>/debug_pages and trace extraction")
    ap.add_argument("--summary", action="store_true", help="Also write <out>/summary.xlsx with one row per company")
    return ap.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    print("Generation Started...")
    run_splitter(
        sources_from_args(args),
        out_dir=args.out,
        template_path=args.template,
        text_backend=args.text_backend,
        dump_pages=args.dump_pages,
        summary=args.summary,
    )
    print("Generation Completed...")


if __name__ == "__main__":
    main()
