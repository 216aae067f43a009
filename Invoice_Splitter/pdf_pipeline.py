# pdf_pipeline.py
from __future__ import annotations

import hashlib
import re
import textwrap
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import fitz
from pypdf import PdfReader

from aggregate import AggregationState, Aggregator
from extractors import SourceKind, extract_page, parse_amount
from grouping import FinalizedCompany, Grouper, PageDescriptor
from normalize import normalize_company_key, normalize_service_type

TEXT_BACKENDS = ("pymupdf", "pypdf")


class TotalsRole(str, Enum):
    NONE = "none"
    PRIMARY = "primary"      # baseline invoice, one total per company
    CATEGORY = "category"    # itemized invoice, one total per service category


@dataclass(frozen=True)
class SourceConfig:
    path: str
    kind: SourceKind
    name_priority: int
    source_order: int
    sort_by_category: bool = False
    totals: TotalsRole = TotalsRole.NONE

    @property
    def source_id(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class ScanResult:
    companies: List[FinalizedCompany]
    totals: AggregationState
    page_count: int


def _safe_name(stem: str, maxlen: int = 60) -> str:
    """Filesystem-safe, short name with a hash suffix to avoid collisions."""
    base = re.sub(r"[^A-Za-z0-9._-]+", "_", stem).strip("_")
    if len(base) <= maxlen:
        return base
    h = hashlib.md5(stem.encode("utf-8")).hexdigest()[:8]
    return f"{base[:maxlen-9]}_{h}"


def describe_page(src: SourceConfig, page: int, text: Optional[str]) -> PageDescriptor:
    """Run one page through its source's extractor and normalize what came out."""
    fields = extract_page(src.kind, text)
    return PageDescriptor(
        source=src.source_id,
        page=page,
        company_raw=fields.company_raw,
        company_key=normalize_company_key(fields.company_raw),
        category=normalize_service_type(fields.service_type_raw),
        name_priority=src.name_priority,
        source_order=src.source_order,
        sort_by_category=src.sort_by_category,
        amount=parse_amount(fields.amount_raw),
    )


def scan_pages(
    sources: Iterable[Tuple[SourceConfig, Iterable[Tuple[int, str]]]],
    dump_dir: Optional[Path] = None,
) -> ScanResult:
    """
    Single ordered pass over every (page index, text) pair of every source.
    Totals and buckets are owned here and handed back frozen.
    """
    agg = Aggregator()
    grouper = Grouper()
    n = 0

    for pos, (src, pages) in enumerate(sources, start=1):
        # position prefix keeps same-named files from different folders apart
        safe = f"{pos:02d}_{_safe_name(Path(src.source_id).stem)}"
        for page_num, text in pages:
            info = describe_page(src, page_num, text)

            if src.totals is TotalsRole.CATEGORY:
                agg.add_category_amount(info.company_key, info.category, info.amount)
            elif src.totals is TotalsRole.PRIMARY:
                agg.add_primary_amount(info.company_key, info.amount)

            grouper.add(info)
            n += 1

            if dump_dir is not None:
                dump_dir.mkdir(parents=True, exist_ok=True)
                (dump_dir / f"{safe}_p{page_num:02d}.txt").write_text(text or "", encoding="utf-8")
                print(f"[DBG] {Path(src.source_id).name} p{page_num}: key={info.company_key} "
                      f"type={info.category.value} amount={info.amount}")

    return ScanResult(companies=grouper.finalize(), totals=agg.freeze(), page_count=n)


def open_sources(sources: Sequence[SourceConfig], stack: ExitStack) -> Dict[str, fitz.Document]:
    """Open every source up front; `stack` closes them on any exit path."""
    docs: Dict[str, fitz.Document] = {}
    for src in sources:
        doc = fitz.open(src.source_id)
        stack.callback(doc.close)
        docs[src.source_id] = doc
    return docs


def _pypdf_page_texts(pdf_path: str) -> List[str]:
    reader = PdfReader(pdf_path)
    out: List[str] = []
    for page in reader.pages:
        try:
            # layout mode indents every line by its x offset; drop the shared margin
            txt = page.extract_text(extraction_mode="layout", layout_mode_space_vertically=False) or ""
            out.append(textwrap.dedent(txt))
        except Exception as e:
            print(f"[WARN] pypdf could not read a page of {pdf_path}: {type(e).__name__}: {e}")
            out.append("")
    return out


def iter_page_texts(doc: fitz.Document, pdf_path: str, backend: str = "pymupdf") -> Iterator[Tuple[int, str]]:
    """
    Yield (1-based page number, text). PyMuPDF keeps reading order with
    sort=True; pypdf's layout mode keeps the column spacing. If PyMuPDF
    fails on the document we switch to pypdf for the rest of it.
    """
    if backend not in TEXT_BACKENDS:
        raise ValueError(f"unknown text backend {backend!r}; expected one of {TEXT_BACKENDS}")

    texts: Optional[List[str]] = None
    if backend == "pymupdf":
        try:
            texts = [page.get_text("text", sort=True) or "" for page in doc]
        except Exception as e:
            print(f"[WARN] PyMuPDF text extraction failed for {pdf_path}: {e}; trying pypdf")

    if texts is None:
        texts = _pypdf_page_texts(pdf_path)

    for i, txt in enumerate(texts, start=1):
        if not txt.strip():
            print(f"[WARN] {Path(pdf_path).name} p{i}: no text layer")
        yield i, txt


def write_company_pdf(company: FinalizedCompany, docs: Dict[str, fitz.Document], out_path: Path) -> Path:
    """Copy the company's pages, in their final order, into one PDF."""
    dest = fitz.open()
    try:
        for source, page in company.page_refs:
            dest.insert_pdf(docs[source], from_page=page - 1, to_page=page - 1)
        dest.save(str(out_path))
    finally:
        dest.close()
    return out_path
