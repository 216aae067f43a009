# grouping.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from functools import cmp_to_key
from typing import Dict, List, Optional, Tuple

from normalize import (
    CATEGORY_PRIORITY,
    UNKNOWN,
    ServiceCategory,
    sanitize_for_filename,
)


@dataclass(frozen=True)
class PageDescriptor:
    source: str
    page: int                      # 1-based within its source
    company_raw: Optional[str]
    company_key: str
    category: ServiceCategory = ServiceCategory.OTHERS
    name_priority: int = 0
    source_order: int = 0
    sort_by_category: bool = False
    amount: Optional[Decimal] = None


def _cmp(a: int, b: int) -> int:
    return (a > b) - (a < b)


def compare_pages(p1: PageDescriptor, p2: PageDescriptor) -> int:
    """source order -> (both category-sorted) category priority -> page number"""
    if p1.source_order != p2.source_order:
        return _cmp(p1.source_order, p2.source_order)

    if p1.sort_by_category and p2.sort_by_category:
        o1 = CATEGORY_PRIORITY.get(p1.category, CATEGORY_PRIORITY[ServiceCategory.OTHERS])
        o2 = CATEGORY_PRIORITY.get(p2.category, CATEGORY_PRIORITY[ServiceCategory.OTHERS])
        if o1 != o2:
            return _cmp(o1, o2)

    return _cmp(p1.page, p2.page)


def resolve_display_name(pages: List[PageDescriptor]) -> str:
    """Raw name from the most trusted source that has one; UNKNOWN otherwise."""
    for p in sorted(pages, key=lambda d: d.name_priority):
        if p.company_raw is None:
            continue
        name = p.company_raw.strip()
        if name:
            return name
    return UNKNOWN


@dataclass(frozen=True)
class FinalizedCompany:
    company_key: str
    display_name: str
    pages: Tuple[PageDescriptor, ...]

    @property
    def file_name(self) -> str:
        return sanitize_for_filename(self.display_name)

    @property
    def page_refs(self) -> List[Tuple[str, int]]:
        return [(p.source, p.page) for p in self.pages]


@dataclass
class CompanyBucket:
    company_key: str
    pages: List[PageDescriptor] = field(default_factory=list)
    finalized: Optional[FinalizedCompany] = None

    def add(self, page: PageDescriptor) -> None:
        if self.finalized is not None:
            raise RuntimeError(f"bucket {self.company_key!r} is already finalized")
        if page.company_key != self.company_key:
            raise ValueError(
                f"page key {page.company_key!r} does not belong in bucket {self.company_key!r}"
            )
        self.pages.append(page)

    def finalize(self) -> FinalizedCompany:
        if self.finalized is None:
            ordered = sorted(self.pages, key=cmp_to_key(compare_pages))
            self.finalized = FinalizedCompany(
                company_key=self.company_key,
                display_name=resolve_display_name(ordered),
                pages=tuple(ordered),
            )
        return self.finalized


class Grouper:
    """Collects pages per company key in first-seen order."""

    def __init__(self) -> None:
        self._buckets: Dict[str, CompanyBucket] = {}

    def add(self, page: PageDescriptor) -> None:
        bucket = self._buckets.get(page.company_key)
        if bucket is None:
            bucket = self._buckets[page.company_key] = CompanyBucket(page.company_key)
        bucket.add(page)

    def __len__(self) -> int:
        return len(self._buckets)

    def keys(self) -> List[str]:
        return list(self._buckets)

    def finalize(self) -> List[FinalizedCompany]:
        return [b.finalize() for b in self._buckets.values()]
