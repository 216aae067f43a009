# aggregate.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from normalize import ServiceCategory


@dataclass(frozen=True)
class AggregationState:
    """Read-only totals after the scan pass, keyed by normalized company key."""
    category_totals: Mapping[str, Mapping[ServiceCategory, Decimal]] = field(default_factory=dict)
    primary_totals: Mapping[str, Decimal] = field(default_factory=dict)

    def categories_for(self, company_key: str) -> Optional[Mapping[ServiceCategory, Decimal]]:
        return self.category_totals.get(company_key)

    def primary_for(self, company_key: str) -> Optional[Decimal]:
        return self.primary_totals.get(company_key)

    def grand_total(self, company_key: str) -> Decimal:
        return grand_total(self.primary_for(company_key), self.categories_for(company_key))


class Aggregator:
    """
    Running totals for one scan pass. Category totals come only from the
    itemized source, primary totals only from the baseline invoice source;
    the two are kept apart until render time.
    """

    def __init__(self) -> None:
        self._category: Dict[str, Dict[ServiceCategory, Decimal]] = {}
        self._primary: Dict[str, Decimal] = {}
        self._frozen = False

    def add_category_amount(self, company_key: str, category: ServiceCategory,
                            amount: Optional[Decimal]) -> None:
        self._check_open()
        if amount is None:
            return
        per_company = self._category.setdefault(company_key, {})
        per_company[category] = per_company.get(category, Decimal(0)) + amount

    def add_primary_amount(self, company_key: str, amount: Optional[Decimal]) -> None:
        self._check_open()
        if amount is None:
            return
        self._primary[company_key] = self._primary.get(company_key, Decimal(0)) + amount

    def freeze(self) -> AggregationState:
        self._frozen = True
        return AggregationState(
            category_totals=MappingProxyType(
                {k: MappingProxyType(dict(v)) for k, v in self._category.items()}
            ),
            primary_totals=MappingProxyType(dict(self._primary)),
        )

    def _check_open(self) -> None:
        if self._frozen:
            raise RuntimeError("Aggregator is frozen; totals are read-only after the scan")


def grand_total(primary: Optional[Decimal],
                categories: Optional[Mapping[ServiceCategory, Decimal]]) -> Decimal:
    total = Decimal(0)
    if primary is not None:
        total += primary
    if categories:
        for amt in categories.values():
            if amt is not None:
                total += amt
    return total
