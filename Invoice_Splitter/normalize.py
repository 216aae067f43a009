# normalize.py
from __future__ import annotations

import re
from enum import Enum
from typing import Optional

UNKNOWN = "UNKNOWN"

KEY_STRIP_RE = re.compile(r"[ .]")
FILENAME_BAD_RE = re.compile(r'[\\/:*?"<>|]')


class ServiceCategory(str, Enum):
    TAX = "TAX"
    ACCOUNT = "ACCOUNT"
    BPO = "BPO"
    SECRETARY = "SECRETARY"
    OTHERS = "OTHERS"


# intra-company order for the category-sorted source
CATEGORY_PRIORITY = {
    ServiceCategory.TAX: 1,
    ServiceCategory.ACCOUNT: 2,
    ServiceCategory.BPO: 3,
    ServiceCategory.SECRETARY: 4,
    ServiceCategory.OTHERS: 5,
}

# short codes used in the template's label column
CATEGORY_CODES = {
    ServiceCategory.TAX: "TAX",
    ServiceCategory.ACCOUNT: "ACC",
    ServiceCategory.BPO: "BPO",
    ServiceCategory.SECRETARY: "SEC",
    ServiceCategory.OTHERS: "OTHERS",
}


def normalize_company_key(name: Optional[str]) -> str:
    """
    Join key for matching one company across sources:
    drop spaces and dots, uppercase. Never empty.
    """
    if name is None:
        return UNKNOWN
    s = name.strip()
    if not s:
        return UNKNOWN
    s = KEY_STRIP_RE.sub("", s).upper()
    return s or UNKNOWN


def normalize_service_type(raw: Optional[str]) -> ServiceCategory:
    """Map a raw 'Service Type' value onto TAX / ACCOUNT / BPO / SECRETARY / OTHERS."""
    if raw is None:
        return ServiceCategory.OTHERS
    s = raw.strip().upper()

    # first match wins; only TAX is a prefix check
    if s.startswith("TAX"):
        return ServiceCategory.TAX
    if "ACCOUNT" in s:
        return ServiceCategory.ACCOUNT
    if "BPO" in s:
        return ServiceCategory.BPO
    if "SECRET" in s:
        return ServiceCategory.SECRETARY
    return ServiceCategory.OTHERS


def category_code(category: ServiceCategory) -> str:
    return CATEGORY_CODES.get(category, "OTHERS")


def sanitize_for_filename(name: Optional[str]) -> str:
    if name is None or not name.strip():
        return UNKNOWN
    s = FILENAME_BAD_RE.sub("_", name).strip()
    return s or UNKNOWN
