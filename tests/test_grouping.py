"""Tests for grouping.py: page order and display-name choice per company."""

import pytest

from grouping import CompanyBucket, Grouper, PageDescriptor, resolve_display_name
from normalize import UNKNOWN, ServiceCategory

CHSS = dict(source="chss.pdf", name_priority=1, source_order=1, sort_by_category=False)
SOA = dict(source="soa.pdf", name_priority=2, source_order=2, sort_by_category=False)
SBZ = dict(source="sharebiz.pdf", name_priority=3, source_order=3, sort_by_category=True)


def _page(src, page, category=ServiceCategory.OTHERS, name="Acme", key="ACME"):
    return PageDescriptor(page=page, company_raw=name, company_key=key, category=category, **src)


class TestOrdering:
    def test_source_then_category_then_page(self):
        g = Grouper()
        for p in [
            _page(SBZ, 1, ServiceCategory.OTHERS),
            _page(SBZ, 2, ServiceCategory.SECRETARY),
            _page(SOA, 4),
            _page(SBZ, 3, ServiceCategory.TAX),
            _page(CHSS, 9),
            _page(SBZ, 4, ServiceCategory.BPO),
            _page(SBZ, 5, ServiceCategory.TAX),
            _page(CHSS, 2),
            _page(SBZ, 6, ServiceCategory.ACCOUNT),
        ]:
            g.add(p)
        (company,) = g.finalize()
        assert company.page_refs == [
            ("chss.pdf", 2),
            ("chss.pdf", 9),
            ("soa.pdf", 4),
            ("sharebiz.pdf", 3),
            ("sharebiz.pdf", 5),
            ("sharebiz.pdf", 6),
            ("sharebiz.pdf", 4),
            ("sharebiz.pdf", 2),
            ("sharebiz.pdf", 1),
        ]

    def test_unsorted_source_ignores_category(self):
        g = Grouper()
        g.add(_page(CHSS, 2, ServiceCategory.TAX))
        g.add(_page(CHSS, 1, ServiceCategory.OTHERS))
        assert g.finalize()[0].page_refs == [("chss.pdf", 1), ("chss.pdf", 2)]


class TestDisplayName:
    def test_lowest_priority_non_empty_name(self):
        pages = [
            PageDescriptor("c", 1, "Acme Corp", "ACMECORP", name_priority=3),
            PageDescriptor("a", 1, "", "ACMECORP", name_priority=1),
            PageDescriptor("b", 1, "ACME CORP LTD", "ACMECORP", name_priority=2),
        ]
        assert resolve_display_name(pages) == "ACME CORP LTD"

    def test_tie_goes_to_first_page_in_output_order(self):
        g = Grouper()
        g.add(_page(SBZ, 1, ServiceCategory.SECRETARY, name="Acme.Corp", key="ACMECORP"))
        g.add(_page(SBZ, 2, ServiceCategory.TAX, name="Acme Corp", key="ACMECORP"))
        (company,) = g.finalize()
        assert company.page_refs[0] == ("sharebiz.pdf", 2)
        assert company.display_name == "Acme Corp"
        assert company.file_name == "Acme Corp"

    def test_trimmed(self):
        assert resolve_display_name([PageDescriptor("a", 1, "  Acme  ", "ACME")]) == "Acme"

    def test_unknown_when_nothing_usable(self):
        pages = [PageDescriptor("a", 1, None, UNKNOWN), PageDescriptor("b", 1, "   ", UNKNOWN)]
        assert resolve_display_name(pages) == UNKNOWN


class TestBuckets:
    def test_first_seen_order_and_membership(self):
        g = Grouper()
        g.add(_page(CHSS, 1, name="Beta", key="BETA"))
        g.add(_page(CHSS, 2, name="Acme", key="ACME"))
        g.add(_page(SOA, 1, name="BETA", key="BETA"))
        assert g.keys() == ["BETA", "ACME"]
        beta, acme = g.finalize()
        assert {p.company_key for p in beta.pages} == {"BETA"}
        assert len(beta.pages) == 2
        assert acme.display_name == "Acme"

    def test_wrong_key_rejected(self):
        bucket = CompanyBucket("ACME")
        with pytest.raises(ValueError):
            bucket.add(_page(CHSS, 1, key="BETA"))

    def test_finalized_once(self):
        bucket = CompanyBucket("ACME")
        bucket.add(_page(CHSS, 1))
        first = bucket.finalize()
        assert bucket.finalize() is first
        with pytest.raises(RuntimeError):
            bucket.add(_page(CHSS, 2))

    def test_file_name_is_sanitized(self):
        bucket = CompanyBucket("A/BCO")
        bucket.add(_page(CHSS, 1, name="A/B Co", key="A/BCO"))
        assert bucket.finalize().file_name == "A_B Co"
