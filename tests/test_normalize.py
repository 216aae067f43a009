"""Tests for normalize.py: company keys, service categories, filenames."""

import pytest

from normalize import (
    UNKNOWN,
    ServiceCategory,
    category_code,
    normalize_company_key,
    normalize_service_type,
    sanitize_for_filename,
)


class TestNormalizeCompanyKey:
    @pytest.mark.parametrize("name", ["Acme Corp", "ACME CORP", "acme.corp", " A.C.M.E Corp ", "Acme Corp."])
    def test_spellings_share_one_key(self, name):
        assert normalize_company_key(name) == "ACMECORP"

    def test_idempotent(self):
        key = normalize_company_key("Beta Pte. Ltd.")
        assert normalize_company_key(key) == key == "BETAPTELTD"

    @pytest.mark.parametrize("name", [None, "", "   ", "...", ". ."])
    def test_falls_back_to_unknown(self, name):
        assert normalize_company_key(name) == UNKNOWN

    def test_other_punctuation_kept(self):
        assert normalize_company_key("A&B (S) Pte-Ltd") == "A&B(S)PTE-LTD"


class TestNormalizeServiceType:
    @pytest.mark.parametrize("raw,expected", [
        (None, ServiceCategory.OTHERS),
        ("", ServiceCategory.OTHERS),
        ("tax filing", ServiceCategory.TAX),
        ("  TAX", ServiceCategory.TAX),
        ("Tax Accounting", ServiceCategory.TAX),
        ("Corporate Tax", ServiceCategory.OTHERS),
        ("Accounting", ServiceCategory.ACCOUNT),
        ("BPO Account Review", ServiceCategory.ACCOUNT),
        ("bpo payroll", ServiceCategory.BPO),
        ("Secretarial", ServiceCategory.SECRETARY),
        ("Company Secretary BPO", ServiceCategory.BPO),
        ("Audit", ServiceCategory.OTHERS),
    ])
    def test_mapping(self, raw, expected):
        assert normalize_service_type(raw) is expected

    def test_total_over_categories(self):
        for raw in ["x", "123", "Tax", "SECRETARIAL", "\t"]:
            assert normalize_service_type(raw) in set(ServiceCategory)


class TestCategoryCode:
    def test_codes(self):
        assert category_code(ServiceCategory.TAX) == "TAX"
        assert category_code(ServiceCategory.ACCOUNT) == "ACC"
        assert category_code(ServiceCategory.BPO) == "BPO"
        assert category_code(ServiceCategory.SECRETARY) == "SEC"
        assert category_code(ServiceCategory.OTHERS) == "OTHERS"


class TestSanitizeForFilename:
    def test_reserved_characters(self):
        assert sanitize_for_filename('A/B:C*D?"E<F>G|H\\I') == "A_B_C_D__E_F_G_H_I"

    def test_trims(self):
        assert sanitize_for_filename("  Acme Corp  ") == "Acme Corp"

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_empty(self, name):
        assert sanitize_for_filename(name) == UNKNOWN
