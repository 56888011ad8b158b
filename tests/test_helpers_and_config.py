from decimal import Decimal
from pathlib import Path

import pytest

from config import EngineConfig
from rules.enums import PaymentMethodCode, Scope
from rules.reference_data import ReferenceDataStore
from utils.helpers import DataManager, format_currency, generate_intake_id, money, percent_of, to_decimal


class TestMoneyHelpers:

    def test_to_decimal(self):
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("") == Decimal("0")
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal("1500.50") == Decimal("1500.50")

    def test_to_decimal_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_decimal("abc")

    def test_to_decimal_rejects_non_finite(self):
        for value in ("NaN", "Infinity", "-inf", Decimal("NaN")):
            with pytest.raises(ValueError):
                to_decimal(value)

    def test_money_out_of_range(self):
        with pytest.raises(ValueError):
            money(Decimal("1e400000"))

    def test_money_rounds_half_up(self):
        assert money(Decimal("10.005")) == Decimal("10.01")

    def test_percent_of(self):
        assert percent_of(Decimal("1"), Decimal("3")) == Decimal("33.33")
        assert percent_of(Decimal("1"), Decimal("0")) == Decimal("0")

    def test_format_currency(self):
        assert format_currency("1234.5") == "R$ 1,234.50"
        assert format_currency(10, None) == "10.00"

    def test_intake_id(self):
        assert generate_intake_id().startswith("PO-")


class TestEngineConfig:

    def test_defaults_are_configured(self):
        assert EngineConfig().is_configured is True

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PO_MIN_DAYS_ADVANCE", "5")
        monkeypatch.setenv("PO_SENIOR_APPROVER_THRESHOLD", "250000")
        config = EngineConfig()
        assert config.min_days_advance == 5
        assert config.senior_approver_threshold == Decimal("250000")

    def test_recurring_count_must_allow_installments(self):
        assert EngineConfig(recurring_installments=1).is_configured is False


class TestReferenceDataLoading:

    def test_missing_file_gives_empty_store(self, tmp_path):
        store = ReferenceDataStore.from_json(str(tmp_path / "missing.json"))
        assert store.list_matrix_entries() == []

    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "reference.json"
        assert DataManager.save_json_data(str(path), {
            "suppliers": [{"id": "sup-x", "legal_name": "X", "scope": "INTERNATIONAL"}],
            "payment_methods": [{"id": "pm-x", "code": "TRANSFER_USA"}],
            "accounting_matrix": [{"cost_center_id": "cc", "gl_account_id": "gl",
                                   "company_id": "co", "balance": "12.5"}],
        })
        store = ReferenceDataStore.from_json(str(path))
        assert store.get_supplier("sup-x").scope == Scope.INTERNATIONAL
        assert store.get_payment_method("pm-x").code == PaymentMethodCode.WIRE_USA
        assert store.get_payment_method("pm-x").scope == Scope.INTERNATIONAL
        assert store.list_matrix_entries()[0].balance == Decimal("12.5")

    def test_invalid_json_gives_empty_store(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert DataManager.load_json_data(str(path)) == {}

    def test_unknown_enum_literal_raises(self):
        with pytest.raises(ValueError):
            ReferenceDataStore.from_dict({"payment_methods": [{"id": "pm", "code": "PIX"}]})

    def test_shipped_sample_data_loads(self):
        store = ReferenceDataStore.from_json(str(Path(__file__).parent.parent / "data" / "reference_data.json"))
        assert store.get_supplier("sup-001") is not None
        assert store.get_currency("cur-usd").is_domestic is False

    def test_portco_beneficiary_requires_special_approval(self, reference):
        assert reference.get_beneficiary("ben-portco").requires_special_approval is True
        assert reference.get_beneficiary("ben-fund").requires_special_approval is False
        assert reference.get_company("co-02").code == "FD04"
