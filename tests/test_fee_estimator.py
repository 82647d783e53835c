"""Tests for the pricing catalog and fee estimator."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from clickpay.engine.errors import InvalidInputError
from clickpay.fees import catalog, estimate, pricing_for
from clickpay.fees.estimator import validate_tiers
from clickpay.models.enums import OperationMode
from clickpay.models.fees import HybridTier

TIERS = [
    HybridTier(up_to=Decimal("1000"), rate=Decimal("0.0045")),
    HybridTier(up_to=None, rate=Decimal("0")),
]


class TestCatalog:
    def test_same_mapping_every_call(self):
        assert catalog() is catalog()
        assert set(catalog()) == set(OperationMode)

    def test_full_processor_pricing(self):
        rule = catalog()[OperationMode.FULL_PROCESSOR]
        assert rule.setup_fee == 5000
        assert rule.monthly_fee == 1000
        assert rule.per_transaction_fee == 2
        assert rule.percentage_fee == Decimal("0.015")

    def test_hybrid_rate_is_variable(self):
        assert catalog()[OperationMode.HYBRID].is_variable
        assert not catalog()[OperationMode.GATEWAY_ONLY].is_variable

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            catalog()[OperationMode.HYBRID] = catalog()[OperationMode.GATEWAY_ONLY]

    def test_lookup_by_name(self):
        assert pricing_for("full_processor") is catalog()[OperationMode.FULL_PROCESSOR]

    def test_unknown_mode(self):
        with pytest.raises(InvalidInputError) as exc:
            pricing_for("PREMIUM")
        assert exc.value.field == "mode"


class TestFullProcessor:
    def test_reference_scenario(self):
        result = estimate(OperationMode.FULL_PROCESSOR, 100000, 500)
        assert result.transaction_count == 200
        assert result.transaction_fees == Decimal("400")
        assert result.percentage_fees == Decimal("1500")
        assert result.total_monthly_fee == Decimal("2900")
        assert result.effective_rate_percent == Decimal("2.9")
        assert result.setup_fee == Decimal("5000")

    def test_float_inputs_match_integers(self):
        assert estimate("FULL_PROCESSOR", 100000.0, 500.0) == estimate("FULL_PROCESSOR", 100000, 500)

    def test_transaction_count_floors(self):
        result = estimate(OperationMode.FULL_PROCESSOR, 1000, 300)
        assert result.transaction_count == 3


class TestGatewayOnly:
    def test_no_percentage_fee(self):
        result = estimate(OperationMode.GATEWAY_ONLY, 100000, 500)
        assert result.percentage_fees == 0
        assert result.total_monthly_fee == Decimal("2400")
        assert result.effective_rate_percent == Decimal("2.4")

    def test_rate_rounds_half_up(self):
        # 2002 / 160160 * 100 == 1.25 exactly
        result = estimate(OperationMode.GATEWAY_ONLY, 160160, 160160)
        assert result.total_monthly_fee == Decimal("2002")
        assert result.effective_rate_percent == Decimal("1.3")


class TestHybrid:
    def test_without_tiers_is_refused(self):
        with pytest.raises(InvalidInputError) as exc:
            estimate(OperationMode.HYBRID, 100000, 500, hybrid_tiers=[])
        assert exc.value.field == "percentage_fee"

    def test_default_configuration_has_no_tiers(self):
        with pytest.raises(InvalidInputError):
            estimate(OperationMode.HYBRID, 100000, 500)

    def test_small_ticket_tier(self):
        result = estimate(OperationMode.HYBRID, 100000, 500, hybrid_tiers=TIERS)
        assert result.percentage_fees == Decimal("450")
        assert result.total_monthly_fee == Decimal("2350")
        assert result.effective_rate_percent == Decimal("2.4")  # 2.35 half-up

    def test_open_ended_tier(self):
        result = estimate(OperationMode.HYBRID, 100000, 5000, hybrid_tiers=TIERS)
        assert result.percentage_fees == 0
        assert result.total_monthly_fee == Decimal("1540")

    def test_tier_bound_is_inclusive(self):
        result = estimate(OperationMode.HYBRID, 100000, 1000, hybrid_tiers=TIERS)
        assert result.percentage_fees == Decimal("450")

    def test_no_covering_tier(self):
        with pytest.raises(InvalidInputError) as exc:
            estimate(OperationMode.HYBRID, 100000, 5000, hybrid_tiers=TIERS[:1])
        assert exc.value.field == "percentage_fee"

    def test_open_tier_must_be_last(self):
        with pytest.raises(InvalidInputError):
            validate_tiers(list(reversed(TIERS)))

    def test_bounds_must_increase(self):
        with pytest.raises(InvalidInputError):
            validate_tiers([
                HybridTier(up_to=Decimal("500"), rate=Decimal("0.01")),
                HybridTier(up_to=Decimal("500"), rate=Decimal("0.02")),
            ])

    def test_rate_above_one_rejected(self):
        with pytest.raises(ValidationError):
            HybridTier(up_to=Decimal("500"), rate=Decimal("1.5"))


class TestValidation:
    @pytest.mark.parametrize("volume", [0, -100, "0", float("nan"), float("inf"), "abc", True])
    def test_bad_volume(self, volume):
        with pytest.raises(InvalidInputError) as exc:
            estimate(OperationMode.FULL_PROCESSOR, volume, 500)
        assert exc.value.field == "monthly_volume"

    @pytest.mark.parametrize("avg", [0, -1, Decimal("NaN"), None])
    def test_bad_average(self, avg):
        with pytest.raises(InvalidInputError) as exc:
            estimate(OperationMode.FULL_PROCESSOR, 100000, avg)
        assert exc.value.field == "avg_transaction_size"

    @pytest.mark.parametrize("volume, avg", [("1E+30", "1"), ("1", "1E-30")])
    def test_count_beyond_default_precision(self, volume, avg):
        result = estimate(OperationMode.FULL_PROCESSOR, volume, avg)
        assert result.transaction_count == 10**30
        assert result.transaction_fees == 2 * 10**30

    def test_tiny_volume_effective_rate(self):
        result = estimate(OperationMode.GATEWAY_ONLY, "1E-30", "1E-31")
        assert result.transaction_count == 10
        assert result.total_monthly_fee == Decimal("2020")
        assert result.effective_rate_percent == Decimal("2.02E+35")

    def test_astronomical_ratio_is_rejected(self):
        with pytest.raises(InvalidInputError) as exc:
            estimate(OperationMode.FULL_PROCESSOR, "1E+5000", "1E-5000")
        assert exc.value.field == "monthly_volume"


class TestEdgeCases:
    def test_average_above_volume(self):
        result = estimate(OperationMode.FULL_PROCESSOR, 100, 500)
        assert result.transaction_count == 0
        assert result.transaction_fees == 0
        assert result.total_monthly_fee == Decimal("1001.5")

    def test_deterministic(self):
        first = estimate(OperationMode.FULL_PROCESSOR, Decimal("123456.78"), Decimal("321.09"))
        second = estimate(OperationMode.FULL_PROCESSOR, Decimal("123456.78"), Decimal("321.09"))
        assert first == second
        assert repr(first) == repr(second)

    def test_total_never_below_monthly_fee(self):
        for mode in (OperationMode.GATEWAY_ONLY, OperationMode.FULL_PROCESSOR):
            for volume, avg in [(1, 1), (1, 1000), (50000, 75), (10**9, 3)]:
                result = estimate(mode, volume, avg)
                assert result.total_monthly_fee >= result.monthly_fee
                assert result.effective_rate_percent >= 0
                assert not result.total_monthly_fee.is_nan()
