from decimal import Decimal

import pytest

from midas_paths.core.utils.risk import (
    INFINITY_SYMBOL,
    ReserveConfig,
    ReserveSnapshot,
    available_to_borrow,
    borrow_amount_for,
    format_health_factor,
    format_loan_to_value,
    health_factor,
    loan_to_value,
    max_withdrawable,
    min_required_collateral,
)


class TestReserveConfig:
    def test_accepts_ordered_params(self):
        config = ReserveConfig(ltv_bps=8000, liquidation_threshold_bps=8500)
        assert config.ltv_bps == 8000

    @pytest.mark.parametrize(
        "ltv,threshold", [(9000, 8500), (8000, 10001), (-1, 8000)]
    )
    def test_rejects_out_of_order_params(self, ltv, threshold):
        with pytest.raises(ValueError):
            ReserveConfig(ltv_bps=ltv, liquidation_threshold_bps=threshold)

    def test_from_reserve_configuration_data(self):
        data = (18, 7500, 8000, 10500, 1000, True, True, False, True, False)
        config = ReserveConfig.from_reserve_configuration_data(data)
        assert config == ReserveConfig(7500, 8000)


class TestReserveSnapshot:
    def test_from_user_reserve_data(self):
        snapshot = ReserveSnapshot.from_user_reserve_data((1000, 20, 300, 0, 0, 0, 0, 0, True))
        assert snapshot.collateral_balance == 1000
        assert snapshot.total_debt == 320

    def test_rejects_negative_balances(self):
        with pytest.raises(OverflowError):
            ReserveSnapshot(collateral_balance=-1)

    def test_rejects_values_wider_than_uint256(self):
        with pytest.raises(OverflowError):
            ReserveSnapshot(collateral_balance=1 << 256)


class TestLoanToValue:
    def test_zero_without_debt(self):
        assert loan_to_value(ReserveSnapshot(1000)) == 0

    def test_truncates_to_two_places(self):
        snapshot = ReserveSnapshot(collateral_balance=3, variable_debt=2)
        assert loan_to_value(snapshot) == Decimal("66.66")

    def test_debt_without_collateral_is_infinite(self):
        snapshot = ReserveSnapshot(collateral_balance=0, variable_debt=500)
        assert loan_to_value(snapshot).is_infinite()
        assert format_loan_to_value(loan_to_value(snapshot)) == "∞%"
        assert format_health_factor(health_factor(snapshot, ReserveConfig(7500, 8000))) == "0.00"

    def test_format(self):
        assert format_loan_to_value(Decimal("66.66")) == "66.66%"
        assert format_loan_to_value(loan_to_value(ReserveSnapshot(1000))) == "0%"


class TestHealthFactor:
    def test_infinite_without_debt(self):
        value = health_factor(ReserveSnapshot(1000), ReserveConfig(8000, 8500))
        assert value.is_infinite()
        assert format_health_factor(value) == INFINITY_SYMBOL

    def test_ratio_with_debt(self):
        snapshot = ReserveSnapshot(collateral_balance=1000, variable_debt=500)
        value = health_factor(snapshot, ReserveConfig(7500, 8000))
        assert value == Decimal("1.6")
        assert format_health_factor(value) == "1.60"

    def test_formatting_rounds_down(self):
        snapshot = ReserveSnapshot(collateral_balance=1000, variable_debt=600)
        value = health_factor(snapshot, ReserveConfig(7500, 8000))
        assert format_health_factor(value) == "1.33"


class TestMaxWithdrawable:
    def test_no_debt_returns_full_collateral(self):
        snapshot = ReserveSnapshot(collateral_balance=1000)
        config = ReserveConfig(8000, 8500)
        assert max_withdrawable(snapshot, config) == 1000
        assert format_health_factor(health_factor(snapshot, config)) == "∞"

    def test_known_scenario(self):
        snapshot = ReserveSnapshot(collateral_balance=1000, variable_debt=500)
        config = ReserveConfig(7500, 8000)
        assert min_required_collateral(500, 8000) == 625
        assert max_withdrawable(snapshot, config) == 375

    def test_zero_when_at_or_below_minimum(self):
        config = ReserveConfig(7500, 8000)
        assert max_withdrawable(ReserveSnapshot(625, variable_debt=500), config) == 0
        assert max_withdrawable(ReserveSnapshot(600, variable_debt=500), config) == 0

    def test_counts_stable_and_variable_debt(self):
        snapshot = ReserveSnapshot(collateral_balance=1000, stable_debt=250, variable_debt=250)
        assert max_withdrawable(snapshot, ReserveConfig(7500, 8000)) == 375

    def test_zero_liquidation_threshold(self):
        config = ReserveConfig(0, 0)
        assert max_withdrawable(ReserveSnapshot(1000), config) == 1000
        assert min_required_collateral(0, 0) == 0
        with pytest.raises(ValueError, match="cannot be used as collateral"):
            max_withdrawable(ReserveSnapshot(1000, variable_debt=1), config)

    @pytest.mark.parametrize(
        "collateral,debt,threshold",
        [
            (1000, 500, 8000),
            (10**18, 333_333_333_333_333_333, 8500),
            (7, 3, 8250),
            (10**30 + 1, 10**29 + 7, 7700),
            (123_456_789, 98_765_432, 9999),
            (20_000, 1, 1),
        ],
    )
    def test_post_withdrawal_health_factor_at_least_one(self, collateral, debt, threshold):
        config = ReserveConfig(min(threshold, 7500), threshold)
        snapshot = ReserveSnapshot(collateral_balance=collateral, variable_debt=debt)
        amount = max_withdrawable(snapshot, config)
        remaining = ReserveSnapshot(collateral_balance=collateral - amount, variable_debt=debt)
        assert health_factor(remaining, config) >= 1


class TestBorrowSizing:
    def test_borrow_amount_for(self):
        assert borrow_amount_for(1_000_000, ReserveConfig(8000, 8500)) == 800_000
        assert borrow_amount_for(1, ReserveConfig(8000, 8500)) == 0

    def test_available_to_borrow_never_negative(self):
        config = ReserveConfig(8000, 8500)
        assert available_to_borrow(ReserveSnapshot(1000, variable_debt=300), config) == 500
        assert available_to_borrow(ReserveSnapshot(1000, variable_debt=900), config) == 0
