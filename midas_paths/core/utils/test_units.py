from decimal import Decimal

import pytest

from midas_paths.core.utils.units import (
    checked_uint,
    format_units,
    from_base_units,
    to_base_units,
)


class TestToBaseUnits:
    def test_string_amount(self):
        assert to_base_units("1.5", 18) == 1_500_000_000_000_000_000

    def test_rounds_down_extra_precision(self):
        assert to_base_units("0.1234567", 6) == 123_456

    def test_int_and_decimal_inputs(self):
        assert to_base_units(3, 6) == 3_000_000
        assert to_base_units(Decimal("0.000001"), 6) == 1

    @pytest.mark.parametrize("bad", ["abc", "NaN", "inf", "-1"])
    def test_rejects_invalid_amounts(self, bad):
        with pytest.raises(ValueError):
            to_base_units(bad, 18)

    def test_overflow_is_reported(self):
        with pytest.raises(OverflowError):
            to_base_units("1e80", 18)


class TestFromBaseUnits:
    def test_exact_for_large_values(self):
        raw = 2**256 - 1
        assert str(from_base_units(raw, 18)).replace(".", "") == str(raw)

    def test_format_strips_trailing_zeros(self):
        assert format_units(1_500_000, 6) == "1.5"
        assert format_units(2 * 10**18, 18) == "2"
        assert format_units(0, 18) == "0"
        assert format_units(1, 18) == "0.000000000000000001"


class TestCheckedUint:
    def test_within_range(self):
        assert checked_uint(2**128 - 1, 128) == 2**128 - 1

    def test_out_of_range(self):
        with pytest.raises(OverflowError):
            checked_uint(2**128, 128)
        with pytest.raises(OverflowError):
            checked_uint(-1)

    def test_type_errors(self):
        with pytest.raises(TypeError):
            checked_uint(True)
        with pytest.raises(TypeError):
            checked_uint(1.0)
