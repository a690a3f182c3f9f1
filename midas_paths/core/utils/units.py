from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

# Wide enough for any uint256 at any decimal scale.
_UNIT_PRECISION = 96


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    return Decimal(str(value).strip())


def checked_uint(value: int, bits: int = 256, name: str = "value") -> int:
    """Return ``value`` if it fits an unsigned ``bits``-wide integer.

    Out-of-range values are programming errors, not recoverable conditions.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value >> bits:
        raise OverflowError(f"{name}={value} does not fit in uint{bits}")
    return value


def to_base_units(amount: str | int | float | Decimal, decimals: int) -> int:
    try:
        amt = _to_decimal(amount)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount}") from exc
    if not amt.is_finite():
        raise ValueError(f"Invalid token amount: {amount}")
    if amt < 0:
        raise ValueError("Amount must be non-negative")
    with localcontext() as ctx:
        ctx.prec = _UNIT_PRECISION
        scaled = amt.scaleb(int(decimals))
        return checked_uint(int(scaled.to_integral_value(rounding=ROUND_DOWN)))


def from_base_units(raw: int, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _UNIT_PRECISION
        return Decimal(int(raw)).scaleb(-int(decimals))


def format_units(raw: int, decimals: int) -> str:
    text = format(from_base_units(raw, decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
