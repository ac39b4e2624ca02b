from decimal import Decimal, InvalidOperation, getcontext
getcontext().prec = 80


def to_raw_amount(human: str, decimals: int) -> int:
    """
    Convert a human amount ("0.1") into smallest units for a token with
    `decimals` places. The conversion must be exact: an amount with more
    fractional digits than the token supports is rejected, never rounded.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")
    try:
        val = Decimal(str(human).strip())
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {human!r}") from exc
    if not val.is_finite() or val < 0:
        raise ValueError(f"invalid amount: {human!r}")

    raw = val.scaleb(decimals)
    if raw != raw.to_integral_value():
        raise ValueError(f"amount {human} has more than {decimals} decimal places")
    return int(raw)


def fmt_amount(raw: int, decimals: int, places: int = 6) -> str:
    scale = Decimal(10) ** decimals
    val = Decimal(raw) / scale
    q = Decimal(10) ** -places
    return str(val.quantize(q))


def bps_to_pct(bps: int) -> str:
    """Basis points as a percentage string with two decimals: 6000 -> '60.00'."""
    return str((Decimal(int(bps)) / Decimal(100)).quantize(Decimal("0.01")))
