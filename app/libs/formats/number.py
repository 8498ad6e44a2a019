from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float | Decimal | int, digits: int = 1) -> float:
    """Round half away from zero (4.25 -> 4.3, 4.35 -> 4.4), unlike built-in round()."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def mean_half_up(total: int | float, count: int, digits: int = 1) -> float:
    if not count:
        return 0.0
    exact = Decimal(str(total)) / Decimal(count)
    return float(exact.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP))
