"""Daily rate computation for an accepted assignment."""

from decimal import ROUND_HALF_UP, Decimal

from src.staffing.models.enums import Seniority

MINUTES_PER_DAY = 60 * 8

SENIORITY_MULTIPLIERS: dict[Seniority, Decimal] = {
    Seniority.JUNIOR: Decimal("1.0"),
    Seniority.INTERMEDIATE: Decimal("1.15"),
    Seniority.SENIOR: Decimal("1.6"),
    Seniority.EXPERT: Decimal("2.0"),
}

EXPERTISE_BONUS = Decimal("0.05")
LANGUAGE_BONUS = Decimal("0.05")


def _round(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def daily_rate(base_price: Decimal, seniority: Seniority | None) -> Decimal:
    """Per-minute base price scaled to a working day and seniority."""
    multiplier = SENIORITY_MULTIPLIERS.get(seniority, Decimal("1.0")) if seniority else Decimal("1.0")
    return _round(Decimal(base_price) * MINUTES_PER_DAY * multiplier)


def calculate_price(
    base_price: Decimal,
    seniority: Seniority | None,
    expertise_count: int = 0,
    language_count: int = 0,
) -> Decimal:
    """Daily rate plus 5% per required expertise and 5% per required language.

    Example:
        base 1.00/min, senior, 2 expertises, 1 language
        -> round(480 * 1.6) = 768 -> round(768 * 1.15) = 883
    """
    if base_price < 0:
        raise ValueError("base_price must not be negative")
    bonus = EXPERTISE_BONUS * expertise_count + LANGUAGE_BONUS * language_count
    return _round(daily_rate(base_price, seniority) * (1 + bonus))
