"""Integer arithmetic utilities for half-unit money.

All prices, bids and fees use int half-units (1 = £0.5m). Manager budgets
are stored in thousandths of a unit (150000 = £150.0m). No float, no Decimal
in the ledger; floats only appear when formatting for display.
"""

THOUSANDTHS_PER_HALF_UNIT = 500


def validate_amount(amount: int) -> None:
    """Validate that an amount is a positive number of half-units."""
    if amount < 1:
        raise ValueError(f"Amount must be at least 1 half-unit, got {amount}")


def thousandths_to_half_units(thousandths: int) -> int:
    """Convert a stored budget to half-units: 150000 -> 300 (floor)."""
    return thousandths // THOUSANDTHS_PER_HALF_UNIT


def half_units_to_thousandths(half_units: int) -> int:
    return half_units * THOUSANDTHS_PER_HALF_UNIT


def half_units_to_display(half_units: int) -> str:
    """Convert half-units to display string: 11 -> '£5.5m', -3 -> '-£1.5m'."""
    if half_units < 0:
        return f"-£{-half_units * 0.5:.1f}m"
    return f"£{half_units * 0.5:.1f}m"
