"""Progress of an aggregated value against a habit's target."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

__all__ = ["RATIO_QUANTUM", "compute_progress_ratio"]

RATIO_QUANTUM = Decimal("0.0001")


def compute_progress_ratio(value: Decimal, target: Decimal) -> Decimal | None:
    """Divide ``value`` by ``target``.

    The ratio is not clamped: 65 of a target of 60 gives ``1.0833``.

    Returns
    -------
    Decimal | None
        Ratio rounded half-up to four fractional digits, or None when the
        target is zero
    """
    if target == 0:
        return None
    return (Decimal(value) / Decimal(target)).quantize(RATIO_QUANTUM, rounding=ROUND_HALF_UP)
