from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated, Any

from pydantic import BeforeValidator

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Coerce a stored amount to a 2-place Decimal. Garbage becomes 0.00."""
    if value is None or value == "" or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            # str() first so 0.1 arrives as "0.1", not its binary expansion
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not amount.is_finite():
        return ZERO
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(amounts) -> Decimal:
    return sum((to_money(a) for a in amounts), ZERO)


def money_div(amount: Decimal, count: int) -> Decimal:
    if not count:
        return ZERO
    return (to_money(amount) / count).quantize(CENT, rounding=ROUND_HALF_UP)


Money = Annotated[Decimal, BeforeValidator(to_money)]
