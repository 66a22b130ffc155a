"""Age-based seat pricing."""

from decimal import Decimal

YOUTH_AGE_LIMIT = 26
SENIOR_AGE_THRESHOLD = 60


def resolve_price(base_price: Decimal, youth_price: Decimal | None, senior_price: Decimal | None, age: int) -> Decimal:
    """Pick the price tier for a registrant's age.

    First match wins: youth (under 26) if the event has a youth price, then senior
    (60 and over) if it has a senior price, else the base price. The two bands cannot
    overlap, so the order only matters for readability.
    """
    if youth_price is not None and age < YOUTH_AGE_LIMIT:
        return youth_price
    if senior_price is not None and age >= SENIOR_AGE_THRESHOLD:
        return senior_price
    return base_price
