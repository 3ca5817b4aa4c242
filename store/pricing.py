"""
Price arithmetic for catalog products.

All amounts are ``Decimal``. Money is rounded half-up to paise (two places);
discount percentages keep six places so that a derived selling price stays
within 0.01 of ``base_price * (1 - discount / 100)`` for any realistic price.
"""

from decimal import Decimal, ROUND_HALF_UP

MONEY_PLACES = Decimal('0.01')
DISCOUNT_PLACES = Decimal('0.000001')
PRICE_TOLERANCE = Decimal('0.01')
HUNDRED = Decimal('100')


class PricingError(ValueError):
    """Raised when a combination of prices cannot describe a product."""

    def __init__(self, field, message):
        super().__init__(message)
        self.field = field
        self.message = message


def to_money(value):
    return Decimal(str(value)).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def selling_price_from_discount(base_price, discount):
    base_price = Decimal(str(base_price))
    discount = Decimal(str(discount))
    return to_money(base_price * (1 - discount / HUNDRED))


def discount_from_prices(base_price, selling_price):
    base_price = Decimal(str(base_price))
    selling_price = Decimal(str(selling_price))
    if base_price <= 0:
        return Decimal('0')
    return ((base_price - selling_price) / base_price * HUNDRED).quantize(
        DISCOUNT_PLACES, rounding=ROUND_HALF_UP
    )


def prices_agree(base_price, selling_price, discount):
    expected = Decimal(str(base_price)) * (1 - Decimal(str(discount)) / HUNDRED)
    return abs(expected - Decimal(str(selling_price))) <= PRICE_TOLERANCE


def resolve_prices(base_price, selling_price=None, discount=None):
    """
    Complete a (base, selling, discount) triple from what the seller supplied.

    - discount only: the selling price is derived from it
    - selling price only: the discount is derived from it
    - both: they must agree within 0.01

    Returns:
        tuple: (base_price, selling_price, discount) as Decimals

    Raises:
        PricingError: If the inputs are missing, out of range or inconsistent
    """
    if base_price is None:
        raise PricingError('base_price', 'Base price is required.')

    base_price = to_money(base_price)
    if base_price <= 0:
        raise PricingError('base_price', 'Base price must be greater than 0.')

    if discount is not None:
        discount = Decimal(str(discount))
        if discount < 0 or discount >= HUNDRED:
            raise PricingError('price_discount', 'Discount must be between 0 and 100.')

    if selling_price is None and discount is None:
        raise PricingError('selling_price', 'Provide a selling price or a discount.')

    if selling_price is None:
        selling_price = selling_price_from_discount(base_price, discount)
    else:
        selling_price = to_money(selling_price)

    if selling_price <= 0:
        raise PricingError('selling_price', 'Selling price must be greater than 0.')

    if selling_price > base_price:
        raise PricingError('selling_price', 'Selling price cannot exceed the base price.')

    if discount is None:
        discount = discount_from_prices(base_price, selling_price)
    elif not prices_agree(base_price, selling_price, discount):
        raise PricingError(
            'price_discount',
            'Selling price does not match base price and discount.'
        )

    return base_price, selling_price, discount.quantize(DISCOUNT_PLACES, rounding=ROUND_HALF_UP)


def to_paise(amount):
    """Convert a rupee amount to integer paise for the payment gateway."""
    return int((to_money(amount) * HUNDRED).to_integral_value(rounding=ROUND_HALF_UP))
