"""
Delivery options offered at checkout.

Each option is a small class that knows its own courier charge, the delivery
details it needs from the buyer and where it is available. Callers resolve an
option once with ``get_delivery_option`` and work with the instance from then
on instead of comparing option strings.
"""

from decimal import Decimal

FREE_PICKUP_THRESHOLD = Decimal('500')


class DeliveryOption:
    code = None
    label = ''
    charge = Decimal('0')
    estimated_time = ''
    description = ''
    required_details = ()
    cities = None  # None means available everywhere

    def delivery_charge(self, subtotal):
        return self.charge

    def missing_details(self, details):
        details = details or {}
        return [
            field for field in self.required_details
            if not str(details.get(field) or '').strip()
        ]

    def is_available_in(self, city):
        if self.cities is None:
            return True
        return bool(city) and city.strip().lower() in self.cities

    def describe(self, city=None):
        return {
            'label': self.label,
            'available': self.is_available_in(city),
            'estimated_time': self.estimated_time,
            'cost': self.charge,
            'description': self.description,
            'required_details': list(self.required_details),
        }


class SellerPickup(DeliveryOption):
    code = 'seller_pickup'
    label = 'Seller pickup'
    charge = Decimal('0')
    estimated_time = 'Immediate'
    description = 'Pickup directly from seller location'

    def delivery_charge(self, subtotal):
        if Decimal(str(subtotal)) >= FREE_PICKUP_THRESHOLD:
            return Decimal('0')
        return self.charge


class MetroDelivery(DeliveryOption):
    code = 'metro'
    label = 'Metro station'
    charge = Decimal('50')
    estimated_time = 'Same day'
    description = 'Pickup from nearest metro station'
    required_details = ('metro_station',)


class DabbawalaDelivery(DeliveryOption):
    code = 'dabbawala'
    label = 'Dabbawala'
    charge = Decimal('30')
    estimated_time = '4-6 hours'
    description = 'Mumbai Dabbawala network - Fast and reliable local delivery'
    cities = frozenset({'mumbai'})


class RapidoDelivery(DeliveryOption):
    code = 'rapido'
    label = 'Rapido'
    charge = Decimal('100')
    estimated_time = '1-2 hours'
    description = 'Rapido delivery partner'


class UberDelivery(DeliveryOption):
    code = 'uber'
    label = 'Uber'
    charge = Decimal('100')
    estimated_time = '1-2 hours'
    description = 'Uber delivery service'


DELIVERY_OPTIONS = {
    option.code: option
    for option in (
        DabbawalaDelivery(),
        MetroDelivery(),
        SellerPickup(),
        RapidoDelivery(),
        UberDelivery(),
    )
}

DELIVERY_OPTION_CHOICES = [(code, option.label) for code, option in DELIVERY_OPTIONS.items()]


def get_delivery_option(code):
    """
    Look up a delivery option by code.

    Raises:
        KeyError: If the code is not a known option
    """
    return DELIVERY_OPTIONS[code]


def delivery_charge_for(code, subtotal):
    return get_delivery_option(code).delivery_charge(subtotal)
