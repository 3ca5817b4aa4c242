"""
Tests for the seed_catalog management command.
"""

from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from store.models import Challenge, Product, Seller, User
from store.pricing import prices_agree


@pytest.mark.django_db
class TestSeedCatalogCommand:

    def test_creates_requested_records(self):
        out = StringIO()

        call_command(
            'seed_catalog', '--buyers', '3', '--sellers', '2', '--products-per-seller', '4',
            '--challenges', '2', '--seed', '7', stdout=out
        )

        assert User.objects.count() == 5
        assert Seller.objects.filter(verification_status='approved').count() == 2
        assert Product.objects.count() == 8
        assert Challenge.objects.count() == 2
        assert 'Seeded 3 buyers, 2 sellers, 8 products and 2 challenges' in out.getvalue()

    def test_seeded_products_respect_pricing(self):
        call_command('seed_catalog', '--buyers', '1', '--sellers', '1', '--challenges', '1',
                     '--seed', '3', stdout=StringIO())

        for product in Product.objects.all():
            assert prices_agree(product.base_price, product.selling_price, product.price_discount)
            if product.min_bargain_price is not None:
                assert product.min_bargain_price < product.selling_price

        for challenge in Challenge.objects.all():
            assert challenge.challenge_price <= challenge.current_price * Challenge.MAX_PRICE_RATIO

    def test_sellers_are_flagged(self):
        call_command('seed_catalog', '--buyers', '0', '--sellers', '2', '--products-per-seller', '0',
                     '--challenges', '0', stdout=StringIO())

        assert User.objects.filter(is_seller=True).count() == 2

    def test_negative_counts_rejected(self):
        with pytest.raises(CommandError):
            call_command('seed_catalog', '--buyers', '-1', stdout=StringIO())
