"""
Tests for the expire_negotiations management command.
"""

from datetime import timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from django.utils import timezone

from store.models import Bargain, Challenge


@pytest.fixture
def overdue_bargain(buyer, seller, make_product):
    product = make_product(allow_bargaining=True, min_bargain_price=Decimal('700'))
    return Bargain.objects.create(
        product=product, user=buyer, seller=seller,
        original_price=product.selling_price, buyer_offer=Decimal('800'),
        expires_at=timezone.now() - timedelta(hours=1),
    )


@pytest.fixture
def overdue_challenge(buyer):
    return Challenge.objects.create(
        user=buyer, product_name='Kettle', product_url='https://example.com/kettle', platform='other',
        current_price=Decimal('1000'), challenge_price=Decimal('850'), delivery_time='2 days',
        expires_at=timezone.now() - timedelta(hours=1),
    )


@pytest.mark.django_db
class TestExpireNegotiationsCommand:

    def run(self, *args):
        out = StringIO()
        call_command('expire_negotiations', *args, stdout=out)
        return out.getvalue()

    def test_expires_overdue_items(self, overdue_bargain, overdue_challenge):
        output = self.run()

        assert 'Bargains expired: 1' in output
        assert 'Challenges expired: 1' in output
        overdue_bargain.refresh_from_db()
        overdue_challenge.refresh_from_db()
        assert overdue_bargain.status == 'expired'
        assert overdue_challenge.status == 'expired'

    def test_leaves_current_and_closed_items_alone(self, overdue_bargain, buyer, seller):
        current = Bargain.objects.create(
            product=overdue_bargain.product, user=buyer, seller=seller,
            original_price=Decimal('900'), buyer_offer=Decimal('750'),
        )
        accepted = Bargain.objects.create(
            product=overdue_bargain.product, user=buyer, seller=seller,
            original_price=Decimal('900'), buyer_offer=Decimal('780'), final_price=Decimal('780'),
            status='accepted', expires_at=timezone.now() - timedelta(days=2),
        )

        self.run('--bargains-only')

        current.refresh_from_db()
        accepted.refresh_from_db()
        assert current.status == 'pending'
        assert accepted.status == 'accepted'

    def test_dry_run_changes_nothing(self, overdue_bargain, overdue_challenge):
        output = self.run('--dry-run')

        assert 'Bargains expired: 1' in output
        assert 'Dry run completed' in output
        overdue_bargain.refresh_from_db()
        assert overdue_bargain.status == 'pending'

    def test_challenges_only(self, overdue_bargain, overdue_challenge):
        output = self.run('--challenges-only')

        assert 'Bargains expired' not in output
        overdue_bargain.refresh_from_db()
        overdue_challenge.refresh_from_db()
        assert overdue_bargain.status == 'pending'
        assert overdue_challenge.status == 'expired'

    def test_small_batches(self, buyer, seller, make_product):
        product = make_product(allow_bargaining=True)
        for _ in range(5):
            Bargain.objects.create(
                product=product, user=buyer, seller=seller,
                original_price=Decimal('900'), buyer_offer=Decimal('800'),
                expires_at=timezone.now() - timedelta(minutes=5),
            )

        output = self.run('--batch-size', '2', '--bargains-only')

        assert 'Bargains expired: 5' in output
        assert not Bargain.objects.filter(status='pending').exists()

    def test_conflicting_flags(self, db):
        with pytest.raises(CommandError):
            self.run('--bargains-only', '--challenges-only')

    def test_invalid_batch_size(self, db):
        with pytest.raises(CommandError):
            self.run('--batch-size', '0')
