"""
Tests for the signal receivers that keep seller flags and counters in sync.
"""

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from store.models import Order, OrderItem, Product, Seller

User = get_user_model()


class SellerCapabilitySignalTests(TestCase):
    """Creating a Seller profile marks its user as a seller."""

    def setUp(self):
        self.user = User.objects.create_user(
            username='asha@test.com',
            email='asha@test.com',
            password='testpass123',
            name='Asha',
            mobile='9876500001',
        )

    def test_creating_seller_sets_flag_and_role(self):
        Seller.objects.create(user=self.user, business_name='Asha Traders', gst_number='22AAAAA0000A1Z5')

        self.user.refresh_from_db()
        self.assertTrue(self.user.is_seller)
        self.assertEqual(self.user.role, 'seller')

    def test_admin_role_is_kept(self):
        self.user.role = 'admin'
        self.user.save()

        Seller.objects.create(user=self.user, business_name='Admin Shop', is_close_knit=True)

        self.user.refresh_from_db()
        self.assertTrue(self.user.is_seller)
        self.assertEqual(self.user.role, 'admin')

    def test_updating_seller_does_not_touch_role(self):
        seller = Seller.objects.create(user=self.user, business_name='Asha Traders', is_close_knit=True)
        User.objects.filter(pk=self.user.pk).update(role='verifier')

        seller.business_name = 'Asha & Sons'
        seller.save()

        self.user.refresh_from_db()
        self.assertEqual(self.user.role, 'verifier')


class DeliveredOrderSignalTests(TestCase):
    """Delivering an order increments the seller's ``total_sales``."""

    def setUp(self):
        seller_user = User.objects.create_user(
            username='seller@test.com', email='seller@test.com', password='testpass123', mobile='9876500002'
        )
        self.buyer = User.objects.create_user(
            username='buyer@test.com', email='buyer@test.com', password='testpass123', mobile='9876500003'
        )
        self.seller = Seller.objects.create(
            user=seller_user, business_name='Bottle House', gst_number='22AAAAA0000A1Z5',
            verification_status='approved'
        )
        self.product = Product.objects.create(
            seller=self.seller,
            name='Steel Bottle',
            description='Insulated.',
            category='Home & Kitchen',
            base_price=Decimal('500.00'),
            selling_price=Decimal('450.00'),
            price_discount=Decimal('10'),
            stock=5,
        )

    def place_order(self):
        order = Order.objects.create(
            user=self.buyer,
            seller=self.seller,
            subtotal=Decimal('450.00'),
            total=Decimal('450.00'),
            payment_method='cod',
            delivery_option='seller_pickup',
        )
        OrderItem.objects.create(
            order=order, product=self.product, name=self.product.name,
            quantity=1, price=Decimal('450.00'), final_price=Decimal('450.00'),
        )
        order.record_status('pending', 'Order created')
        return order

    def test_delivery_counts_one_sale(self):
        order = self.place_order()

        order.transition_to('shipped')
        self.seller.refresh_from_db()
        self.assertEqual(self.seller.total_sales, 0)

        order.transition_to('delivered')
        self.seller.refresh_from_db()
        self.assertEqual(self.seller.total_sales, 1)

    def test_cancelled_order_does_not_count(self):
        order = self.place_order()
        Product.objects.filter(pk=self.product.pk).update(sales=1)

        order.transition_to('cancelled')

        self.seller.refresh_from_db()
        self.assertEqual(self.seller.total_sales, 0)
