"""
Shared fixtures for the API test suite.
"""

import itertools
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.db.models import F
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from store.models import Order, OrderItem, Product, Seller

User = get_user_model()

_sequence = itertools.count(1)


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear Django cache before each test to reset throttle limits."""
    from django.core.cache import cache
    cache.clear()


@pytest.fixture
def api_client():
    """Return API client for testing."""
    return APIClient()


@pytest.fixture
def make_user(db):
    """Factory creating users with unique emails and mobile numbers."""
    def _make_user(role='buyer', **kwargs):
        n = next(_sequence)
        email = kwargs.pop('email', f'user{n}@test.com')
        defaults = {
            'username': email,
            'email': email,
            'password': 'TestPass123!',
            'name': f'Test User {n}',
            'mobile': f'9{n:09d}',
            'role': role,
        }
        defaults.update(kwargs)
        return User.objects.create_user(**defaults)
    return _make_user


@pytest.fixture
def auth_client():
    """Return a factory building an APIClient authenticated as the given user."""
    def _auth_client(user):
        client = APIClient()
        token = RefreshToken.for_user(user).access_token
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        return client
    return _auth_client


@pytest.fixture
def buyer(make_user):
    return make_user(email='buyer@test.com')


@pytest.fixture
def other_buyer(make_user):
    return make_user(email='buyer2@test.com')


@pytest.fixture
def admin_user(make_user):
    return make_user(role='admin', email='admin@test.com')


@pytest.fixture
def verifier_user(make_user):
    return make_user(role='verifier', email='verifier@test.com')


@pytest.fixture
def make_seller(make_user):
    """Factory creating a seller profile (approved unless told otherwise)."""
    def _make_seller(user=None, verification_status='approved', **kwargs):
        user = user or make_user()
        defaults = {
            'business_name': f'{user.name} Traders',
            'gst_number': '22AAAAA0000A1Z5',
            'verification_status': verification_status,
        }
        defaults.update(kwargs)
        return Seller.objects.create(user=user, **defaults)
    return _make_seller


@pytest.fixture
def seller(make_seller, make_user):
    return make_seller(user=make_user(email='seller@test.com'))


@pytest.fixture
def make_product(seller):
    """Factory creating an active product; prices default to 1000 / 900 / 10%."""
    def _make_product(owner=None, **kwargs):
        defaults = {
            'name': 'Steel Water Bottle',
            'description': 'Keeps water cold for a day.',
            'category': 'Home & Kitchen',
            'base_price': Decimal('1000.00'),
            'selling_price': Decimal('900.00'),
            'price_discount': Decimal('10'),
            'stock': 10,
        }
        defaults.update(kwargs)
        return Product.objects.create(seller=owner or seller, **defaults)
    return _make_product


@pytest.fixture
def product(make_product):
    return make_product()


@pytest.fixture
def make_order():
    """Factory creating an order for one product directly through the ORM, moving stock as checkout does."""
    def _make_order(user, product, quantity=1, payment_method='online', delivery_option='seller_pickup'):
        subtotal = product.selling_price * quantity
        order = Order.objects.create(
            user=user,
            seller=product.seller,
            subtotal=subtotal,
            delivery_charge=Decimal('0.00'),
            total=subtotal,
            payment_method=payment_method,
            delivery_option=delivery_option,
        )
        OrderItem.objects.create(
            order=order,
            product=product,
            name=product.name,
            quantity=quantity,
            price=product.selling_price,
            final_price=product.selling_price,
        )
        Product.objects.filter(pk=product.pk).update(
            stock=F('stock') - quantity,
            sales=F('sales') + quantity,
        )
        order.record_status('pending', 'Order created')
        return order
    return _make_order
