"""
Tests for Razorpay payment order creation and signature verification.

The gateway's HTTP API is never called: ``requests.post`` is mocked.
"""

import hashlib
import hmac
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests
from django.conf import settings
from django.db import connection
from rest_framework import status

from store.exceptions import GatewayError
from store.models import Order
from store.payments import RazorpayGateway


def sign(gateway_order_id, payment_id, secret=None):
    secret = secret or settings.RAZORPAY_KEY_SECRET
    message = f'{gateway_order_id}|{payment_id}'.encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def gateway_response(payload=None, status_code=200):
    response = MagicMock()
    response.ok = 200 <= status_code < 300
    response.status_code = status_code
    response.text = 'error body'
    response.json.return_value = payload if payload is not None else {}
    return response


class TestRazorpayGateway:

    def test_create_order_sends_amount_in_paise(self):
        gateway = RazorpayGateway(key_id='rzp_test', key_secret='secret', api_base='https://gw.test/v1')

        with patch('store.payments.requests.post') as mock_post:
            mock_post.return_value = gateway_response({'id': 'order_1', 'amount': 180000, 'currency': 'INR'})
            data = gateway.create_order(Decimal('1800.00'), 'ORD1')

        assert data['id'] == 'order_1'
        args, kwargs = mock_post.call_args
        assert args[0] == 'https://gw.test/v1/orders'
        assert kwargs['json']['amount'] == 180000
        assert kwargs['json']['receipt'] == 'ORD1'
        assert kwargs['auth'] == ('rzp_test', 'secret')

    def test_network_failure_becomes_gateway_error(self):
        gateway = RazorpayGateway(key_id='rzp_test', key_secret='secret')

        with patch('store.payments.requests.post', side_effect=requests.Timeout('too slow')):
            with pytest.raises(GatewayError):
                gateway.create_order(Decimal('10'), 'ORD2')

    def test_error_status_becomes_gateway_error(self):
        gateway = RazorpayGateway(key_id='rzp_test', key_secret='secret')

        with patch('store.payments.requests.post', return_value=gateway_response(status_code=401)):
            with pytest.raises(GatewayError):
                gateway.create_order(Decimal('10'), 'ORD3')

    def test_response_without_id_becomes_gateway_error(self):
        gateway = RazorpayGateway(key_id='rzp_test', key_secret='secret')

        with patch('store.payments.requests.post', return_value=gateway_response({'status': 'created'})):
            with pytest.raises(GatewayError):
                gateway.create_order(Decimal('10'), 'ORD4')

    def test_signature_round_trip(self):
        gateway = RazorpayGateway(key_id='rzp_test', key_secret='secret')
        signature = sign('order_1', 'pay_1', secret='secret')

        assert gateway.verify_signature('order_1', 'pay_1', signature) is True
        assert gateway.verify_signature('order_1', 'pay_2', signature) is False
        assert gateway.verify_signature('order_1', 'pay_1', '') is False

    def test_non_ascii_signature_is_a_mismatch(self):
        gateway = RazorpayGateway(key_id='rzp_test', key_secret='secret')

        assert gateway.verify_signature('order_1', 'pay_1', 'é' * 64) is False


@pytest.mark.django_db
class TestCreatePaymentOrder:
    """Test suite for POST /api/payments/create-order/."""

    url = '/api/payments/create-order/'

    @patch('store.payments.requests.post')
    def test_creates_gateway_order(self, mock_post, auth_client, buyer, product, make_order):
        order = make_order(buyer, product, quantity=2)
        mock_post.return_value = gateway_response({'id': 'order_G1', 'amount': 180000, 'currency': 'INR'})

        response = auth_client(buyer).post(self.url, {'order': order.id, 'amount': '1800.00'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['order_id'] == 'order_G1'
        assert response.data['amount'] == 180000
        assert response.data['currency'] == 'INR'
        assert response.data['key_id'] == settings.RAZORPAY_KEY_ID
        assert response.data['order_ref'] == order.order_ref

        order.refresh_from_db()
        assert order.gateway_order_id == 'order_G1'
        assert order.payment_status == 'pending'

    @patch('store.payments.requests.post')
    def test_gateway_failure_is_500(self, mock_post, auth_client, buyer, product, make_order):
        order = make_order(buyer, product)
        mock_post.side_effect = requests.ConnectionError('down')

        response = auth_client(buyer).post(self.url, {'order': order.id}, format='json')

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['code'] == 'gateway_error'
        order.refresh_from_db()
        assert order.gateway_order_id == ''

    @patch('store.payments.requests.post')
    def test_amount_must_match_total(self, mock_post, auth_client, buyer, product, make_order):
        order = make_order(buyer, product)

        response = auth_client(buyer).post(self.url, {'order': order.id, 'amount': '1.00'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        mock_post.assert_not_called()

    @patch('store.payments.requests.post')
    def test_cash_on_delivery_order_rejected(self, mock_post, auth_client, buyer, product, make_order):
        order = make_order(buyer, product, payment_method='cod')

        response = auth_client(buyer).post(self.url, {'order': order.id}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        mock_post.assert_not_called()

    @patch('store.payments.requests.post')
    def test_cancelled_order_rejected(self, mock_post, auth_client, buyer, product, make_order):
        order = make_order(buyer, product)
        order.transition_to('cancelled')

        response = auth_client(buyer).post(self.url, {'order': order.id}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        mock_post.assert_not_called()

    @patch('store.payments.requests.post')
    def test_order_cancelled_during_gateway_call(self, mock_post, auth_client, buyer, product, make_order):
        order = make_order(buyer, product)

        def cancel_then_respond(*args, **kwargs):
            Order.objects.get(pk=order.pk).transition_to('cancelled')
            return gateway_response({'id': 'order_G2', 'amount': 90000, 'currency': 'INR'})

        mock_post.side_effect = cancel_then_respond

        response = auth_client(buyer).post(self.url, {'order': order.id}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'conflict'
        order.refresh_from_db()
        assert order.status == 'cancelled'
        assert order.gateway_order_id == ''

    @patch('store.payments.requests.post')
    def test_gateway_called_outside_transaction(self, mock_post, auth_client, buyer, product, make_order):
        order = make_order(buyer, product)
        client = auth_client(buyer)
        outer_depth = len(connection.savepoint_ids)
        depth = []

        def record_depth(*args, **kwargs):
            depth.append(len(connection.savepoint_ids))
            return gateway_response({'id': 'order_G3', 'amount': 90000, 'currency': 'INR'})

        mock_post.side_effect = record_depth

        response = client.post(self.url, {'order': order.id}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert depth == [outer_depth]

    @patch('store.payments.requests.post')
    def test_other_users_order_forbidden(self, mock_post, auth_client, buyer, other_buyer, product, make_order):
        order = make_order(buyer, product)

        response = auth_client(other_buyer).post(self.url, {'order': order.id}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        mock_post.assert_not_called()

    def test_unknown_order(self, auth_client, buyer):
        response = auth_client(buyer).post(self.url, {'order': 99999}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestVerifyPayment:
    """Test suite for POST /api/payments/verify/."""

    url = '/api/payments/verify/'

    @pytest.fixture
    def awaiting_payment(self, buyer, product, make_order):
        order = make_order(buyer, product, quantity=2)
        order.gateway_order_id = 'order_G1'
        order.save(update_fields=['gateway_order_id', 'updated_at'])
        return order

    def payload(self, order, payment_id='pay_1', signature=None):
        return {
            'order': order.id,
            'razorpay_order_id': order.gateway_order_id,
            'razorpay_payment_id': payment_id,
            'razorpay_signature': signature or sign(order.gateway_order_id, payment_id),
        }

    def test_valid_signature_marks_paid_and_confirms(self, auth_client, buyer, awaiting_payment):
        response = auth_client(buyer).post(self.url, self.payload(awaiting_payment), format='json')

        assert response.status_code == status.HTTP_200_OK
        awaiting_payment.refresh_from_db()
        assert awaiting_payment.payment_status == 'paid'
        assert awaiting_payment.status == 'confirmed'
        assert awaiting_payment.gateway_payment_id == 'pay_1'
        assert list(awaiting_payment.status_history.values_list('status', flat=True)) == ['pending', 'confirmed']

    def test_tampered_signature_changes_nothing(self, auth_client, buyer, awaiting_payment):
        payload = self.payload(awaiting_payment)
        payload['razorpay_signature'] = '0' * 64

        response = auth_client(buyer).post(self.url, payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'payment_verification_failed'
        awaiting_payment.refresh_from_db()
        assert awaiting_payment.payment_status == 'pending'
        assert awaiting_payment.status == 'pending'

    def test_non_ascii_signature_is_rejected(self, auth_client, buyer, awaiting_payment):
        payload = self.payload(awaiting_payment, signature='é' * 64)

        response = auth_client(buyer).post(self.url, payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'payment_verification_failed'
        awaiting_payment.refresh_from_db()
        assert awaiting_payment.payment_status == 'pending'

    def test_gateway_order_id_must_match(self, auth_client, buyer, awaiting_payment):
        payload = self.payload(awaiting_payment)
        payload['razorpay_order_id'] = 'order_other'
        payload['razorpay_signature'] = sign('order_other', 'pay_1')

        response = auth_client(buyer).post(self.url, payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        awaiting_payment.refresh_from_db()
        assert awaiting_payment.payment_status == 'pending'

    def test_repeat_verification_is_idempotent(self, auth_client, buyer, awaiting_payment):
        client = auth_client(buyer)
        client.post(self.url, self.payload(awaiting_payment), format='json')

        response = client.post(self.url, self.payload(awaiting_payment), format='json')

        assert response.status_code == status.HTTP_200_OK
        assert awaiting_payment.status_history.count() == 2

    def test_second_payment_on_paid_order_conflicts(self, auth_client, buyer, awaiting_payment):
        client = auth_client(buyer)
        client.post(self.url, self.payload(awaiting_payment), format='json')

        response = client.post(self.url, self.payload(awaiting_payment, payment_id='pay_2'), format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'conflict'

    def test_other_user_cannot_verify(self, auth_client, other_buyer, awaiting_payment):
        response = auth_client(other_buyer).post(self.url, self.payload(awaiting_payment), format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        awaiting_payment.refresh_from_db()
        assert awaiting_payment.payment_status == 'pending'

    def test_failed_verification_is_logged(self, auth_client, buyer, awaiting_payment, caplog):
        payload = self.payload(awaiting_payment, signature='f' * 64)

        with caplog.at_level('WARNING', logger='store'):
            auth_client(buyer).post(self.url, payload, format='json')

        assert any('Payment verification failed' in record.getMessage() for record in caplog.records)
