"""
Razorpay payment gateway client.

Only two calls are needed: creating a gateway order for an unpaid marketplace
order, and checking the signature the checkout widget hands back to the
client after payment. The REST API is called directly with ``requests``.
"""

import hashlib
import hmac
import logging

import requests
from django.conf import settings

from .exceptions import GatewayError
from .pricing import to_paise

logger = logging.getLogger(__name__)


class RazorpayGateway:
    def __init__(self, key_id=None, key_secret=None, api_base=None, timeout=None, currency=None):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self.api_base = (api_base or settings.RAZORPAY_API_BASE).rstrip('/')
        self.timeout = timeout or settings.PAYMENT_GATEWAY_TIMEOUT
        self.currency = currency or settings.PAYMENT_CURRENCY

    def create_order(self, amount, receipt):
        """
        Create a gateway order for ``amount`` rupees.

        Args:
            amount: Order total in rupees (Decimal)
            receipt: Our order reference, echoed back by the gateway

        Returns:
            dict: Gateway order payload (``id``, ``amount``, ``currency``, ...)

        Raises:
            GatewayError: On network failure, timeout or a non-2xx response
        """
        payload = {
            'amount': to_paise(amount),
            'currency': self.currency,
            'receipt': receipt,
            'payment_capture': 1,
        }

        try:
            response = requests.post(
                f'{self.api_base}/orders',
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Payment gateway request failed for {receipt}: {e}")
            raise GatewayError()

        if not response.ok:
            logger.error(
                f"Payment gateway rejected order {receipt}: "
                f"HTTP {response.status_code} {response.text[:200]}"
            )
            raise GatewayError()

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Payment gateway returned a non-JSON body for {receipt}")
            raise GatewayError()

        if not data.get('id'):
            logger.error(f"Payment gateway response for {receipt} carries no order id")
            raise GatewayError()

        return data

    def expected_signature(self, gateway_order_id, payment_id):
        message = f'{gateway_order_id}|{payment_id}'.encode()
        return hmac.new(self.key_secret.encode(), message, hashlib.sha256).hexdigest()

    def verify_signature(self, gateway_order_id, payment_id, signature):
        """Constant-time check of ``HMAC-SHA256(order_id|payment_id)`` against ``signature``."""
        if not signature:
            return False
        expected = self.expected_signature(gateway_order_id, payment_id)
        return hmac.compare_digest(expected.encode(), str(signature).encode('utf-8'))


def get_gateway():
    return RazorpayGateway()
