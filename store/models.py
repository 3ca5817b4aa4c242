"""
Data model for the Bargain Bazaar marketplace.

Users buy and (optionally) sell. Sellers list products, answer bargains and
challenges, and fulfil orders. Orders carry an append-only status history.
"""

import random
import time
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .delivery import DELIVERY_OPTION_CHOICES
from .pricing import PRICE_TOLERANCE, prices_agree
from .storage import product_image_storage, product_image_upload_path
from .validators import (
    validate_gst_number,
    validate_mobile_number,
    validate_pincode,
    validate_product_image,
)

MONEY_FIELD = dict(max_digits=12, decimal_places=2)


class User(AbstractUser):
    """
    Marketplace account.

    Every account can buy. ``is_seller`` is set once the account owns a
    Seller profile and is independent of ``role``, so one account may be a
    buyer and a seller at the same time.
    """

    ROLE_CHOICES = [
        ('buyer', 'Buyer'),
        ('seller', 'Seller'),
        ('verifier', 'Verifier'),
        ('admin', 'Admin'),
    ]

    email = models.EmailField(
        _('email address'),
        unique=True,
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
    )

    name = models.CharField(_('name'), max_length=100, blank=True, default='')

    mobile = models.CharField(
        _('mobile number'),
        max_length=10,
        unique=True,
        null=True,
        blank=True,
        validators=[validate_mobile_number],
        error_messages={
            'unique': _('A user with that mobile number already exists.'),
        },
        help_text=_('10-digit Indian mobile number.')
    )

    mobile_verified = models.BooleanField(_('mobile verified'), default=True)

    role = models.CharField(_('role'), max_length=10, choices=ROLE_CHOICES, default='buyer')

    is_seller = models.BooleanField(
        _('seller capability'),
        default=False,
        help_text=_('Set when the account owns a seller profile.')
    )

    preferred_delivery_option = models.CharField(
        _('preferred delivery option'),
        max_length=20,
        choices=DELIVERY_OPTION_CHOICES,
        default='dabbawala'
    )

    preferred_metro_station = models.CharField(
        _('preferred metro station'),
        max_length=120,
        blank=True,
        default=''
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    REQUIRED_FIELDS = ['email']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role'], name='store_user_role_4b1f0d_idx'),
        ]

    def __str__(self):
        return self.email or self.username

    def is_admin(self):
        return self.role == 'admin' or self.is_staff or self.is_superuser

    def is_verifier(self):
        return self.role == 'verifier' or self.is_admin()

    def get_seller_profile(self):
        """Return the user's Seller profile, or None."""
        try:
            return self.seller_profile
        except Seller.DoesNotExist:
            return None

    def clean(self):
        super().clean()
        if self.email:
            self.email = self.email.lower().strip()
        if not self.email:
            raise ValidationError({'email': _('Email address is required.')})

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower().strip()
        if self.mobile == '':
            self.mobile = None
        super().save(*args, **kwargs)


class Address(models.Model):
    TYPE_CHOICES = [
        ('home', 'Home'),
        ('work', 'Work'),
        ('other', 'Other'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='addresses')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    street = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    pincode = models.CharField(max_length=6, validators=[validate_pincode])
    landmark = models.CharField(max_length=255, blank=True, default='')
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-is_default', '-created_at']
        verbose_name_plural = _('addresses')

    def __str__(self):
        return f'{self.street}, {self.city} {self.pincode}'


class Seller(models.Model):
    """
    Selling entity owned by exactly one user.

    Close-knit sellers are a trusted informal tier: they are exempt from GST
    verification and approved on registration. Everyone else needs a GST
    number and waits for a verifier.
    """

    VERIFICATION_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='seller_profile'
    )

    business_name = models.CharField(_('business name'), max_length=200)

    gst_number = models.CharField(
        _('GST number'),
        max_length=15,
        blank=True,
        default='',
        validators=[validate_gst_number]
    )

    gst_verified = models.BooleanField(_('GST verified'), default=False)

    is_close_knit = models.BooleanField(
        _('close-knit seller'),
        default=False,
        help_text=_('Close-knit sellers are exempt from GST verification.')
    )

    verification_status = models.CharField(
        _('verification status'),
        max_length=10,
        choices=VERIFICATION_STATUS_CHOICES,
        default='pending'
    )

    verification_notes = models.TextField(blank=True, default='')

    verified_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='verified_sellers'
    )

    verified_at = models.DateTimeField(null=True, blank=True)

    rating_average = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    rating_count = models.PositiveIntegerField(default=0)
    total_sales = models.PositiveIntegerField(
        default=0,
        help_text=_('Number of delivered orders.')
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['verification_status'], name='store_selle_verific_8a2c61_idx'),
        ]

    def __str__(self):
        return self.business_name

    @property
    def is_approved(self):
        return self.verification_status == 'approved'

    def clean(self):
        super().clean()

        if not self.business_name or not self.business_name.strip():
            raise ValidationError({'business_name': _('Business name cannot be empty.')})

        if not self.is_close_knit and not self.gst_number:
            raise ValidationError({
                'gst_number': _('GST number is required for regular sellers.')
            })

    def save(self, *args, **kwargs):
        if self.is_close_knit:
            self.gst_number = ''
        self.full_clean()
        super().save(*args, **kwargs)

    def record_verification(self, status, verifier, notes=''):
        self.verification_status = status
        self.verification_notes = notes or ''
        self.verified_by = verifier
        self.verified_at = timezone.now()
        if status == 'approved':
            self.gst_verified = True
        self.save()


class PickupLocation(models.Model):
    seller = models.ForeignKey(Seller, on_delete=models.CASCADE, related_name='pickup_locations')
    name = models.CharField(max_length=120)
    street = models.CharField(max_length=255, blank=True, default='')
    city = models.CharField(max_length=100, blank=True, default='')
    state = models.CharField(max_length=100, blank=True, default='')
    pincode = models.CharField(max_length=6, blank=True, default='', validators=[validate_pincode])
    landmark = models.CharField(max_length=255, blank=True, default='')
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    timings = models.CharField(max_length=120, blank=True, default='')
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f'{self.name} ({self.seller.business_name})'


class ProductQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


class Product(models.Model):
    """
    Catalog entry owned by a seller.

    Pricing invariant: ``selling_price = base_price * (1 - price_discount / 100)``
    within 0.01. ``stock`` only moves through orders: checkout decrements it,
    cancelling or returning an order puts it back. Products are soft-deleted
    through ``is_active`` and never hard-deleted while orders reference them.
    """

    seller = models.ForeignKey(Seller, on_delete=models.PROTECT, related_name='products')

    name = models.CharField(_('name'), max_length=200)
    description = models.TextField(_('description'))
    category = models.CharField(_('category'), max_length=100, db_index=True)
    subcategory = models.CharField(max_length=100, blank=True, default='')
    brand = models.CharField(max_length=100, blank=True, default='')
    sku = models.CharField(max_length=64, unique=True, null=True, blank=True)
    tags = models.JSONField(default=list, blank=True)
    specifications = models.JSONField(default=dict, blank=True)
    competitive_prices = models.JSONField(
        default=dict,
        blank=True,
        help_text=_('Prices seen on other platforms, e.g. {"flipkart": 999, "amazon": 1049}.')
    )

    base_price = models.DecimalField(_('base price'), **MONEY_FIELD)
    selling_price = models.DecimalField(_('selling price'), **MONEY_FIELD)
    price_discount = models.DecimalField(
        _('discount percentage'),
        max_digits=10,
        decimal_places=6,
        default=Decimal('0')
    )

    allow_bargaining = models.BooleanField(default=False)
    min_bargain_price = models.DecimalField(null=True, blank=True, **MONEY_FIELD)

    stock = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)
    is_verified = models.BooleanField(default=False)
    views = models.PositiveIntegerField(default=0)
    sales = models.PositiveIntegerField(default=0)
    rating_average = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    rating_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category', 'allow_bargaining'], name='store_produ_categor_3e9b27_idx'),
            models.Index(fields=['is_active'], name='store_produ_is_acti_52d7c4_idx'),
            models.Index(fields=['selling_price'], name='store_produ_selling_0f6a13_idx'),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        super().clean()

        if not self.name or not self.name.strip():
            raise ValidationError({'name': _('Product name cannot be empty.')})

        if self.base_price is not None and self.base_price <= 0:
            raise ValidationError({'base_price': _('Base price must be greater than 0.')})

        if self.selling_price is not None and self.base_price is not None:
            if self.selling_price <= 0:
                raise ValidationError({'selling_price': _('Selling price must be greater than 0.')})
            if self.selling_price > self.base_price:
                raise ValidationError({
                    'selling_price': _('Selling price cannot exceed the base price.')
                })
            if not prices_agree(self.base_price, self.selling_price, self.price_discount):
                raise ValidationError({
                    'price_discount': _(
                        f'Selling price must equal base price less the discount '
                        f'(tolerance {PRICE_TOLERANCE}).'
                    )
                })

        if self.min_bargain_price is not None and self.selling_price is not None:
            if self.min_bargain_price <= 0 or self.min_bargain_price >= self.selling_price:
                raise ValidationError({
                    'min_bargain_price': _('Minimum bargain price must be between 0 and the selling price.')
                })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class ProductImage(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='images')
    image = models.ImageField(
        upload_to=product_image_upload_path,
        storage=product_image_storage,
        validators=[validate_product_image]
    )
    order = models.PositiveIntegerField(default=0)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        return f'Image {self.order} for {self.product.name}'


def generate_order_ref():
    return f'ORD{int(time.time() * 1000)}{random.randint(0, 999):03d}'


class Order(models.Model):
    """
    Checkout of one buyer's items from a single seller.

    Totals: ``subtotal = sum(final_price * quantity)`` and
    ``total = subtotal + delivery_charge``.

    Status lifecycle::

        pending -> confirmed -> processing -> shipped -> out_for_delivery -> delivered

    Forward moves may skip steps. ``cancelled`` and ``returned`` can be
    entered from any non-terminal state. ``delivered``, ``cancelled`` and
    ``returned`` are terminal. Every move appends to ``status_history``.
    """

    STATUS_FLOW = ['pending', 'confirmed', 'processing', 'shipped', 'out_for_delivery', 'delivered']
    SIDE_STATUSES = ['cancelled', 'returned']
    TERMINAL_STATUSES = ['delivered', 'cancelled', 'returned']

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('out_for_delivery', 'Out for delivery'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
        ('returned', 'Returned'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('online', 'Online'),
        ('cod', 'Cash on delivery'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]

    order_ref = models.CharField(max_length=32, unique=True, default=generate_order_ref, editable=False)

    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='orders')
    seller = models.ForeignKey(Seller, on_delete=models.PROTECT, related_name='orders')

    subtotal = models.DecimalField(**MONEY_FIELD)
    delivery_charge = models.DecimalField(default=Decimal('0.00'), **MONEY_FIELD)
    total = models.DecimalField(**MONEY_FIELD)

    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES)
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default='pending')
    gateway_order_id = models.CharField(max_length=100, blank=True, default='')
    gateway_payment_id = models.CharField(max_length=100, blank=True, default='')
    gateway_signature = models.CharField(max_length=200, blank=True, default='')

    delivery_option = models.CharField(max_length=20, choices=DELIVERY_OPTION_CHOICES)
    address = models.ForeignKey(
        Address,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )
    metro_station = models.CharField(max_length=120, blank=True, default='')
    pickup_location = models.ForeignKey(
        PickupLocation,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )
    delivery_partner = models.CharField(max_length=100, blank=True, default='')
    delivery_partner_ref = models.CharField(max_length=100, blank=True, default='')
    estimated_delivery = models.DateTimeField(null=True, blank=True)
    tracking_id = models.CharField(max_length=100, blank=True, default='')

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user'], name='store_order_user_id_7d1e52_idx'),
            models.Index(fields=['seller'], name='store_order_seller__c04b8e_idx'),
            models.Index(fields=['status'], name='store_order_status_91af3d_idx'),
            models.Index(fields=['gateway_order_id'], name='store_order_gateway_6b2f90_idx'),
        ]

    def __str__(self):
        return self.order_ref

    def clean(self):
        super().clean()
        if None not in (self.subtotal, self.delivery_charge, self.total):
            if self.total != self.subtotal + self.delivery_charge:
                raise ValidationError({
                    'total': _('Total must equal subtotal plus delivery charge.')
                })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def can_transition_to(self, new_status):
        """
        Check a status move against the order lifecycle.

        Returns:
            tuple: (is_valid: bool, error_message: str or None)
        """
        current_status = self.status

        if new_status not in dict(self.STATUS_CHOICES):
            return False, f'Invalid status "{new_status}".'

        if current_status == new_status:
            return False, f'Order is already {current_status}.'

        if current_status in self.TERMINAL_STATUSES:
            return False, f'Cannot modify a {current_status} order.'

        if new_status in self.SIDE_STATUSES:
            return True, None

        if new_status == 'pending':
            return False, 'Cannot move an order back to pending.'

        if self.STATUS_FLOW.index(new_status) < self.STATUS_FLOW.index(current_status):
            return False, f'Cannot move an order from {current_status} back to {new_status}.'

        return True, None

    def record_status(self, status, notes=''):
        return OrderStatusHistory.objects.create(order=self, status=status, notes=notes or '')

    def transition_to(self, new_status, notes=''):
        """
        Move the order to ``new_status`` and append the history entry.

        Cancelling or returning puts the items back into stock. Callers are
        expected to hold a row lock on the order inside a transaction.

        Raises:
            ValidationError: If the move is not allowed
        """
        is_valid, error_message = self.can_transition_to(new_status)
        if not is_valid:
            raise ValidationError({'status': error_message})

        self.status = new_status
        update_fields = ['status', 'updated_at']

        if new_status == 'delivered':
            self.delivered_at = timezone.now()
            update_fields.append('delivered_at')

        self.save(update_fields=update_fields)

        if new_status in self.SIDE_STATUSES:
            self.restock_items()

        return self.record_status(new_status, notes)

    def restock_items(self):
        for item in self.items.all():
            Product.objects.filter(pk=item.product_id).update(
                stock=F('stock') + item.quantity,
                sales=F('sales') - item.quantity,
            )


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='order_items')
    name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(
        help_text=_('Selling price at checkout.'),
        **MONEY_FIELD
    )
    final_price = models.DecimalField(
        help_text=_('Unit price charged, after any accepted bargain.'),
        **MONEY_FIELD
    )
    bargain = models.ForeignKey(
        'Bargain',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )
    bargain_accepted = models.BooleanField(default=False)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f'{self.quantity} x {self.name}'

    @property
    def line_total(self):
        return self.final_price * self.quantity


class OrderStatusHistory(models.Model):
    """One entry of an order's status log. Entries are never edited."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='status_history')
    status = models.CharField(max_length=20, choices=Order.STATUS_CHOICES)
    notes = models.CharField(max_length=255, blank=True, default='')
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['timestamp', 'id']
        verbose_name_plural = _('order status history')

    def __str__(self):
        return f'{self.order.order_ref}: {self.status}'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError(_('Status history entries are append-only.'))
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(_('Status history entries are append-only.'))


def default_bargain_expiry():
    return timezone.now() + settings.BARGAIN_TTL


def default_challenge_expiry():
    return timezone.now() + settings.CHALLENGE_TTL


class Bargain(models.Model):
    """
    Price negotiation between one buyer and the seller of one product.

    Lifecycle::

        pending --seller accept/reject--> accepted | rejected
        pending --seller counter--> countered
        countered --seller accept/reject/counter--> accepted | rejected | countered
        countered --buyer accept/reject--> accepted | rejected

    Non-terminal bargains past ``expires_at`` become ``expired`` the next
    time they are touched (see ``expire_if_due``).
    """

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('countered', 'Countered'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
        ('expired', 'Expired'),
    ]
    ACTIVE_STATUSES = ['pending', 'countered']

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='bargains')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='bargains')
    seller = models.ForeignKey(Seller, on_delete=models.CASCADE, related_name='bargains')

    original_price = models.DecimalField(**MONEY_FIELD)
    buyer_offer = models.DecimalField(**MONEY_FIELD)
    seller_counter_offer = models.DecimalField(null=True, blank=True, **MONEY_FIELD)
    final_price = models.DecimalField(null=True, blank=True, **MONEY_FIELD)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    expires_at = models.DateTimeField(default=default_bargain_expiry)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['product', 'user', 'status'], name='store_barga_product_5f3a70_idx'),
            models.Index(fields=['seller', 'status'], name='store_barga_seller__2d84c1_idx'),
        ]

    def __str__(self):
        return f'Bargain #{self.pk} on {self.product.name} ({self.status})'

    @property
    def is_active(self):
        return self.status in self.ACTIVE_STATUSES

    def expire_if_due(self, now=None):
        """Flip an overdue active bargain to ``expired``. Returns True if it did."""
        now = now or timezone.now()
        if self.is_active and self.expires_at <= now:
            self.status = 'expired'
            self.save(update_fields=['status', 'updated_at'])
            return True
        return False

    def add_message(self, sender, message):
        if not message:
            return None
        return BargainMessage.objects.create(bargain=self, sender=sender, message=message)

    def seller_accept(self):
        self.status = 'accepted'
        self.final_price = self.buyer_offer
        self.save(update_fields=['status', 'final_price', 'updated_at'])

    def seller_reject(self):
        self.status = 'rejected'
        self.save(update_fields=['status', 'updated_at'])

    def seller_counter(self, counter_offer):
        self.status = 'countered'
        self.seller_counter_offer = counter_offer
        self.save(update_fields=['status', 'seller_counter_offer', 'updated_at'])

    def buyer_accept(self):
        self.status = 'accepted'
        self.final_price = self.seller_counter_offer
        self.save(update_fields=['status', 'final_price', 'updated_at'])

    def buyer_reject(self):
        self.status = 'rejected'
        self.save(update_fields=['status', 'updated_at'])


class BargainMessage(models.Model):
    SENDER_CHOICES = [
        ('buyer', 'Buyer'),
        ('seller', 'Seller'),
    ]

    bargain = models.ForeignKey(Bargain, on_delete=models.CASCADE, related_name='messages')
    sender = models.CharField(max_length=10, choices=SENDER_CHOICES)
    message = models.TextField()
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['timestamp', 'id']

    def __str__(self):
        return f'{self.sender}: {self.message[:40]}'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError(_('Bargain messages are append-only.'))
        super().save(*args, **kwargs)


class Challenge(models.Model):
    """
    A buyer's request for sellers to beat a competitor's price.

    ``challenge_price`` must be at most 90% of ``current_price``. Sellers
    answer with one response each; the buyer accepts one of them. Accepting
    does not create an order.
    """

    PLATFORM_CHOICES = [
        ('flipkart', 'Flipkart'),
        ('amazon', 'Amazon'),
        ('other', 'Other'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('accepted', 'Accepted'),
        ('expired', 'Expired'),
        ('completed', 'Completed'),
    ]

    MAX_PRICE_RATIO = Decimal('0.9')

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='challenges')
    product_name = models.CharField(max_length=200)
    product_url = models.URLField(max_length=500)
    platform = models.CharField(max_length=10, choices=PLATFORM_CHOICES)
    current_price = models.DecimalField(**MONEY_FIELD)
    description = models.TextField(blank=True, default='')
    category = models.CharField(max_length=100, blank=True, default='')
    images = models.JSONField(default=list, blank=True)
    challenge_price = models.DecimalField(**MONEY_FIELD)
    delivery_time = models.CharField(max_length=100)
    city = models.CharField(max_length=100, blank=True, default='')
    pincode = models.CharField(max_length=6, blank=True, default='', validators=[validate_pincode])

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active')

    accepted_seller = models.ForeignKey(
        Seller,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='won_challenges'
    )
    accepted_order = models.ForeignKey(
        Order,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='challenges',
        help_text=_('Filled in manually once an order is placed for the accepted offer.')
    )

    expires_at = models.DateTimeField(default=default_challenge_expiry)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='store_chall_status_a7c3e5_idx'),
        ]

    def __str__(self):
        return f'Challenge #{self.pk}: {self.product_name}'

    @classmethod
    def max_challenge_price(cls, current_price):
        return Decimal(str(current_price)) * cls.MAX_PRICE_RATIO

    def expire_if_due(self, now=None):
        now = now or timezone.now()
        if self.status == 'active' and self.expires_at <= now:
            self.status = 'expired'
            self.save(update_fields=['status'])
            return True
        return False

    def accept_response(self, response):
        self.status = 'accepted'
        self.accepted_seller_id = response.seller_id
        self.save(update_fields=['status', 'accepted_seller'])

        response.status = 'accepted'
        response.save(update_fields=['status'])

        self.responses.exclude(pk=response.pk).filter(status='pending').update(status='rejected')


class ChallengeResponse(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
    ]

    challenge = models.ForeignKey(Challenge, on_delete=models.CASCADE, related_name='responses')
    seller = models.ForeignKey(Seller, on_delete=models.CASCADE, related_name='challenge_responses')
    offered_price = models.DecimalField(**MONEY_FIELD)
    delivery_time = models.CharField(max_length=100)
    message = models.TextField(blank=True, default='')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    responded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['responded_at', 'id']

    def __str__(self):
        return f'{self.seller.business_name} offers {self.offered_price}'
