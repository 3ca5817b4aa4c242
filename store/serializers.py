"""
Request and response serializers for the Bargain Bazaar API.
"""

import json
from collections import OrderedDict
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import F
from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import NotFound

from .delivery import DELIVERY_OPTION_CHOICES, get_delivery_option
from .exceptions import Conflict, InsufficientStock
from .models import (
    Address,
    Bargain,
    BargainMessage,
    Challenge,
    ChallengeResponse,
    Order,
    OrderItem,
    OrderStatusHistory,
    PickupLocation,
    Product,
    ProductImage,
    Seller,
)
from .pricing import PricingError, resolve_prices
from .validators import validate_gst_number, validate_mobile_number, validate_product_image

User = get_user_model()

MAX_PRODUCT_IMAGES = 10


# ============================================================================
# Users and authentication
# ============================================================================

class UserRegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for account registration.

    Fields:
    - name: Required, 2-100 characters
    - email: Required, unique (case-insensitive)
    - mobile: Required, unique, 10 digits starting with 6-9
    - password: Required, checked against Django's password validators
    """

    password = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'mobile', 'password', 'role', 'is_seller', 'created_at']
        read_only_fields = ['id', 'role', 'is_seller', 'created_at']
        extra_kwargs = {
            'name': {'required': True},
            'email': {'required': True},
            'mobile': {'required': True, 'allow_null': False, 'validators': []},
        }

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters.")
        return value

    def validate_email(self, value):
        value = value.strip().lower()

        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with that email already exists.")

        return value

    def validate_mobile(self, value):
        value = (value or '').strip()
        if not value:
            raise serializers.ValidationError("Mobile number is required.")

        try:
            validate_mobile_number(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))

        if User.objects.filter(mobile=value).exists():
            raise serializers.ValidationError("A user with that mobile number already exists.")

        return value

    def validate_password(self, value):
        try:
            validate_password(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value

    def create(self, validated_data):
        """
        Create a buyer account. Privilege fields are never taken from input.
        """
        password = validated_data.pop('password')
        email = validated_data['email']

        user = User(
            username=email[:150],
            email=email,
            name=validated_data['name'],
            mobile=validated_data['mobile'],
            mobile_verified=True,
            role='buyer',
        )
        user.set_password(password)
        user.save()
        return user


class LoginSerializer(serializers.Serializer):
    """
    Login with either ``email`` or ``mobile`` plus ``password``.
    """

    email = serializers.EmailField(required=False)
    mobile = serializers.CharField(required=False)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        if not attrs.get('email') and not attrs.get('mobile'):
            raise serializers.ValidationError({
                'email': 'Provide an email address or a mobile number.'
            })
        attrs['identifier'] = (attrs.get('email') or attrs.get('mobile')).strip().lower()
        return attrs


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=True)


class SellerSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Seller
        fields = [
            'id',
            'business_name',
            'is_close_knit',
            'verification_status',
            'rating_average',
            'rating_count',
        ]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    seller = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'email',
            'mobile',
            'mobile_verified',
            'role',
            'is_seller',
            'preferred_delivery_option',
            'preferred_metro_station',
            'seller',
            'created_at',
        ]
        read_only_fields = fields

    def get_seller(self, obj):
        seller = obj.get_seller_profile()
        if seller is None:
            return None
        return SellerSummarySerializer(seller).data


class UserBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email']
        read_only_fields = fields


class UserProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for profile updates.

    Email, role and seller flags are not editable here.
    """

    class Meta:
        model = User
        fields = ['name', 'mobile', 'preferred_delivery_option', 'preferred_metro_station']
        extra_kwargs = {
            'mobile': {'validators': []},
        }

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters.")
        return value

    def validate_mobile(self, value):
        if not value:
            raise serializers.ValidationError("Mobile number cannot be empty.")

        value = value.strip()
        try:
            validate_mobile_number(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))

        if User.objects.filter(mobile=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError("A user with that mobile number already exists.")

        return value


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = ['id', 'type', 'street', 'city', 'state', 'pincode', 'landmark', 'is_default', 'created_at']
        read_only_fields = ['id', 'created_at']

    def create(self, validated_data):
        user = self.context['request'].user

        # The first address becomes the default one
        if not user.addresses.exists():
            validated_data['is_default'] = True

        if validated_data.get('is_default'):
            user.addresses.update(is_default=False)

        return Address.objects.create(user=user, **validated_data)


# ============================================================================
# Sellers
# ============================================================================

class PickupLocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = PickupLocation
        fields = [
            'id', 'name', 'street', 'city', 'state', 'pincode', 'landmark',
            'latitude', 'longitude', 'timings', 'is_active',
        ]
        read_only_fields = ['id']


class SellerSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)
    pickup_locations = PickupLocationSerializer(many=True, read_only=True)
    verified_by = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Seller
        fields = [
            'id',
            'user',
            'business_name',
            'gst_number',
            'gst_verified',
            'is_close_knit',
            'verification_status',
            'verification_notes',
            'verified_by',
            'verified_at',
            'rating_average',
            'rating_count',
            'total_sales',
            'pickup_locations',
            'created_at',
        ]
        read_only_fields = fields


class SellerRegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for registering the current user as a seller.

    Regular sellers must supply a GST number and start ``pending``.
    Close-knit sellers need no GST number and are approved immediately.

    Raises:
        Conflict: If the user already has a seller profile
    """

    pickup_locations = PickupLocationSerializer(many=True, required=False)

    class Meta:
        model = Seller
        fields = ['business_name', 'gst_number', 'is_close_knit', 'pickup_locations']
        extra_kwargs = {
            'gst_number': {'required': False, 'allow_blank': True, 'validators': []},
        }

    def validate_business_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Business name cannot be empty.")
        return value

    def validate_gst_number(self, value):
        value = (value or '').strip().upper()
        try:
            validate_gst_number(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value

    def validate(self, attrs):
        user = self.context['request'].user

        if user.get_seller_profile() is not None:
            raise Conflict('You are already registered as a seller.')

        if not attrs.get('is_close_knit') and not attrs.get('gst_number'):
            raise serializers.ValidationError({
                'gst_number': 'GST number is required for regular sellers.'
            })

        return attrs

    def create(self, validated_data):
        pickup_locations = validated_data.pop('pickup_locations', [])
        user = self.context['request'].user

        seller = Seller(user=user, **validated_data)
        if seller.is_close_knit:
            seller.verification_status = 'approved'
            seller.verified_at = timezone.now()
        seller.save()

        for location in pickup_locations:
            PickupLocation.objects.create(seller=seller, **location)

        return seller


class SellerProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Update business details. A new GST number resets ``gst_verified``.
    Supplying ``pickup_locations`` replaces the existing list.
    """

    pickup_locations = PickupLocationSerializer(many=True, required=False)

    class Meta:
        model = Seller
        fields = ['business_name', 'gst_number', 'pickup_locations']
        extra_kwargs = {
            'gst_number': {'required': False, 'allow_blank': True, 'validators': []},
        }

    def validate_business_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Business name cannot be empty.")
        return value

    def validate_gst_number(self, value):
        value = (value or '').strip().upper()
        try:
            validate_gst_number(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value

    def update(self, instance, validated_data):
        pickup_locations = validated_data.pop('pickup_locations', None)

        if 'gst_number' in validated_data and validated_data['gst_number'] != instance.gst_number:
            instance.gst_verified = False

        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()

        if pickup_locations is not None:
            instance.pickup_locations.all().delete()
            for location in pickup_locations:
                PickupLocation.objects.create(seller=instance, **location)

        return instance


class SellerVerificationSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Seller.VERIFICATION_STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


# ============================================================================
# Catalog
# ============================================================================

class ProductImageSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = ProductImage
        fields = ['id', 'url', 'order']
        read_only_fields = fields

    def get_url(self, obj):
        return obj.image.url if obj.image else None


class ProductListSerializer(serializers.ModelSerializer):
    seller = SellerSummarySerializer(read_only=True)
    image = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id',
            'name',
            'category',
            'subcategory',
            'brand',
            'base_price',
            'selling_price',
            'price_discount',
            'allow_bargaining',
            'stock',
            'rating_average',
            'rating_count',
            'views',
            'sales',
            'seller',
            'image',
            'created_at',
        ]
        read_only_fields = fields

    def get_image(self, obj):
        images = list(obj.images.all())
        return images[0].image.url if images else None


class ProductDetailSerializer(serializers.ModelSerializer):
    seller = SellerSummarySerializer(read_only=True)
    images = ProductImageSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id',
            'name',
            'description',
            'category',
            'subcategory',
            'brand',
            'sku',
            'tags',
            'specifications',
            'competitive_prices',
            'base_price',
            'selling_price',
            'price_discount',
            'allow_bargaining',
            'min_bargain_price',
            'stock',
            'is_active',
            'is_verified',
            'views',
            'sales',
            'rating_average',
            'rating_count',
            'seller',
            'images',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


def _parse_json_value(value, expected_type, field_label):
    # Multipart requests deliver JSON fields as strings
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            if expected_type is list:
                return [part.strip() for part in value.split(',') if part.strip()]
            raise serializers.ValidationError(f"{field_label} must be valid JSON.")

    if not isinstance(value, expected_type):
        raise serializers.ValidationError(
            f"{field_label} must be a {'list' if expected_type is list else 'JSON object'}."
        )
    return value


class ProductWriteSerializer(serializers.ModelSerializer):
    """
    Serializer for creating and updating products.

    Pricing rules:
    - ``price_discount`` only: the selling price is derived
    - ``selling_price`` only: the discount is derived
    - both: they must agree within 0.01
    - on update, changing only ``base_price`` keeps the current discount

    ``images`` accepts up to ten uploaded files. On update, sending images
    replaces the existing set.
    """

    selling_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    price_discount = serializers.DecimalField(max_digits=10, decimal_places=6, required=False)
    images = serializers.ListField(
        child=serializers.ImageField(validators=[validate_product_image]),
        write_only=True,
        required=False,
        max_length=MAX_PRODUCT_IMAGES,
    )

    class Meta:
        model = Product
        fields = [
            'name',
            'description',
            'category',
            'subcategory',
            'brand',
            'sku',
            'tags',
            'specifications',
            'competitive_prices',
            'base_price',
            'selling_price',
            'price_discount',
            'allow_bargaining',
            'min_bargain_price',
            'stock',
            'images',
        ]
        extra_kwargs = {
            'sku': {'validators': []},
        }

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Product name cannot be empty.")
        return value

    def validate_sku(self, value):
        value = (value or '').strip() or None
        if value is None:
            return None

        duplicates = Product.objects.filter(sku=value)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError("A product with this SKU already exists.")
        return value

    def validate_tags(self, value):
        tags = _parse_json_value(value, list, 'Tags')
        return [str(tag).strip() for tag in tags if str(tag).strip()]

    def validate_specifications(self, value):
        return _parse_json_value(value, dict, 'Specifications')

    def validate_competitive_prices(self, value):
        prices = _parse_json_value(value, dict, 'Competitive prices')
        for platform, price in prices.items():
            try:
                if Decimal(str(price)) < 0:
                    raise serializers.ValidationError(f"Price for {platform} cannot be negative.")
            except ArithmeticError:
                raise serializers.ValidationError(f"Price for {platform} must be a number.")
        return prices

    def validate(self, attrs):
        instance = self.instance
        price_fields = {'base_price', 'selling_price', 'price_discount'}

        if instance is None or price_fields & attrs.keys():
            base_price = attrs.get('base_price', getattr(instance, 'base_price', None))
            selling_price = attrs.get('selling_price')
            discount = attrs.get('price_discount')

            if instance is not None and selling_price is None and discount is None:
                discount = instance.price_discount

            try:
                base_price, selling_price, discount = resolve_prices(base_price, selling_price, discount)
            except PricingError as e:
                raise serializers.ValidationError({e.field: e.message})

            attrs['base_price'] = base_price
            attrs['selling_price'] = selling_price
            attrs['price_discount'] = discount

        selling_price = attrs.get('selling_price', getattr(instance, 'selling_price', None))
        min_bargain_price = attrs.get('min_bargain_price', getattr(instance, 'min_bargain_price', None))
        if min_bargain_price is not None and selling_price is not None:
            if min_bargain_price <= 0 or min_bargain_price >= selling_price:
                raise serializers.ValidationError({
                    'min_bargain_price': 'Minimum bargain price must be between 0 and the selling price.'
                })

        return attrs

    def create(self, validated_data):
        images = validated_data.pop('images', [])
        seller = self.context['request'].user.get_seller_profile()

        product = Product.objects.create(seller=seller, **validated_data)
        self._save_images(product, images)
        return product

    def update(self, instance, validated_data):
        images = validated_data.pop('images', None)

        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()

        if images:
            for old_image in instance.images.all():
                old_image.image.delete(save=False)
                old_image.delete()
            self._save_images(instance, images)

        return instance

    def _save_images(self, product, images):
        for position, image in enumerate(images):
            ProductImage.objects.create(product=product, image=image, order=position)


# ============================================================================
# Orders
# ============================================================================

class OrderItemInputSerializer(serializers.Serializer):
    product = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    final_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=Decimal('0.01'))
    bargain = serializers.IntegerField(required=False, min_value=1)


class OrderCreateSerializer(serializers.Serializer):
    """
    Serializer for checkout.

    Validation order, all before anything is written:
    1. Every product exists and is active (NotFound)
    2. All products belong to one seller, and not to the buyer (Conflict)
    3. Stock covers the summed quantity per product (InsufficientStock)
    4. Each ``final_price`` is the selling price or the price of an accepted
       bargain not already spent on a live order

    ``create`` must run inside ``transaction.atomic()``: it locks the product
    rows, decrements stock and writes the order, its items and the first
    history entry.
    """

    items = OrderItemInputSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    delivery_option = serializers.ChoiceField(choices=DELIVERY_OPTION_CHOICES)
    address = serializers.IntegerField(required=False, allow_null=True)
    metro_station = serializers.CharField(required=False, allow_blank=True, default='')
    pickup_location = serializers.IntegerField(required=False, allow_null=True)

    def validate_address(self, value):
        if value is None:
            return None

        user = self.context['request'].user
        address = Address.objects.filter(pk=value, user=user).first()
        if address is None:
            raise serializers.ValidationError("Address not found.")
        return address

    def validate(self, attrs):
        option = get_delivery_option(attrs['delivery_option'])

        missing = option.missing_details({'metro_station': attrs.get('metro_station')})
        if missing:
            raise serializers.ValidationError({
                field: f'This field is required for {option.label} delivery.' for field in missing
            })

        address = attrs.get('address')
        if address is not None and not option.is_available_in(address.city):
            raise serializers.ValidationError({
                'delivery_option': f'{option.label} delivery is not available in {address.city}.'
            })

        return attrs

    def create(self, validated_data):
        user = self.context['request'].user
        items = validated_data['items']

        requested = OrderedDict()
        for item in items:
            requested[item['product']] = requested.get(item['product'], 0) + item['quantity']

        products = {
            product.pk: product
            for product in Product.objects.select_for_update()
            .select_related('seller')
            .filter(pk__in=list(requested.keys()))
            .order_by('pk')
        }

        for product_id in requested:
            product = products.get(product_id)
            if product is None or not product.is_active:
                raise NotFound(f'Product {product_id} not found.')

        seller_ids = {product.seller_id for product in products.values()}
        if len(seller_ids) > 1:
            raise Conflict('All items in an order must come from the same seller.')

        seller = next(iter(products.values())).seller
        if seller.user_id == user.id:
            raise Conflict('You cannot order your own products.')

        for product_id, quantity in requested.items():
            product = products[product_id]
            if product.stock < quantity:
                raise InsufficientStock(
                    f'Insufficient stock for {product.name}. '
                    f'Available: {product.stock}, requested: {quantity}.'
                )

        lines = [self._price_line(user, products[item['product']], item) for item in items]
        subtotal = sum((line['final_price'] * line['quantity'] for line in lines), Decimal('0.00'))

        option = get_delivery_option(validated_data['delivery_option'])
        delivery_charge = option.delivery_charge(subtotal)

        pickup_location = None
        if validated_data.get('pickup_location'):
            pickup_location = seller.pickup_locations.filter(
                pk=validated_data['pickup_location'], is_active=True
            ).first()
            if pickup_location is None:
                raise serializers.ValidationError({'pickup_location': 'Pickup location not found for this seller.'})

        for product_id, quantity in requested.items():
            Product.objects.filter(pk=product_id).update(
                stock=F('stock') - quantity,
                sales=F('sales') + quantity,
            )

        order = Order.objects.create(
            user=user,
            seller=seller,
            subtotal=subtotal,
            delivery_charge=delivery_charge,
            total=subtotal + delivery_charge,
            payment_method=validated_data['payment_method'],
            delivery_option=option.code,
            address=validated_data.get('address'),
            metro_station=validated_data.get('metro_station', ''),
            pickup_location=pickup_location,
        )

        OrderItem.objects.bulk_create([OrderItem(order=order, **line) for line in lines])
        order.record_status('pending', 'Order created')

        return order

    def _price_line(self, user, product, item):
        """Resolve the unit price charged for one requested item."""
        final_price = item.get('final_price')
        bargain = None

        # An accepted bargain prices one order; cancelling or returning that order frees it.
        unspent = Bargain.objects.filter(user=user, product=product, status='accepted').exclude(
            order_items__order__status__in=Order.STATUS_FLOW
        )

        if item.get('bargain'):
            bargain = unspent.filter(pk=item['bargain']).first()
            if bargain is None:
                raise Conflict(f'No unused accepted bargain {item["bargain"]} for {product.name}.')
            if final_price is not None and final_price != bargain.final_price:
                raise Conflict(f'Final price for {product.name} does not match the accepted bargain.')
            final_price = bargain.final_price

        elif final_price is not None and final_price != product.selling_price:
            bargain = unspent.filter(final_price=final_price).order_by('-updated_at').first()
            if bargain is None:
                raise Conflict(
                    f'Final price for {product.name} must be the selling price '
                    f'or the price of an accepted bargain.'
                )

        if final_price is None:
            final_price = product.selling_price

        return {
            'product': product,
            'name': product.name,
            'quantity': item['quantity'],
            'price': product.selling_price,
            'final_price': final_price,
            'bargain': bargain,
            'bargain_accepted': bargain is not None,
        }


class OrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'name', 'quantity', 'price', 'final_price', 'bargain', 'bargain_accepted', 'line_total']
        read_only_fields = fields


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ['status', 'notes', 'timestamp']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)
    seller = SellerSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)
    address = AddressSerializer(read_only=True)
    pickup_location = PickupLocationSerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id',
            'order_ref',
            'user',
            'seller',
            'items',
            'subtotal',
            'delivery_charge',
            'total',
            'payment_method',
            'payment_status',
            'gateway_order_id',
            'gateway_payment_id',
            'delivery_option',
            'address',
            'metro_station',
            'pickup_location',
            'delivery_partner',
            'delivery_partner_ref',
            'estimated_delivery',
            'tracking_id',
            'status',
            'status_history',
            'created_at',
            'updated_at',
            'delivered_at',
        ]
        read_only_fields = fields


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, default='', max_length=255)


class TrackingUpdateSerializer(serializers.Serializer):
    """
    Delivery tracking details set by the seller or an admin.

    ``status`` is optional and goes through the order lifecycle checks.
    """

    tracking_id = serializers.CharField(required=False, allow_blank=True, max_length=100)
    delivery_partner = serializers.CharField(required=False, allow_blank=True, max_length=100)
    delivery_partner_ref = serializers.CharField(required=False, allow_blank=True, max_length=100)
    estimated_delivery = serializers.DateTimeField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='', max_length=255)

    def validate(self, attrs):
        if not set(attrs.keys()) - {'notes'}:
            raise serializers.ValidationError('Provide at least one tracking field or a status.')
        return attrs


# ============================================================================
# Payments
# ============================================================================

class PaymentOrderCreateSerializer(serializers.Serializer):
    order = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=Decimal('0.01'))


class PaymentVerifySerializer(serializers.Serializer):
    order = serializers.IntegerField(min_value=1)
    razorpay_order_id = serializers.CharField(max_length=100)
    razorpay_payment_id = serializers.CharField(max_length=100)
    razorpay_signature = serializers.CharField(max_length=200)


# ============================================================================
# Bargains
# ============================================================================

class ProductBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'name', 'selling_price', 'min_bargain_price']
        read_only_fields = fields


class BargainMessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = BargainMessage
        fields = ['sender', 'message', 'timestamp']
        read_only_fields = fields


class BargainSerializer(serializers.ModelSerializer):
    product = ProductBriefSerializer(read_only=True)
    user = UserBriefSerializer(read_only=True)
    seller = SellerSummarySerializer(read_only=True)
    messages = BargainMessageSerializer(many=True, read_only=True)

    class Meta:
        model = Bargain
        fields = [
            'id',
            'product',
            'user',
            'seller',
            'original_price',
            'buyer_offer',
            'seller_counter_offer',
            'final_price',
            'status',
            'messages',
            'expires_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class BargainCreateSerializer(serializers.Serializer):
    product = serializers.IntegerField(min_value=1)
    buyer_offer = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    message = serializers.CharField(required=False, allow_blank=True, default='')


class BargainRespondSerializer(serializers.Serializer):
    ACTION_CHOICES = [
        ('accept', 'Accept'),
        ('reject', 'Reject'),
        ('counter', 'Counter'),
    ]

    action = serializers.ChoiceField(choices=ACTION_CHOICES)
    counter_offer = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, min_value=Decimal('0.01')
    )
    message = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['action'] == 'counter' and attrs.get('counter_offer') is None:
            raise serializers.ValidationError({'counter_offer': 'Counter offer is required when countering.'})
        return attrs


class BargainCounterResponseSerializer(serializers.Serializer):
    ACTION_CHOICES = [
        ('accept', 'Accept'),
        ('reject', 'Reject'),
    ]

    action = serializers.ChoiceField(choices=ACTION_CHOICES)
    message = serializers.CharField(required=False, allow_blank=True, default='')


# ============================================================================
# Challenges
# ============================================================================

class ChallengeResponseSerializer(serializers.ModelSerializer):
    seller = SellerSummarySerializer(read_only=True)

    class Meta:
        model = ChallengeResponse
        fields = ['id', 'seller', 'offered_price', 'delivery_time', 'message', 'status', 'responded_at']
        read_only_fields = fields


class ChallengeSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)
    responses = ChallengeResponseSerializer(many=True, read_only=True)
    accepted_seller = SellerSummarySerializer(read_only=True)

    class Meta:
        model = Challenge
        fields = [
            'id',
            'user',
            'product_name',
            'product_url',
            'platform',
            'current_price',
            'description',
            'category',
            'images',
            'challenge_price',
            'delivery_time',
            'city',
            'pincode',
            'status',
            'responses',
            'accepted_seller',
            'accepted_order',
            'expires_at',
            'created_at',
        ]
        read_only_fields = fields


class ChallengeCreateSerializer(serializers.ModelSerializer):
    """
    Serializer for posting a challenge.

    Raises:
        Conflict: If ``challenge_price`` is above 90% of ``current_price``
    """

    images = serializers.ListField(child=serializers.URLField(), required=False, default=list)

    class Meta:
        model = Challenge
        fields = [
            'product_name',
            'product_url',
            'platform',
            'current_price',
            'description',
            'category',
            'images',
            'challenge_price',
            'delivery_time',
            'city',
            'pincode',
        ]

    def validate_current_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Current price must be greater than 0.")
        return value

    def validate_challenge_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Challenge price must be greater than 0.")
        return value

    def validate(self, attrs):
        ceiling = Challenge.max_challenge_price(attrs['current_price'])
        if attrs['challenge_price'] > ceiling:
            raise Conflict(
                f'Challenge price must be at most 90% of the current price ({ceiling.quantize(Decimal("0.01"))}).'
            )
        return attrs

    def create(self, validated_data):
        return Challenge.objects.create(user=self.context['request'].user, **validated_data)


class ChallengeResponseCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = ChallengeResponse
        fields = ['offered_price', 'delivery_time', 'message']

    def validate_offered_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Offered price must be greater than 0.")
        return value


# ============================================================================
# Administration
# ============================================================================

class AdminUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'mobile', 'role', 'is_seller', 'is_active', 'is_staff', 'created_at']
        read_only_fields = fields


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)
