"""
Django admin configuration for the marketplace models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

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
    User,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for the marketplace User model.

    Extends Django's UserAdmin with roles, mobile number and delivery
    preferences.
    """

    list_display = ['email', 'name', 'mobile', 'role', 'is_seller', 'is_staff', 'is_active', 'created_at']
    list_filter = ['role', 'is_seller', 'is_staff', 'is_superuser', 'is_active', 'created_at']
    search_fields = ['email', 'username', 'name', 'mobile']
    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('username', 'password')
        }),
        (_('Personal Info'), {
            'fields': ('name', 'email', 'mobile', 'mobile_verified')
        }),
        (_('Marketplace'), {
            'fields': ('role', 'is_seller', 'preferred_delivery_option', 'preferred_metro_station')
        }),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'name', 'mobile', 'password1', 'password2', 'role'),
        }),
    )

    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined']
    date_hierarchy = 'created_at'
    list_per_page = 25

    def get_readonly_fields(self, request, obj=None):
        if obj:
            return self.readonly_fields
        return []


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ['user', 'type', 'city', 'pincode', 'is_default']
    list_filter = ['type', 'is_default']
    search_fields = ['user__email', 'city', 'pincode']


# ============================================================================
# Sellers
# ============================================================================

class PickupLocationInline(admin.TabularInline):
    model = PickupLocation
    extra = 0


@admin.register(Seller)
class SellerAdmin(admin.ModelAdmin):
    """Admin interface for sellers, including the verification queue."""

    list_display = [
        'business_name',
        'user',
        'is_close_knit',
        'verification_status',
        'gst_verified',
        'total_sales',
        'created_at',
    ]
    list_filter = ['verification_status', 'is_close_knit', 'gst_verified', 'created_at']
    search_fields = ['business_name', 'gst_number', 'user__email']
    readonly_fields = ['created_at', 'verified_at', 'verified_by']
    ordering = ['-created_at']
    list_per_page = 25
    inlines = [PickupLocationInline]

    fieldsets = (
        (None, {
            'fields': ('user', 'business_name', 'is_close_knit')
        }),
        (_('GST & Verification'), {
            'fields': (
                'gst_number',
                'gst_verified',
                'verification_status',
                'verification_notes',
                'verified_by',
                'verified_at',
            )
        }),
        (_('Performance'), {
            'fields': ('rating_average', 'rating_count', 'total_sales', 'created_at'),
            'classes': ('collapse',),
        }),
    )


# ============================================================================
# Catalog
# ============================================================================

class ProductImageInline(admin.TabularInline):
    """Inline admin for product images."""
    model = ProductImage
    extra = 1
    fields = ['image', 'order', 'uploaded_at']
    readonly_fields = ['uploaded_at']
    ordering = ['order']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for Product model."""

    list_display = [
        'name',
        'seller',
        'category',
        'base_price',
        'selling_price',
        'stock',
        'allow_bargaining',
        'is_active',
        'created_at',
    ]
    list_filter = ['is_active', 'is_verified', 'allow_bargaining', 'category', 'created_at']
    search_fields = ['name', 'description', 'brand', 'sku', 'seller__business_name']
    readonly_fields = ['views', 'sales', 'created_at', 'updated_at']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'
    list_per_page = 25
    inlines = [ProductImageInline]

    fieldsets = (
        (None, {
            'fields': ('seller', 'name', 'description', 'category', 'subcategory', 'brand', 'sku', 'tags')
        }),
        (_('Pricing & Stock'), {
            'fields': (
                'base_price',
                'selling_price',
                'price_discount',
                'allow_bargaining',
                'min_bargain_price',
                'stock',
                'competitive_prices',
            )
        }),
        (_('Details'), {
            'fields': ('specifications', 'is_active', 'is_verified'),
        }),
        (_('Statistics'), {
            'fields': ('views', 'sales', 'rating_average', 'rating_count', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


# ============================================================================
# Orders
# ============================================================================

class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'name', 'quantity', 'price', 'final_price', 'bargain', 'bargain_accepted']
    can_delete = False


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ['status', 'notes', 'timestamp']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Admin interface for orders.

    Status changes go through the API so that history and stock stay
    consistent; the status field is read-only here.
    """

    list_display = [
        'order_ref',
        'user',
        'seller',
        'total',
        'payment_method',
        'payment_status',
        'status',
        'created_at',
    ]
    list_filter = ['status', 'payment_status', 'payment_method', 'delivery_option', 'created_at']
    search_fields = ['order_ref', 'user__email', 'seller__business_name', 'gateway_order_id', 'tracking_id']
    readonly_fields = [
        'order_ref',
        'subtotal',
        'delivery_charge',
        'total',
        'status',
        'gateway_order_id',
        'gateway_payment_id',
        'gateway_signature',
        'created_at',
        'updated_at',
        'delivered_at',
    ]
    ordering = ['-created_at']
    date_hierarchy = 'created_at'
    list_per_page = 25
    inlines = [OrderItemInline, OrderStatusHistoryInline]

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================================
# Negotiations
# ============================================================================

class BargainMessageInline(admin.TabularInline):
    model = BargainMessage
    extra = 0
    readonly_fields = ['sender', 'message', 'timestamp']
    can_delete = False


@admin.register(Bargain)
class BargainAdmin(admin.ModelAdmin):
    list_display = ['id', 'product', 'user', 'seller', 'buyer_offer', 'seller_counter_offer', 'final_price', 'status', 'expires_at']
    list_filter = ['status', 'created_at']
    search_fields = ['product__name', 'user__email', 'seller__business_name']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['-created_at']
    inlines = [BargainMessageInline]


class ChallengeResponseInline(admin.TabularInline):
    model = ChallengeResponse
    extra = 0
    readonly_fields = ['responded_at']


@admin.register(Challenge)
class ChallengeAdmin(admin.ModelAdmin):
    list_display = ['id', 'product_name', 'user', 'platform', 'current_price', 'challenge_price', 'status', 'expires_at']
    list_filter = ['status', 'platform', 'created_at']
    search_fields = ['product_name', 'user__email', 'category']
    readonly_fields = ['created_at']
    ordering = ['-created_at']
    inlines = [ChallengeResponseInline]
