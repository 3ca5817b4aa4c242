"""
API views for the Bargain Bazaar marketplace.
"""

import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import DatabaseError, connection, transaction
from django.db.models import Count, F, Q, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import generics, status
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.generics import ListAPIView, RetrieveAPIView
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .delivery import DELIVERY_OPTIONS
from .exceptions import Conflict, DuplicateBargain, PaymentVerificationFailed
from .models import Bargain, Challenge, ChallengeResponse, Order, Product, Seller
from .payments import get_gateway
from .permissions import (
    CanUpdateOrderStatus,
    CanViewOrder,
    IsAdminOrVerifier,
    IsAdminRole,
    IsApprovedSeller,
    IsBargainParticipant,
    IsOrderBuyer,
    IsProductOwner,
    IsSeller,
)
from .pricing import to_paise
from .serializers import (
    AddressSerializer,
    AdminUserSerializer,
    BargainCounterResponseSerializer,
    BargainCreateSerializer,
    BargainRespondSerializer,
    BargainSerializer,
    ChallengeCreateSerializer,
    ChallengeResponseCreateSerializer,
    ChallengeSerializer,
    LoginSerializer,
    LogoutSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    PaymentOrderCreateSerializer,
    PaymentVerifySerializer,
    ProductDetailSerializer,
    ProductListSerializer,
    ProductWriteSerializer,
    RoleUpdateSerializer,
    SellerProfileUpdateSerializer,
    SellerRegistrationSerializer,
    SellerSerializer,
    SellerVerificationSerializer,
    TrackingUpdateSerializer,
    UserProfileUpdateSerializer,
    UserRegistrationSerializer,
    UserSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def get_client_ip(request):
    """
    Get client IP address from request.
    Handles proxy headers for accurate IP detection.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {
        'access': str(refresh.access_token),
        'refresh': str(refresh),
    }


# ============================================================================
# Authentication and users
# ============================================================================

class RegisterView(generics.CreateAPIView):
    """
    API endpoint for account registration.

    POST /api/auth/register/
    Request body: {"name": "Asha", "email": "asha@example.com", "mobile": "9876543210", "password": "..."}

    Success response (201): {"user": {...}, "access": "<jwt>", "refresh": "<jwt>"}
    """
    serializer_class = UserRegistrationSerializer
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'register'

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            user = serializer.save()

        logger.info(f"User registered. User: {user.id}, IP: {get_client_ip(request)}")

        return Response(
            {'user': UserSerializer(user).data, **issue_tokens(user)},
            status=status.HTTP_201_CREATED
        )


class LoginView(APIView):
    """
    API endpoint for login with email or mobile number.

    Security features:
    - Rate limiting through the ``login`` throttle scope
    - Generic error message to prevent user enumeration
    - Failed attempts logged with the client IP

    POST /api/auth/login/
    Request body: {"email": "asha@example.com", "password": "..."}
              or: {"mobile": "9876543210", "password": "..."}

    Error response (401): {"detail": "Invalid credentials", "code": "authentication_failed"}
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        identifier = serializer.validated_data['identifier']
        client_ip = get_client_ip(request)

        user = authenticate(
            request,
            username=identifier,
            password=serializer.validated_data['password']
        )

        if user is None:
            logger.warning(f"Failed login attempt. Identifier: {identifier}, IP: {client_ip}")
            return Response(
                {'detail': 'Invalid credentials', 'code': 'authentication_failed'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        logger.info(f"Successful login. User: {user.id}, IP: {client_ip}")

        return Response({'user': UserSerializer(user).data, **issue_tokens(user)})


class LogoutView(APIView):
    """Blacklist the supplied refresh token."""

    def post(self, request, *args, **kwargs):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            RefreshToken(serializer.validated_data['refresh']).blacklist()
        except TokenError:
            return Response(
                {'detail': 'Invalid or expired refresh token.', 'code': 'token_not_valid'},
                status=status.HTTP_400_BAD_REQUEST
            )

        logger.info(f"User logged out. User: {request.user.id}, IP: {get_client_ip(request)}")
        return Response({'detail': 'Logged out successfully.'})


class MeView(APIView):
    def get(self, request, *args, **kwargs):
        return Response(UserSerializer(request.user).data)


class UserProfileView(APIView):
    """
    Update the current user's profile.

    PUT/PATCH /api/users/profile/
    Request body: {"name": "...", "mobile": "...", "preferred_delivery_option": "metro",
                   "preferred_metro_station": "Andheri"}
    """

    def put(self, request, *args, **kwargs):
        return self._update(request, partial=False)

    def patch(self, request, *args, **kwargs):
        return self._update(request, partial=True)

    def _update(self, request, partial):
        serializer = UserProfileUpdateSerializer(request.user, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info(f"Profile updated. User: {user.id}, Fields: {sorted(serializer.validated_data)}")
        return Response(UserSerializer(user).data)


class AddressListCreateView(generics.ListCreateAPIView):
    serializer_class = AddressSerializer
    pagination_class = None

    def get_queryset(self):
        return self.request.user.addresses.all()


# ============================================================================
# Sellers
# ============================================================================

class SellerRegisterView(APIView):
    """
    Register the current user as a seller.

    POST /api/sellers/register/
    Request body: {"business_name": "Asha Traders", "gst_number": "22AAAAA0000A1Z5",
                   "is_close_knit": false, "pickup_locations": [{"name": "Shop", "city": "Mumbai"}]}

    Close-knit sellers skip GST and are approved at once; everyone else
    starts ``pending`` until a verifier approves them.
    """

    def post(self, request, *args, **kwargs):
        serializer = SellerRegistrationSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            User.objects.select_for_update().get(pk=request.user.pk)
            if Seller.objects.filter(user=request.user).exists():
                raise Conflict('You are already registered as a seller.')
            seller = serializer.save()

        logger.info(
            f"Seller registered. Seller: {seller.id}, User: {request.user.id}, "
            f"Close-knit: {seller.is_close_knit}, Status: {seller.verification_status}"
        )

        return Response(SellerSerializer(seller).data, status=status.HTTP_201_CREATED)


class SellerProfileView(APIView):
    permission_classes = [IsAuthenticated, IsSeller]

    def get(self, request, *args, **kwargs):
        return Response(SellerSerializer(request.user.get_seller_profile()).data)

    def put(self, request, *args, **kwargs):
        return self._update(request, partial=False)

    def patch(self, request, *args, **kwargs):
        return self._update(request, partial=True)

    def _update(self, request, partial):
        seller = request.user.get_seller_profile()
        serializer = SellerProfileUpdateSerializer(seller, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            seller = serializer.save()

        return Response(SellerSerializer(seller).data)


class SellerListView(ListAPIView):
    """
    Seller registry for admins and verifiers.

    GET /api/sellers/?status=pending
    """
    serializer_class = SellerSerializer
    permission_classes = [IsAuthenticated, IsAdminOrVerifier]

    def get_queryset(self):
        queryset = Seller.objects.select_related('user').prefetch_related('pickup_locations')

        verification_status = self.request.query_params.get('status')
        if verification_status:
            queryset = queryset.filter(verification_status=verification_status)

        return queryset


class SellerVerifyView(APIView):
    """
    Approve or reject a seller.

    PUT /api/sellers/<id>/verify/
    Request body: {"status": "approved", "notes": "GST checked"}

    Approving also marks the GST number as verified.
    """
    permission_classes = [IsAuthenticated, IsAdminOrVerifier]

    def put(self, request, pk, *args, **kwargs):
        serializer = SellerVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            seller = Seller.objects.select_for_update().filter(pk=pk).first()
            if seller is None:
                raise NotFound('Seller not found.')

            seller.record_verification(
                serializer.validated_data['status'],
                request.user,
                serializer.validated_data['notes']
            )

        logger.info(
            f"Seller verification updated. Seller: {seller.id}, Status: {seller.verification_status}, "
            f"Verifier: {request.user.id}, IP: {get_client_ip(request)}"
        )

        return Response(SellerSerializer(seller).data)


# ============================================================================
# Catalog
# ============================================================================

class ProductListView(ListAPIView):
    """
    Public catalog listing.

    GET /api/products/

    Query parameters:
    - category, subcategory, seller: exact filters
    - search: matches name, description and brand
    - min_price, max_price: selling price range
    - allow_bargaining: true/false
    - sort: created_at (default), selling_price, rating_average, sales, views, name
    - order: desc (default) or asc
    - page, limit: pagination
    """
    serializer_class = ProductListSerializer
    permission_classes = [AllowAny]

    SORT_FIELDS = ['created_at', 'selling_price', 'rating_average', 'sales', 'views', 'name']

    def get_queryset(self):
        params = self.request.query_params
        queryset = Product.objects.active().select_related('seller').prefetch_related('images')

        if params.get('category'):
            queryset = queryset.filter(category__iexact=params['category'])

        if params.get('subcategory'):
            queryset = queryset.filter(subcategory__iexact=params['subcategory'])

        if params.get('seller'):
            queryset = queryset.filter(seller_id=params['seller'])

        search = params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(description__icontains=search) | Q(brand__icontains=search)
            )

        try:
            if params.get('min_price'):
                queryset = queryset.filter(selling_price__gte=float(params['min_price']))
            if params.get('max_price'):
                queryset = queryset.filter(selling_price__lte=float(params['max_price']))
        except ValueError:
            raise ValidationError({'price': 'min_price and max_price must be numbers.'})

        allow_bargaining = params.get('allow_bargaining')
        if allow_bargaining is not None:
            queryset = queryset.filter(allow_bargaining=allow_bargaining.lower() in ('1', 'true', 'yes'))

        sort_field = params.get('sort', 'created_at')
        if sort_field not in self.SORT_FIELDS:
            sort_field = 'created_at'
        prefix = '' if params.get('order', 'desc').lower() == 'asc' else '-'

        return queryset.order_by(f'{prefix}{sort_field}', '-id')


class ProductCreateView(APIView):
    """
    List a new product.

    POST /api/products/create/
    Headers: Authorization: Bearer <access_token>
    Content-Type: multipart/form-data (with ``images``) or application/json

    Only approved sellers may list products.
    """
    permission_classes = [IsAuthenticated, IsApprovedSeller]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def post(self, request, *args, **kwargs):
        serializer = ProductWriteSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            product = serializer.save()

        logger.info(
            f"Product created. Product: {product.id}, Seller: {product.seller_id}, "
            f"Price: {product.selling_price}, Stock: {product.stock}"
        )

        return Response(
            ProductDetailSerializer(product, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )


class ProductDetailView(APIView):
    """
    Read, update or withdraw a product.

    GET    /api/products/<id>/   public, counts a view
    PUT    /api/products/<id>/   owning seller
    PATCH  /api/products/<id>/   owning seller
    DELETE /api/products/<id>/   owning seller, soft delete (``is_active = False``)
    """
    permission_classes = [IsProductOwner]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated(), IsProductOwner()]

    def get_object(self, pk):
        product = Product.objects.select_related('seller').prefetch_related('images').filter(pk=pk).first()
        if product is None:
            raise NotFound('Product not found.')
        self.check_object_permissions(self.request, product)
        return product

    def get(self, request, pk, *args, **kwargs):
        product = self.get_object(pk)

        is_owner = request.user.is_authenticated and product.seller.user_id == request.user.id
        if not product.is_active and not is_owner:
            raise NotFound('Product not found.')

        Product.objects.filter(pk=product.pk).update(views=F('views') + 1)
        product.refresh_from_db(fields=['views'])

        return Response(ProductDetailSerializer(product, context={'request': request}).data)

    def put(self, request, pk, *args, **kwargs):
        return self._update(request, pk, partial=False)

    def patch(self, request, pk, *args, **kwargs):
        return self._update(request, pk, partial=True)

    def _update(self, request, pk, partial):
        product = self.get_object(pk)
        serializer = ProductWriteSerializer(
            product, data=request.data, partial=partial, context={'request': request}
        )
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            product = serializer.save()

        logger.info(f"Product updated. Product: {product.id}, Seller: {product.seller_id}")
        return Response(ProductDetailSerializer(product, context={'request': request}).data)

    def delete(self, request, pk, *args, **kwargs):
        product = self.get_object(pk)
        Product.objects.filter(pk=product.pk).update(is_active=False, updated_at=timezone.now())

        logger.info(f"Product withdrawn. Product: {product.id}, Seller: {product.seller_id}")
        return Response({'detail': 'Product deleted successfully.'})


# ============================================================================
# Orders
# ============================================================================

class OrderCreateView(APIView):
    """
    API endpoint for checkout.

    POST /api/orders/
    Request body: {
        "items": [{"product": 12, "quantity": 2, "final_price": "900.00"}],
        "payment_method": "online",
        "delivery_option": "seller_pickup",
        "address": 3
    }

    The whole checkout runs in one transaction with the product rows locked,
    so a failed request leaves stock untouched and two buyers can not both
    take the last unit.

    Error responses:
    - 400: validation errors, insufficient stock, mixed sellers, bad final price
    - 404: unknown or withdrawn product
    """

    def post(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            order = serializer.save()

        logger.info(
            f"Order created. Order: {order.order_ref}, Buyer: {request.user.id}, "
            f"Seller: {order.seller_id}, Total: {order.total}, IP: {get_client_ip(request)}"
        )

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


def order_queryset():
    return Order.objects.select_related(
        'user', 'seller', 'address', 'pickup_location'
    ).prefetch_related('items', 'status_history')


class MyOrdersView(ListAPIView):
    """Orders placed by the current user. Optional ``?status=`` filter."""
    serializer_class = OrderSerializer

    def get_queryset(self):
        queryset = order_queryset().filter(user=self.request.user)
        if self.request.query_params.get('status'):
            queryset = queryset.filter(status=self.request.query_params['status'])
        return queryset


class SellerOrdersView(ListAPIView):
    """Orders to be fulfilled by the current user's seller profile."""
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated, IsSeller]

    def get_queryset(self):
        queryset = order_queryset().filter(seller__user=self.request.user)
        if self.request.query_params.get('status'):
            queryset = queryset.filter(status=self.request.query_params['status'])
        return queryset


class OrderDetailView(RetrieveAPIView):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated, CanViewOrder]

    def get_queryset(self):
        return order_queryset()


class OrderStatusUpdateView(APIView):
    """
    Move an order through its lifecycle.

    PUT /api/orders/<id>/status/
    Request body: {"status": "shipped", "notes": "Handed to courier"}

    Only the order's seller or an admin may do this. Invalid moves
    (backwards, out of a terminal state, to the same state) answer 400.
    Cancelling or returning puts the items back into stock.
    """
    permission_classes = [IsAuthenticated, CanUpdateOrderStatus]

    def put(self, request, pk, *args, **kwargs):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = get_object_or_404(Order.objects.select_related('seller'), pk=pk)
        self.check_object_permissions(request, order)

        new_status = serializer.validated_data['status']

        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order.pk)
            old_status = order.status
            order.transition_to(new_status, serializer.validated_data['notes'])

        logger.info(
            f"Order status changed. Order: {order.order_ref}, {old_status} -> {new_status}, "
            f"By: {request.user.id}, IP: {get_client_ip(request)}"
        )

        return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)


# ============================================================================
# Payments
# ============================================================================

def get_owned_order(request, order_id, view):
    order = Order.objects.filter(pk=order_id).first()
    if order is None:
        raise NotFound('Order not found.')

    permission = IsOrderBuyer()
    if not permission.has_object_permission(request, view, order):
        logger.warning(
            f"Payment attempted on another user's order. Order: {order.order_ref}, "
            f"User: {request.user.id}, IP: {get_client_ip(request)}"
        )
        raise PermissionDenied(permission.message)

    return order


class PaymentCreateOrderView(APIView):
    """
    Create a Razorpay order for an unpaid online order.

    POST /api/payments/create-order/
    Request body: {"order": 42, "amount": "1800.00"}

    Success response (200):
    {"order_id": "order_Nx...", "amount": 180000, "currency": "INR",
     "key_id": "rzp_test_...", "order_ref": "ORD..."}

    ``amount`` is optional and, when given, must equal the order total.
    Gateway failures answer 500 with code ``gateway_error``.

    The gateway is called outside the row lock; the order is re-checked
    under a fresh lock before the gateway order id is stored.
    """

    @staticmethod
    def check_payable(order, amount):
        if order.payment_method != 'online':
            raise Conflict('Only online orders can be paid through the payment gateway.')
        if order.payment_status == 'paid':
            raise Conflict('This order has already been paid.')
        if order.is_terminal:
            raise Conflict(f'Cannot pay for a {order.status} order.')
        if amount is not None and amount != order.total:
            raise Conflict('Payment amount does not match the order total.')

    def post(self, request, *args, **kwargs):
        serializer = PaymentOrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        amount = serializer.validated_data.get('amount')

        order = get_owned_order(request, serializer.validated_data['order'], self)
        gateway = get_gateway()

        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order.pk)
            self.check_payable(order, amount)

        gateway_order = gateway.create_order(order.total, order.order_ref)

        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order.pk)
            try:
                self.check_payable(order, amount)
            except Conflict:
                logger.warning(
                    f"Order changed during payment order creation. Order: {order.order_ref}, "
                    f"Gateway order: {gateway_order['id']}, User: {request.user.id}"
                )
                raise

            order.gateway_order_id = gateway_order['id']
            order.save(update_fields=['gateway_order_id', 'updated_at'])

        logger.info(
            f"Payment order created. Order: {order.order_ref}, Gateway order: {order.gateway_order_id}, "
            f"User: {request.user.id}"
        )

        return Response({
            'order_id': order.gateway_order_id,
            'amount': gateway_order.get('amount', to_paise(order.total)),
            'currency': gateway_order.get('currency', gateway.currency),
            'key_id': gateway.key_id,
            'order_ref': order.order_ref,
        })


class PaymentVerifyView(APIView):
    """
    Verify the checkout signature and mark the order as paid.

    POST /api/payments/verify/
    Request body: {"order": 42, "razorpay_order_id": "...", "razorpay_payment_id": "...",
                   "razorpay_signature": "..."}

    The signature is HMAC-SHA256 of ``order_id|payment_id`` keyed with the
    gateway secret. On a match the order becomes ``paid`` and a pending order
    moves to ``confirmed``. On a mismatch nothing changes and the response is
    400 with code ``payment_verification_failed``.
    """

    def post(self, request, *args, **kwargs):
        serializer = PaymentVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = get_owned_order(request, data['order'], self)
        gateway = get_gateway()
        client_ip = get_client_ip(request)

        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order.pk)

            if order.payment_status == 'paid':
                if order.gateway_payment_id == data['razorpay_payment_id']:
                    return Response({
                        'detail': 'Payment already verified.',
                        'order': OrderSerializer(order_queryset().get(pk=order.pk)).data,
                    })
                raise Conflict('This order has already been paid.')

            signature_ok = (
                bool(order.gateway_order_id)
                and order.gateway_order_id == data['razorpay_order_id']
                and gateway.verify_signature(
                    data['razorpay_order_id'], data['razorpay_payment_id'], data['razorpay_signature']
                )
            )

            if not signature_ok:
                logger.warning(
                    f"Payment verification failed. Order: {order.order_ref}, "
                    f"Gateway order: {data['razorpay_order_id']}, User: {request.user.id}, IP: {client_ip}"
                )
                raise PaymentVerificationFailed()

            order.payment_status = 'paid'
            order.gateway_payment_id = data['razorpay_payment_id']
            order.gateway_signature = data['razorpay_signature']
            order.save(update_fields=[
                'payment_status', 'gateway_payment_id', 'gateway_signature', 'updated_at'
            ])

            if order.status == 'pending':
                order.transition_to('confirmed', 'Payment received')

        logger.info(
            f"Payment verified. Order: {order.order_ref}, Payment: {order.gateway_payment_id}, "
            f"User: {request.user.id}, IP: {client_ip}"
        )

        return Response({
            'detail': 'Payment verified successfully.',
            'order': OrderSerializer(order_queryset().get(pk=order.pk)).data,
        })


# ============================================================================
# Bargains
# ============================================================================

def expire_overdue_bargains(queryset):
    return queryset.filter(
        status__in=Bargain.ACTIVE_STATUSES,
        expires_at__lte=timezone.now()
    ).update(status='expired', updated_at=timezone.now())


class BargainCreateView(APIView):
    """
    Open a bargain on a product.

    POST /api/bargains/
    Request body: {"product": 12, "buyer_offer": "800.00", "message": "Would you take 800?"}

    Rules (400 with code ``conflict`` or ``duplicate_bargain`` when broken):
    - the product allows bargaining and is not the buyer's own
    - the offer is below the selling price and not below ``min_bargain_price``
    - the buyer has no other open bargain on the product
    """

    def post(self, request, *args, **kwargs):
        serializer = BargainCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        offer = data['buyer_offer']

        with transaction.atomic():
            product = (
                Product.objects.select_for_update()
                .select_related('seller')
                .filter(pk=data['product'], is_active=True)
                .first()
            )
            if product is None:
                raise NotFound('Product not found.')

            if not product.allow_bargaining:
                raise Conflict('Bargaining is not allowed for this product.')

            if product.seller.user_id == request.user.id:
                raise Conflict('You cannot bargain on your own product.')

            if offer >= product.selling_price:
                raise Conflict('Your offer must be below the selling price.')

            if product.min_bargain_price is not None and offer < product.min_bargain_price:
                raise Conflict(f'Your offer cannot be below {product.min_bargain_price}.')

            existing = Bargain.objects.filter(product=product, user=request.user)
            expire_overdue_bargains(existing)
            if existing.filter(status__in=Bargain.ACTIVE_STATUSES).exists():
                raise DuplicateBargain()

            bargain = Bargain.objects.create(
                product=product,
                user=request.user,
                seller=product.seller,
                original_price=product.selling_price,
                buyer_offer=offer,
            )
            bargain.add_message('buyer', data['message'])

        logger.info(
            f"Bargain opened. Bargain: {bargain.id}, Product: {product.id}, "
            f"Buyer: {request.user.id}, Offer: {offer}"
        )

        return Response(BargainSerializer(bargain).data, status=status.HTTP_201_CREATED)


class MyBargainsView(ListAPIView):
    """
    Bargains the current user takes part in, as buyer or as seller.

    GET /api/bargains/mine/?role=buyer|seller&status=pending
    """
    serializer_class = BargainSerializer

    def get_queryset(self):
        user = self.request.user
        role = self.request.query_params.get('role')

        if role == 'buyer':
            participant = Q(user=user)
        elif role == 'seller':
            participant = Q(seller__user=user)
        else:
            participant = Q(user=user) | Q(seller__user=user)

        expire_overdue_bargains(Bargain.objects.filter(participant))

        queryset = (
            Bargain.objects.filter(participant)
            .select_related('product', 'user', 'seller')
            .prefetch_related('messages')
        )
        if self.request.query_params.get('status'):
            queryset = queryset.filter(status=self.request.query_params['status'])
        return queryset


class BargainDetailView(RetrieveAPIView):
    serializer_class = BargainSerializer
    permission_classes = [IsAuthenticated, IsBargainParticipant]

    def get_queryset(self):
        return Bargain.objects.select_related('product', 'user', 'seller').prefetch_related('messages')

    def get_object(self):
        bargain = super().get_object()
        bargain.expire_if_due()
        return bargain


class BargainRespondView(APIView):
    """
    Seller's answer to a bargain.

    POST /api/bargains/<id>/respond/
    Request body: {"action": "accept" | "reject" | "counter", "counter_offer": "850.00", "message": "..."}

    A counter offer may not be below the buyer's offer.
    """

    def post(self, request, pk, *args, **kwargs):
        serializer = BargainRespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        action = data['action']

        with transaction.atomic():
            bargain = Bargain.objects.select_for_update().select_related('seller').filter(pk=pk).first()
            if bargain is None:
                raise NotFound('Bargain not found.')

            if bargain.seller.user_id != request.user.id:
                logger.warning(
                    f"Unauthorized bargain response. Bargain: {bargain.id}, User: {request.user.id}, "
                    f"IP: {get_client_ip(request)}"
                )
                raise PermissionDenied('Only the seller can respond to this bargain.')

            expired = bargain.expire_if_due()

            if not expired:
                if not bargain.is_active:
                    raise Conflict('This bargain is no longer active.')

                if action == 'accept':
                    bargain.seller_accept()
                elif action == 'reject':
                    bargain.seller_reject()
                else:
                    if data['counter_offer'] < bargain.buyer_offer:
                        raise Conflict("Counter offer cannot be below the buyer's offer.")
                    bargain.seller_counter(data['counter_offer'])

                bargain.add_message('seller', data['message'])

        if expired:
            raise Conflict('This bargain has expired.')

        logger.info(
            f"Bargain responded. Bargain: {bargain.id}, Action: {action}, "
            f"Status: {bargain.status}, Seller: {request.user.id}"
        )

        return Response(BargainSerializer(bargain).data)


class BargainCounterResponseView(APIView):
    """
    Buyer's answer to a seller's counter offer.

    POST /api/bargains/<id>/counter-response/
    Request body: {"action": "accept" | "reject", "message": "..."}
    """

    def post(self, request, pk, *args, **kwargs):
        serializer = BargainCounterResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            bargain = Bargain.objects.select_for_update().filter(pk=pk).first()
            if bargain is None:
                raise NotFound('Bargain not found.')

            if bargain.user_id != request.user.id:
                raise PermissionDenied('Only the buyer can respond to a counter offer.')

            expired = bargain.expire_if_due()

            if not expired:
                if bargain.status != 'countered':
                    raise Conflict('There is no counter offer to respond to.')

                if data['action'] == 'accept':
                    bargain.buyer_accept()
                else:
                    bargain.buyer_reject()

                bargain.add_message('buyer', data['message'])

        if expired:
            raise Conflict('This bargain has expired.')

        logger.info(
            f"Counter offer answered. Bargain: {bargain.id}, Action: {data['action']}, Buyer: {request.user.id}"
        )

        return Response(BargainSerializer(bargain).data)


# ============================================================================
# Challenges
# ============================================================================

def challenge_queryset():
    return Challenge.objects.select_related('user', 'accepted_seller').prefetch_related('responses__seller')


class ChallengeListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/challenges/?status=active   public listing, active by default
    POST /api/challenges/                 post a challenge (authenticated)

    The challenge price must be at most 90% of the competitor's price.
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return ChallengeCreateSerializer
        return ChallengeSerializer

    def get_queryset(self):
        Challenge.objects.filter(status='active', expires_at__lte=timezone.now()).update(status='expired')

        challenge_status = self.request.query_params.get('status', 'active')
        return challenge_queryset().filter(status=challenge_status)

    def create(self, request, *args, **kwargs):
        serializer = ChallengeCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        challenge = serializer.save()

        logger.info(
            f"Challenge posted. Challenge: {challenge.id}, User: {request.user.id}, "
            f"Target price: {challenge.challenge_price}"
        )

        return Response(ChallengeSerializer(challenge).data, status=status.HTTP_201_CREATED)


class ChallengeDetailView(RetrieveAPIView):
    serializer_class = ChallengeSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        return challenge_queryset()

    def get_object(self):
        challenge = super().get_object()
        challenge.expire_if_due()
        return challenge


class ChallengeRespondView(APIView):
    """
    An approved seller's offer on a challenge.

    POST /api/challenges/<id>/respond/
    Request body: {"offered_price": "880.00", "delivery_time": "2 days", "message": "..."}

    One response per seller; sellers can not answer their own challenge.
    """
    permission_classes = [IsAuthenticated, IsApprovedSeller]

    def post(self, request, pk, *args, **kwargs):
        serializer = ChallengeResponseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        seller = request.user.get_seller_profile()

        with transaction.atomic():
            challenge = Challenge.objects.select_for_update().filter(pk=pk).first()
            if challenge is None:
                raise NotFound('Challenge not found.')

            expired = challenge.expire_if_due()

            if not expired:
                if challenge.status != 'active':
                    raise Conflict('This challenge is no longer accepting responses.')

                if challenge.user_id == request.user.id:
                    raise Conflict('You cannot respond to your own challenge.')

                if challenge.responses.filter(seller=seller).exists():
                    raise Conflict('You have already responded to this challenge.')

                response = ChallengeResponse.objects.create(
                    challenge=challenge,
                    seller=seller,
                    **serializer.validated_data
                )

        if expired:
            raise Conflict('This challenge has expired.')

        logger.info(
            f"Challenge response submitted. Challenge: {challenge.id}, Seller: {seller.id}, "
            f"Offer: {response.offered_price}"
        )

        return Response(
            ChallengeSerializer(challenge_queryset().get(pk=challenge.pk)).data,
            status=status.HTTP_201_CREATED
        )


class ChallengeAcceptView(APIView):
    """
    The challenge initiator picks a seller's offer.

    POST /api/challenges/<id>/accept/<response_id>/

    The chosen response is accepted and every other pending response is
    rejected. No order is placed; the buyer checks out separately.
    """

    def post(self, request, pk, response_id, *args, **kwargs):
        with transaction.atomic():
            challenge = Challenge.objects.select_for_update().filter(pk=pk).first()
            if challenge is None:
                raise NotFound('Challenge not found.')

            if challenge.user_id != request.user.id:
                raise PermissionDenied('Only the challenge creator can accept a response.')

            expired = challenge.expire_if_due()

            if not expired:
                if challenge.status != 'active':
                    raise Conflict('This challenge is no longer active.')

                response = challenge.responses.filter(pk=response_id).first()
                if response is None:
                    raise NotFound('Response not found.')

                if response.status != 'pending':
                    raise Conflict('This response can no longer be accepted.')

                challenge.accept_response(response)

        if expired:
            raise Conflict('This challenge has expired.')

        logger.info(
            f"Challenge accepted. Challenge: {challenge.id}, Response: {response.id}, "
            f"Seller: {response.seller_id}, User: {request.user.id}"
        )

        return Response(ChallengeSerializer(challenge_queryset().get(pk=challenge.pk)).data)


# ============================================================================
# Delivery
# ============================================================================

class DeliveryOptionsView(APIView):
    """
    GET /api/delivery/options/?city=Mumbai

    Lists every delivery option with its cost, ETA and availability for the
    given city.
    """
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        city = request.query_params.get('city')
        return Response({
            'options': {code: option.describe(city) for code, option in DELIVERY_OPTIONS.items()}
        })


class TrackingUpdateView(APIView):
    """
    Update delivery tracking for an order.

    PUT /api/delivery/<order_ref>/tracking/
    Request body: {"tracking_id": "TRK1", "delivery_partner": "Rapido",
                   "estimated_delivery": "2024-05-01T18:00:00+05:30", "status": "shipped"}
    """
    permission_classes = [IsAuthenticated, CanUpdateOrderStatus]

    TRACKING_FIELDS = ['tracking_id', 'delivery_partner', 'delivery_partner_ref', 'estimated_delivery']

    def put(self, request, order_ref, *args, **kwargs):
        serializer = TrackingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = get_object_or_404(Order.objects.select_related('seller'), order_ref=order_ref)
        self.check_object_permissions(request, order)

        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order.pk)

            changed = [field for field in self.TRACKING_FIELDS if field in data]
            for field in changed:
                setattr(order, field, data[field])
            if changed:
                order.save(update_fields=changed + ['updated_at'])

            if data.get('status'):
                order.transition_to(data['status'], data['notes'])

        logger.info(
            f"Tracking updated. Order: {order.order_ref}, Fields: {changed}, "
            f"Status: {order.status}, By: {request.user.id}"
        )

        return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)


# ============================================================================
# Administration
# ============================================================================

class AdminDashboardView(APIView):
    """Marketplace counters for admins and verifiers."""
    permission_classes = [IsAuthenticated, IsAdminOrVerifier]

    def get(self, request, *args, **kwargs):
        orders_by_status = {
            row['status']: row['count']
            for row in Order.objects.values('status').annotate(count=Count('id'))
        }
        revenue = Order.objects.filter(payment_status='paid').aggregate(total=Sum('total'))['total']

        return Response({
            'users': {
                'total': User.objects.count(),
                'sellers': User.objects.filter(is_seller=True).count(),
            },
            'sellers': {
                'total': Seller.objects.count(),
                'pending': Seller.objects.filter(verification_status='pending').count(),
                'approved': Seller.objects.filter(verification_status='approved').count(),
                'rejected': Seller.objects.filter(verification_status='rejected').count(),
            },
            'products': {
                'total': Product.objects.count(),
                'active': Product.objects.active().count(),
            },
            'orders': {
                'total': sum(orders_by_status.values()),
                'by_status': orders_by_status,
                'revenue': revenue or 0,
            },
            'bargains': {
                'active': Bargain.objects.filter(status__in=Bargain.ACTIVE_STATUSES).count(),
            },
            'challenges': {
                'active': Challenge.objects.filter(status='active').count(),
            },
        })


class AdminUserListView(ListAPIView):
    """
    GET /api/admin/users/?role=seller&search=asha
    """
    serializer_class = AdminUserSerializer
    permission_classes = [IsAuthenticated, IsAdminOrVerifier]

    def get_queryset(self):
        queryset = User.objects.all()
        params = self.request.query_params

        if params.get('role'):
            queryset = queryset.filter(role=params['role'])

        search = params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(email__icontains=search) | Q(mobile__icontains=search)
            )

        return queryset


class AdminUserRoleView(APIView):
    """
    PUT /api/admin/users/<id>/role/
    Request body: {"role": "verifier"}

    Admins can not change their own role.
    """
    permission_classes = [IsAuthenticated, IsAdminRole]

    def put(self, request, pk, *args, **kwargs):
        serializer = RoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = User.objects.filter(pk=pk).first()
        if user is None:
            raise NotFound('User not found.')

        if user.pk == request.user.pk:
            raise Conflict('You cannot change your own role.')

        old_role = user.role
        user.role = serializer.validated_data['role']
        user.save(update_fields=['role', 'updated_at'])

        logger.info(
            f"User role changed. User: {user.id}, {old_role} -> {user.role}, "
            f"By: {request.user.id}, IP: {get_client_ip(request)}"
        )

        return Response(AdminUserSerializer(user).data)


class HealthView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        try:
            with connection.cursor() as cursor:
                cursor.execute('SELECT 1')
        except DatabaseError as e:
            logger.error(f"Health check database failure: {e}")
            return Response(
                {'status': 'degraded', 'database': 'unavailable', 'timestamp': timezone.now()},
                status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        return Response({'status': 'ok', 'database': 'ok', 'timestamp': timezone.now()})
