from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from . import views

urlpatterns = [
    # Authentication endpoints
    path('auth/register/', views.RegisterView.as_view(), name='user_register'),
    path('auth/login/', views.LoginView.as_view(), name='user_login'),
    path('auth/logout/', views.LogoutView.as_view(), name='user_logout'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', views.MeView.as_view(), name='user_me'),

    # User endpoints
    path('users/profile/', views.UserProfileView.as_view(), name='user_profile'),
    path('users/addresses/', views.AddressListCreateView.as_view(), name='user_addresses'),

    # Seller endpoints
    path('sellers/', views.SellerListView.as_view(), name='seller_list'),
    path('sellers/register/', views.SellerRegisterView.as_view(), name='seller_register'),
    path('sellers/profile/', views.SellerProfileView.as_view(), name='seller_profile'),
    path('sellers/<int:pk>/verify/', views.SellerVerifyView.as_view(), name='seller_verify'),

    # Catalog endpoints
    path('products/', views.ProductListView.as_view(), name='product_list'),
    path('products/create/', views.ProductCreateView.as_view(), name='product_create'),
    path('products/<int:pk>/', views.ProductDetailView.as_view(), name='product_detail'),

    # Order endpoints
    path('orders/', views.OrderCreateView.as_view(), name='order_create'),
    path('orders/mine/', views.MyOrdersView.as_view(), name='order_mine'),
    path('orders/seller/', views.SellerOrdersView.as_view(), name='order_seller'),
    path('orders/<int:pk>/', views.OrderDetailView.as_view(), name='order_detail'),
    path('orders/<int:pk>/status/', views.OrderStatusUpdateView.as_view(), name='order_status'),

    # Bargain endpoints
    path('bargains/', views.BargainCreateView.as_view(), name='bargain_create'),
    path('bargains/mine/', views.MyBargainsView.as_view(), name='bargain_mine'),
    path('bargains/<int:pk>/', views.BargainDetailView.as_view(), name='bargain_detail'),
    path('bargains/<int:pk>/respond/', views.BargainRespondView.as_view(), name='bargain_respond'),
    path(
        'bargains/<int:pk>/counter-response/',
        views.BargainCounterResponseView.as_view(),
        name='bargain_counter_response'
    ),

    # Challenge endpoints
    path('challenges/', views.ChallengeListCreateView.as_view(), name='challenge_list'),
    path('challenges/<int:pk>/', views.ChallengeDetailView.as_view(), name='challenge_detail'),
    path('challenges/<int:pk>/respond/', views.ChallengeRespondView.as_view(), name='challenge_respond'),
    path(
        'challenges/<int:pk>/accept/<int:response_id>/',
        views.ChallengeAcceptView.as_view(),
        name='challenge_accept'
    ),

    # Payment endpoints
    path('payments/create-order/', views.PaymentCreateOrderView.as_view(), name='payment_create_order'),
    path('payments/verify/', views.PaymentVerifyView.as_view(), name='payment_verify'),

    # Delivery endpoints
    path('delivery/options/', views.DeliveryOptionsView.as_view(), name='delivery_options'),
    path('delivery/<str:order_ref>/tracking/', views.TrackingUpdateView.as_view(), name='delivery_tracking'),

    # Administration endpoints
    path('admin/dashboard/', views.AdminDashboardView.as_view(), name='admin_dashboard'),
    path('admin/users/', views.AdminUserListView.as_view(), name='admin_users'),
    path('admin/users/<int:pk>/role/', views.AdminUserRoleView.as_view(), name='admin_user_role'),

    path('health/', views.HealthView.as_view(), name='health'),
]
