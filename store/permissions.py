"""
Permission classes for the Bargain Bazaar API.
"""

from rest_framework import permissions


class IsAdminRole(permissions.BasePermission):
    """
    Allow only admins (``role == 'admin'`` or Django staff).

    Usage:
        class MyView(APIView):
            permission_classes = [IsAuthenticated, IsAdminRole]
    """

    message = 'You do not have permission to perform this action. Admin privileges required.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.is_admin()


class IsAdminOrVerifier(permissions.BasePermission):
    """
    Allow admins and seller verifiers.
    """

    message = 'You do not have permission to perform this action. Admin or verifier privileges required.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.is_verifier()


class IsApprovedSeller(permissions.BasePermission):
    """
    Allow users whose seller profile has been approved.

    Returns 403 Forbidden for:
    - Users without a seller profile
    - Sellers still pending verification or rejected
    """

    message = 'Only approved sellers can perform this action.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        seller = request.user.get_seller_profile()
        if seller is None:
            self.message = 'Seller profile not found.'
            return False

        return seller.is_approved


class IsSeller(permissions.BasePermission):
    message = 'Seller profile not found.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.get_seller_profile() is not None


class IsProductOwner(permissions.BasePermission):
    """
    Object-level permission: only the seller who listed a product may change it.
    Reads are open to everyone.
    """

    message = 'You can only modify your own products.'

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True

        if not request.user or not request.user.is_authenticated:
            return False

        return obj.seller.user_id == request.user.id


class CanViewOrder(permissions.BasePermission):
    """
    Object-level permission for reading an order.

    The buyer, the seller fulfilling it and admins may read it.
    """

    message = 'You do not have permission to view this order.'

    def has_object_permission(self, request, view, obj):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        if obj.user_id == user.id or user.is_admin():
            return True

        return obj.seller.user_id == user.id


class CanUpdateOrderStatus(permissions.BasePermission):
    """
    Object-level permission for status and tracking updates.

    Only the order's seller or an admin may move an order through its
    lifecycle. Whether the move itself is allowed is checked by the order's
    state machine, which answers 400 rather than 403.
    """

    message = 'Only the seller of this order or an admin can update it.'

    def has_object_permission(self, request, view, obj):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        if user.is_admin():
            return True

        return obj.seller.user_id == user.id


class IsOrderBuyer(permissions.BasePermission):
    message = 'You can only pay for your own orders.'

    def has_object_permission(self, request, view, obj):
        return bool(request.user and request.user.is_authenticated and obj.user_id == request.user.id)


class IsBargainParticipant(permissions.BasePermission):
    message = 'You do not have permission to view this bargain.'

    def has_object_permission(self, request, view, obj):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return obj.user_id == user.id or obj.seller.user_id == user.id
