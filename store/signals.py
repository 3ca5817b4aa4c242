"""
Signal receivers keeping denormalised flags and counters in sync.
"""

import logging

from django.db.models import F
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import OrderStatusHistory, Seller, User

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Seller)
def grant_seller_capability(sender, instance, created, **kwargs):
    """
    Mark the owning user as a seller when a Seller profile is created.

    ``role`` switches to ``seller`` unless the user already holds a verifier
    or admin role, which outrank it.
    """
    if not created:
        return

    user = instance.user
    update = {'is_seller': True}
    if user.role not in ('verifier', 'admin'):
        update['role'] = 'seller'

    User.objects.filter(pk=user.pk).update(**update)
    for field, value in update.items():
        setattr(user, field, value)

    logger.info(f"User {user.id} granted seller capability via seller {instance.id}")


@receiver(post_save, sender=OrderStatusHistory)
def count_delivered_order(sender, instance, created, **kwargs):
    """Increment the seller's ``total_sales`` when an order is delivered."""
    if not created or instance.status != 'delivered':
        return

    Seller.objects.filter(pk=instance.order.seller_id).update(total_sales=F('total_sales') + 1)
