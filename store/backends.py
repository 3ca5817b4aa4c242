"""
Authentication backend for email or mobile number login.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

from .validators import MOBILE_PATTERN

User = get_user_model()


class EmailOrMobileBackend(ModelBackend):
    """
    Let users log in with their email address or their mobile number.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        """
        Authenticate with an email address or a 10-digit mobile number.

        Args:
            request: HTTP request object
            username: Email or mobile (named username for compatibility)
            password: User password
            **kwargs: May carry ``email`` or ``identifier``

        Returns:
            User object if authentication successful, None otherwise
        """
        identifier = kwargs.get('identifier') or kwargs.get('email') or username

        if identifier is None or password is None:
            return None

        identifier = identifier.strip()

        try:
            if MOBILE_PATTERN.match(identifier):
                user = User.objects.get(mobile=identifier)
            else:
                user = User.objects.get(email__iexact=identifier)
        except User.DoesNotExist:
            # Run the default password hasher once to reduce the timing
            # difference between an existing and a nonexistent user
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        return None
