"""
Field validators shared by the marketplace models and serializers.
"""

import re

from django.core.exceptions import ValidationError

MOBILE_PATTERN = re.compile(r'^[6-9]\d{9}$')
GST_PATTERN = re.compile(r'^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$')
PINCODE_PATTERN = re.compile(r'^\d{6}$')

MAX_PRODUCT_IMAGE_SIZE = 50 * 1024 * 1024
PRODUCT_IMAGE_EXTENSIONS = ['jpg', 'jpeg', 'png', 'webp', 'gif']


def validate_mobile_number(value):
    """
    Validate an Indian mobile number.

    Accepts exactly 10 digits starting with 6-9, e.g. ``9876543210``.
    Surrounding whitespace is tolerated; anything else is rejected.

    Raises:
        ValidationError: If the number does not match
    """
    if not value:
        return

    if not MOBILE_PATTERN.match(value.strip()):
        raise ValidationError(
            'Mobile number must be a valid 10-digit number starting with 6-9.',
            code='invalid_mobile'
        )


def validate_gst_number(value):
    """
    Validate a GSTIN, e.g. ``22AAAAA0000A1Z5``.

    Empty values are allowed: close-knit sellers do not carry one.
    """
    if not value:
        return

    if not GST_PATTERN.match(value):
        raise ValidationError(
            'Enter a valid 15-character GST number.',
            code='invalid_gst'
        )


def validate_pincode(value):
    if value and not PINCODE_PATTERN.match(value):
        raise ValidationError(
            'Pincode must be exactly 6 digits.',
            code='invalid_pincode'
        )


def validate_product_image(image):
    """
    Validate an uploaded product image.

    Checks:
    - File size (max 50MB)
    - File extension (jpg, jpeg, png, webp, gif)
    - MIME type, when the upload carries one

    Raises:
        ValidationError: If image is invalid
    """
    if not image:
        return

    if image.size > MAX_PRODUCT_IMAGE_SIZE:
        raise ValidationError(
            f'Image file size cannot exceed 50MB. Current size: {image.size / (1024 * 1024):.2f}MB',
            code='image_too_large'
        )

    file_name = image.name.lower()
    if not any(file_name.endswith(f'.{ext}') for ext in PRODUCT_IMAGE_EXTENSIONS):
        raise ValidationError(
            f'Invalid image format. Allowed formats: {", ".join(PRODUCT_IMAGE_EXTENSIONS)}',
            code='invalid_image_format'
        )

    content_type = getattr(image, 'content_type', None)
    if content_type and not content_type.startswith('image/'):
        raise ValidationError(
            f'Invalid image content type: {content_type}',
            code='invalid_content_type'
        )
