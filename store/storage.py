"""
File storage for product images.
"""

import os
import re
import time

from django.core.files.storage import FileSystemStorage
from django.utils.deconstruct import deconstructible


@deconstructible
class OriginalNameStorage(FileSystemStorage):
    """
    Keep uploads under their original file name.

    When the name is already taken the stem is reduced to
    ``[A-Za-z0-9_-]`` and a millisecond timestamp is appended, e.g.
    ``images/red shoe.png`` becomes ``images/red_shoe_1712345678901.png``.
    """

    def get_available_name(self, name, max_length=None):
        if not self.exists(name):
            return name

        dir_name, file_name = os.path.split(name)
        stem, ext = os.path.splitext(file_name)
        sanitized = re.sub(r'[^a-zA-Z0-9_-]', '_', stem)

        candidate = os.path.join(dir_name, f'{sanitized}_{int(time.time() * 1000)}{ext}')
        while self.exists(candidate):
            time.sleep(0.001)
            candidate = os.path.join(dir_name, f'{sanitized}_{int(time.time() * 1000)}{ext}')

        return super().get_available_name(candidate, max_length=max_length)


def product_image_upload_path(instance, filename):
    """
    Upload path for product images: ``images/{filename}``.

    Served at ``/uploads/images/{filename}``.
    """
    return f'images/{os.path.basename(filename)}'


product_image_storage = OriginalNameStorage()
