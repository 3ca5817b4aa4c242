"""
URL configuration for the bargain_bazaar project.

Every API route lives under ``/api/`` and is defined in ``store.urls``.
Uploaded product images are served from ``/uploads/`` while SERVE_MEDIA is on.
"""
from django.conf import settings
from django.contrib import admin
from django.urls import include, path, re_path
from django.views.static import serve


def serve_upload(request, path):
    return serve(request, path, document_root=settings.MEDIA_ROOT)


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('store.urls')),
]

if settings.SERVE_MEDIA:
    urlpatterns += [
        re_path(r'^%s(?P<path>.*)$' % settings.MEDIA_URL.lstrip('/'), serve_upload, name='uploads'),
    ]
