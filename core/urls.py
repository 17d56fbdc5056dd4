"""Root URL configuration: every API app is mounted under ``/api/``."""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("django-admin/", admin.site.urls),
    path("api/", include("common.api.urls")),
    path("api/auth/", include("user_auth_app.api.urls")),
    path("api/", include("profiles.api.urls")),
    path("api/", include("gigs.api.urls")),
    path("api/", include("orders.api.urls")),
    path("api/messages/", include("messaging.api.urls")),
    path("api/", include("reviews.api.urls")),
    path("api/admin/", include("admin_panel.api.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
