# config/urls.py
from django.contrib import admin
from django.urls import include, path

from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from worklog_core.common.views import HealthView

urlpatterns = [
    path("admin/", admin.site.urls),

    # Liveness (public)
    path("health/", HealthView.as_view(), name="health"),

    # OpenAPI
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),

    path("api/v1/", include("worklog_core.api.urls")),
]
