from django.urls import include, path

from .health import health_check

urlpatterns = [
    path("api/health/", health_check),
    path("api/v1/users/", include("apps.users.urls")),
    path("api/v1/activity-logs/", include("apps.audit.urls")),
    path("api/v1/roles/", include("apps.projects.role_urls")),
    path("api/v1/projects/", include("apps.projects.urls")),
]
