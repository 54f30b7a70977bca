"""
URL routing for the staff role catalog.
"""

from django.urls import path
from apps.projects import views

app_name = "roles"

urlpatterns = [
    path("", views.list_staff_roles, name="list-roles"),
    path("batch", views.batch_update_staff_roles, name="batch-update-roles"),
    path("<int:roleId>", views.update_staff_role, name="update-role"),
]
