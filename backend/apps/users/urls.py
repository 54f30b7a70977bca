"""
URL routing for user endpoints.
"""

from django.urls import path
from apps.users import views

app_name = "users"

urlpatterns = [
    path("me", views.get_current_user, name="current-user"),
    path("", views.list_users, name="list-users"),
    path("<int:userId>", views.update_user, name="update-user"),
    path("<int:userId>/role", views.change_user_role, name="change-user-role"),
]
