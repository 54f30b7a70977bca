"""
URL routing for activity log endpoints.
"""

from django.urls import path
from apps.audit import views

app_name = "audit"

urlpatterns = [
    path("", views.query_activity_log, name="query-activity-log"),
    path("actions", views.list_actions, name="list-actions"),
    path("entity-types", views.list_entity_types, name="list-entity-types"),
]
