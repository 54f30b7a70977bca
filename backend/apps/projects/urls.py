"""
URL routing for project endpoints.
"""

from django.urls import path
from apps.projects import views

app_name = "projects"

urlpatterns = [
    path("", views.list_or_create_projects, name="list-or-create-projects"),
    path("next-code", views.preview_next_code, name="preview-next-code"),
    path("<int:projectId>", views.project_detail, name="project-detail"),
    path("<int:projectId>/tasks", views.list_or_create_tasks, name="list-or-create-tasks"),
    path("tasks/<int:taskId>", views.task_detail, name="task-detail"),
    path(
        "<int:projectId>/members",
        views.list_or_create_members,
        name="list-or-create-members",
    ),
    path("members/<int:memberId>", views.member_detail, name="member-detail"),
    path(
        "<int:projectId>/finances",
        views.list_or_upsert_finances,
        name="list-or-upsert-finances",
    ),
    path("finances/bulk", views.bulk_update_finances, name="bulk-update-finances"),
    path("<int:projectId>/work-hours", views.list_work_hours, name="list-work-hours"),
    path("work-hours/bulk", views.bulk_update_work_hours, name="bulk-update-work-hours"),
]
