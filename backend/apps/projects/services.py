"""
Project services - all mutations flow through this layer.

Rules:
- All mutations wrapped in transaction.atomic
- Use select_for_update for row-level locking on updates
- Log one activity entry per mutation, after the transaction has exited
- No direct model.save() from views
"""

import logging
import re
from collections import defaultdict
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import (
    DuplicateProjectCodeError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from apps.audit.models import ActivityAction, EntityType
from apps.audit.services import field_changes, log_activity, to_json_value
from apps.projects.codes import next_project_code
from apps.projects.models import (
    Project,
    ProjectFinance,
    ProjectMember,
    ProjectStatus,
    ProjectTask,
    ProjectWorkHour,
    StaffRole,
    TaskStatus,
)

logger = logging.getLogger(__name__)

YEAR_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

PROJECT_FIELDS = (
    "name",
    "client_name",
    "project_type",
    "overview",
    "value_proposition",
    "problem_to_solve",
    "experience_provided",
    "planned_revenue",
    "planned_expense",
    "actual_revenue",
    "actual_expense",
    "planned_start_date",
    "planned_end_date",
    "planned_duration_months",
    "actual_start_date",
    "actual_end_date",
    "status",
    "progress",
    "notes",
)

TASK_FIELDS = (
    "task_name",
    "assignee",
    "start_date",
    "end_date",
    "duration_days",
    "estimated_hours",
    "progress",
    "status",
    "notes",
    "sort_order",
)

MEMBER_FIELDS = (
    "role",
    "member_name",
    "member_email",
    "member_class",
    "hourly_rate",
    "planned_hours",
    "sort_order",
)

FINANCE_FIELDS = (
    "planned_revenue",
    "actual_revenue",
    "planned_expense",
    "actual_expense",
    "notes",
)

PROJECT_ADMINS = ("admin",)
PROJECT_MANAGERS = ("admin", "manager")
PROJECT_EDITORS = ("admin", "manager", "member")


# -----------------------------
# Shared helpers
# -----------------------------


def _get_actor(actor_id, roles, action_label):
    from apps.users.models import User

    try:
        actor = User.objects.get(id=actor_id)
    except User.DoesNotExist:
        raise NotFoundError(f"User {actor_id} does not exist")

    if not actor.is_active or actor.role not in roles:
        raise PermissionDeniedError(f"Role {actor.role} cannot {action_label}")

    return actor


def get_project(project_id, for_update=False):
    queryset = Project.objects.select_for_update() if for_update else Project.objects
    try:
        return queryset.get(id=project_id)
    except Project.DoesNotExist:
        raise NotFoundError(f"Project {project_id} does not exist")


def _reject_unknown_fields(data, allowed):
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValidationError("Unknown or read-only fields", {"fields": unknown})


def _require_text(data, field, label):
    value = data.get(field)
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} must be non-empty")
    data[field] = str(value).strip()


def _validate_progress(data):
    if "progress" not in data:
        return
    progress = data["progress"]
    if not isinstance(progress, int) or isinstance(progress, bool):
        raise ValidationError("progress must be an integer")
    if progress < 0 or progress > 100:
        raise ValidationError("progress must be between 0 and 100")


def _validate_choice(data, field, choices):
    if field in data and data[field] not in choices.values:
        raise ValidationError(f"Invalid {field}", {"allowed": choices.values})


def _to_decimal(value, field):
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    return amount


def _validate_year_month(year_month):
    if not isinstance(year_month, str) or not YEAR_MONTH_RE.match(year_month):
        raise ValidationError("yearMonth must use the YYYY-MM format")


def _reject_duplicate_keys(keys, label):
    """A batch may name each row once; a repeated key would be double counted."""
    seen = set()
    for key in keys:
        if key in seen:
            raise ValidationError(
                f"Duplicate {label} entry in batch",
                {"key": [str(part) for part in key]},
            )
        seen.add(key)


def _project_ref(project):
    return {"projectId": project.id, "projectCode": project.code}


# -----------------------------
# Projects
# -----------------------------


def preview_next_code(project_type, today=None):
    """Code the next project of this type would receive. Read-only."""
    return next_project_code(project_type, today=today)


def _clean_project_data(data, creating):
    data = dict(data)
    _reject_unknown_fields(data, PROJECT_FIELDS)
    if creating or "name" in data:
        _require_text(data, "name", "Project name")
    _validate_choice(data, "status", ProjectStatus)
    _validate_progress(data)
    for field in ("planned_revenue", "planned_expense", "actual_revenue", "actual_expense"):
        if data.get(field) is not None:
            data[field] = _to_decimal(data[field], field)
    return data


def insert_project(actor, code, data):
    """
    Insert a project row with ``code``.

    Raises:
        DuplicateProjectCodeError: If another row already holds ``code``
        IntegrityError: For any other constraint violation
    """
    try:
        with transaction.atomic():
            return Project.all_objects.create(
                code=code, created_by=actor, updated_by=actor, **data
            )
    except IntegrityError:
        if Project.all_objects.filter(code=code).exists():
            raise DuplicateProjectCodeError(code)
        raise


def create_project(actor_id, data, request=None, today=None):
    """
    Create a project with a freshly generated code.

    A code lost to a concurrent creation is recomputed and the insert retried
    once; a second collision is raised to the caller.

    Args:
        actor_id: User identifier (admin or manager)
        data: Project fields (model field names)
        request: Source request, for the activity log
        today: Date the code is issued for (defaults to the local date)

    Returns:
        Project: Created project

    Raises:
        ValidationError: If the project data is invalid
        PermissionDeniedError: If the actor may not create projects
        DuplicateProjectCodeError: If the retry collided as well
    """
    actor = _get_actor(actor_id, PROJECT_MANAGERS, "create projects")
    data = _clean_project_data(data, creating=True)
    project_type = data.get("project_type")

    code = next_project_code(project_type, today=today)
    try:
        project = insert_project(actor, code, data)
    except DuplicateProjectCodeError:
        logger.warning(
            "project_code_conflict",
            extra={"operation": "CREATE_PROJECT", "project_code": code},
        )
        code = next_project_code(project_type, today=today)
        project = insert_project(actor, code, data)

    logger.info(
        "project_created",
        extra={
            "operation": "CREATE_PROJECT",
            "entity_id": str(project.id),
            "project_code": project.code,
        },
    )
    log_activity(
        actor_id=actor.id,
        action=ActivityAction.PROJECT_CREATE,
        entity_type=EntityType.PROJECT,
        entity_id=project.id,
        entity_name=project.name,
        details={
            "projectCode": project.code,
            "projectType": project.project_type,
            "status": project.status,
        },
        request=request,
    )
    return project


def update_project(actor_id, project_id, changes, request=None):
    """
    Update project fields. The project code can never change.

    Returns:
        Project: Updated project
    """
    actor = _get_actor(actor_id, PROJECT_MANAGERS, "update projects")

    changes = dict(changes)
    requested_code = changes.pop("code", None)
    changes = _clean_project_data(changes, creating=False)

    with transaction.atomic():
        project = get_project(project_id, for_update=True)

        if requested_code is not None and requested_code != project.code:
            raise ValidationError(
                "Project code is immutable", {"projectCode": project.code}
            )

        diff = field_changes(project, changes)
        if not diff:
            return project

        for field, value in changes.items():
            setattr(project, field, value)
        project.updated_by = actor
        project.save()

    logger.info(
        "project_updated",
        extra={
            "operation": "UPDATE_PROJECT",
            "entity_id": str(project.id),
            "fields": sorted(diff),
        },
    )
    log_activity(
        actor_id=actor.id,
        action=ActivityAction.PROJECT_UPDATE,
        entity_type=EntityType.PROJECT,
        entity_id=project.id,
        entity_name=project.name,
        details={"projectCode": project.code, "changes": diff},
        request=request,
    )
    return project


def delete_project(actor_id, project_id, request=None):
    """Soft-delete a project. Its code stays reserved."""
    actor = _get_actor(actor_id, PROJECT_ADMINS, "delete projects")

    with transaction.atomic():
        project = get_project(project_id, for_update=True)
        project.deleted_at = timezone.now()
        project.updated_by = actor
        project.save(update_fields=["deleted_at", "updated_by", "updated_at"])

    logger.info(
        "project_deleted",
        extra={"operation": "DELETE_PROJECT", "entity_id": str(project.id)},
    )
    log_activity(
        actor_id=actor.id,
        action=ActivityAction.PROJECT_DELETE,
        entity_type=EntityType.PROJECT,
        entity_id=project.id,
        entity_name=project.name,
        details={"projectCode": project.code},
        request=request,
    )
    return project


# -----------------------------
# Tasks and members
# -----------------------------


def _clean_task_data(data, creating):
    data = dict(data)
    _reject_unknown_fields(data, TASK_FIELDS)
    if creating or "task_name" in data:
        _require_text(data, "task_name", "Task name")
    _validate_choice(data, "status", TaskStatus)
    _validate_progress(data)
    if data.get("estimated_hours") is not None:
        data["estimated_hours"] = _to_decimal(data["estimated_hours"], "estimated_hours")
        if data["estimated_hours"] < 0:
            raise ValidationError("estimated_hours must be non-negative")
    return data


def _clean_member_data(data, creating):
    data = dict(data)
    _reject_unknown_fields(data, MEMBER_FIELDS)
    if creating or "member_name" in data:
        _require_text(data, "member_name", "Member name")
    if creating or "role" in data:
        _require_text(data, "role", "Member role")
    for field in ("hourly_rate", "planned_hours"):
        if data.get(field) is not None:
            data[field] = _to_decimal(data[field], field)
            if data[field] < 0:
                raise ValidationError(f"{field} must be non-negative")
    return data


def create_task(actor_id, project_id, data, request=None):
    actor = _get_actor(actor_id, PROJECT_EDITORS, "edit tasks")
    data = _clean_task_data(data, creating=True)

    with transaction.atomic():
        project = get_project(project_id)
        task = ProjectTask.objects.create(project=project, **data)

    log_activity(
        actor_id=actor.id,
        action=ActivityAction.TASK_CREATE,
        entity_type=EntityType.TASK,
        entity_id=task.id,
        entity_name=task.task_name,
        details={**_project_ref(project), "status": task.status},
        request=request,
    )
    return task


def update_task(actor_id, task_id, changes, request=None):
    actor = _get_actor(actor_id, PROJECT_EDITORS, "edit tasks")
    changes = _clean_task_data(changes, creating=False)

    with transaction.atomic():
        try:
            task = (
                ProjectTask.objects.select_for_update()
                .select_related("project")
                .get(id=task_id, project__deleted_at__isnull=True)
            )
        except ProjectTask.DoesNotExist:
            raise NotFoundError(f"Task {task_id} does not exist")

        diff = field_changes(task, changes)
        if not diff:
            return task

        for field, value in changes.items():
            setattr(task, field, value)
        task.save()

    log_activity(
        actor_id=actor.id,
        action=ActivityAction.TASK_UPDATE,
        entity_type=EntityType.TASK,
        entity_id=task.id,
        entity_name=task.task_name,
        details={**_project_ref(task.project), "changes": diff},
        request=request,
    )
    return task


def delete_task(actor_id, task_id, request=None):
    actor = _get_actor(actor_id, PROJECT_EDITORS, "edit tasks")

    with transaction.atomic():
        try:
            task = ProjectTask.objects.select_related("project").get(
                id=task_id, project__deleted_at__isnull=True
            )
        except ProjectTask.DoesNotExist:
            raise NotFoundError(f"Task {task_id} does not exist")
        deleted_id = task.id
        task.delete()

    log_activity(
        actor_id=actor.id,
        action=ActivityAction.TASK_DELETE,
        entity_type=EntityType.TASK,
        entity_id=deleted_id,
        entity_name=task.task_name,
        details=_project_ref(task.project),
        request=request,
    )


def create_member(actor_id, project_id, data, request=None):
    actor = _get_actor(actor_id, PROJECT_EDITORS, "edit members")
    data = _clean_member_data(data, creating=True)

    with transaction.atomic():
        project = get_project(project_id)
        member = ProjectMember.objects.create(project=project, **data)

    log_activity(
        actor_id=actor.id,
        action=ActivityAction.MEMBER_CREATE,
        entity_type=EntityType.MEMBER,
        entity_id=member.id,
        entity_name=member.member_name,
        details={**_project_ref(project), "role": member.role},
        request=request,
    )
    return member


def update_member(actor_id, member_id, changes, request=None):
    actor = _get_actor(actor_id, PROJECT_EDITORS, "edit members")
    changes = _clean_member_data(changes, creating=False)

    with transaction.atomic():
        try:
            member = (
                ProjectMember.objects.select_for_update()
                .select_related("project")
                .get(id=member_id, project__deleted_at__isnull=True)
            )
        except ProjectMember.DoesNotExist:
            raise NotFoundError(f"Member {member_id} does not exist")

        diff = field_changes(member, changes)
        if not diff:
            return member

        for field, value in changes.items():
            setattr(member, field, value)
        member.save()

    log_activity(
        actor_id=actor.id,
        action=ActivityAction.MEMBER_UPDATE,
        entity_type=EntityType.MEMBER,
        entity_id=member.id,
        entity_name=member.member_name,
        details={**_project_ref(member.project), "changes": diff},
        request=request,
    )
    return member


def delete_member(actor_id, member_id, request=None):
    """Remove a member; their work-hour rows go with them."""
    actor = _get_actor(actor_id, PROJECT_EDITORS, "edit members")

    with transaction.atomic():
        try:
            member = ProjectMember.objects.select_related("project").get(
                id=member_id, project__deleted_at__isnull=True
            )
        except ProjectMember.DoesNotExist:
            raise NotFoundError(f"Member {member_id} does not exist")
        deleted_id = member.id
        member.delete()

    log_activity(
        actor_id=actor.id,
        action=ActivityAction.MEMBER_DELETE,
        entity_type=EntityType.MEMBER,
        entity_id=deleted_id,
        entity_name=member.member_name,
        details={**_project_ref(member.project), "role": member.role},
        request=request,
    )


# -----------------------------
# Finances
# -----------------------------


def _clean_finance_values(values):
    values = dict(values)
    _reject_unknown_fields(values, FINANCE_FIELDS)
    for field in FINANCE_FIELDS:
        if field != "notes" and values.get(field) is not None:
            values[field] = _to_decimal(values[field], field)
    return values


def _upsert_finance_row(project, year_month, values):
    finance = (
        ProjectFinance.objects.select_for_update()
        .filter(project=project, year_month=year_month)
        .first()
    )
    if finance is None:
        finance = ProjectFinance.objects.create(
            project=project, year_month=year_month, **values
        )
        return finance, {
            field: {"old": None, "new": to_json_value(getattr(finance, field))}
            for field in values
        }

    diff = field_changes(finance, values)
    if diff:
        for field, value in values.items():
            setattr(finance, field, value)
        finance.save()
    return finance, diff


def upsert_finance(actor_id, project_id, year_month, values, request=None):
    """Create or update the finance row of one project month."""
    actor = _get_actor(actor_id, PROJECT_EDITORS, "edit finances")
    _validate_year_month(year_month)
    values = _clean_finance_values(values)

    with transaction.atomic():
        project = get_project(project_id)
        finance, diff = _upsert_finance_row(project, year_month, values)

    if diff:
        log_activity(
            actor_id=actor.id,
            action=ActivityAction.FINANCE_UPDATE,
            entity_type=EntityType.FINANCE,
            entity_id=finance.id,
            entity_name=f"{project.name} {year_month}",
            details={**_project_ref(project), "yearMonth": year_month, "changes": diff},
            request=request,
        )
    return finance


def bulk_update_finances(actor_id, entries, request=None):
    """
    Upsert many finance rows in one transaction.

    One finance_update entry is logged per affected project, carrying the
    months touched and the summed submitted amounts.
    """
    actor = _get_actor(actor_id, PROJECT_EDITORS, "edit finances")
    cleaned = []
    for entry in entries:
        entry = dict(entry)
        project_id = entry.pop("project_id", None)
        year_month = entry.pop("year_month", None)
        _validate_year_month(year_month)
        cleaned.append((project_id, year_month, _clean_finance_values(entry)))
    _reject_duplicate_keys(
        ((project_id, year_month) for project_id, year_month, _ in cleaned), "finance"
    )

    saved = []
    touched = defaultdict(list)
    with transaction.atomic():
        projects = {}
        for project_id, year_month, values in cleaned:
            if project_id not in projects:
                projects[project_id] = get_project(project_id)
            finance, _ = _upsert_finance_row(projects[project_id], year_month, values)
            saved.append(finance)
            touched[project_id].append(finance)

    for project_id in sorted(touched):
        project = projects[project_id]
        rows = touched[project_id]
        log_activity(
            actor_id=actor.id,
            action=ActivityAction.FINANCE_UPDATE,
            entity_type=EntityType.PROJECT,
            entity_id=project.id,
            entity_name=project.name,
            details={
                **_project_ref(project),
                "yearMonths": sorted({row.year_month for row in rows}),
                "recordCount": len(rows),
                "totalPlannedRevenue": str(sum((r.planned_revenue for r in rows), Decimal(0))),
                "totalActualRevenue": str(sum((r.actual_revenue for r in rows), Decimal(0))),
                "totalPlannedExpense": str(sum((r.planned_expense for r in rows), Decimal(0))),
                "totalActualExpense": str(sum((r.actual_expense for r in rows), Decimal(0))),
            },
            request=request,
        )
    return saved


# -----------------------------
# Work hours
# -----------------------------


def _clean_work_hour_entry(entry):
    entry = dict(entry)
    _reject_unknown_fields(
        entry,
        ("project_id", "member_id", "year_month", "planned_hours", "actual_hours", "notes"),
    )
    for field in ("project_id", "member_id"):
        if entry.get(field) is None:
            raise ValidationError(f"{field} is required")
    _validate_year_month(entry.get("year_month"))
    for field in ("planned_hours", "actual_hours"):
        value = _to_decimal(entry.get(field) or 0, field)
        if value < 0:
            raise ValidationError(f"{field} must be non-negative")
        entry[field] = value
    return entry


def bulk_update_work_hours(actor_id, entries, request=None):
    """
    Upsert planned/actual hours for many (project, member, month) rows.

    All rows are written in one transaction. Afterwards one workhour_update
    entry is logged per affected project with the member ids, months and
    summed hours of the rows submitted for it.

    Returns:
        list[ProjectWorkHour]: Saved rows, in submission order
    """
    actor = _get_actor(actor_id, PROJECT_EDITORS, "edit work hours")
    if not entries:
        raise ValidationError("workHours must contain at least one entry")
    cleaned = [_clean_work_hour_entry(entry) for entry in entries]
    _reject_duplicate_keys(
        (
            (entry["project_id"], entry["member_id"], entry["year_month"])
            for entry in cleaned
        ),
        "work hour",
    )

    saved = []
    touched = defaultdict(list)
    with transaction.atomic():
        projects = {}
        for entry in cleaned:
            project_id = entry["project_id"]
            if project_id not in projects:
                projects[project_id] = get_project(project_id)
            project = projects[project_id]

            try:
                member = ProjectMember.objects.get(id=entry["member_id"], project=project)
            except ProjectMember.DoesNotExist:
                raise ValidationError(
                    f"Member {entry['member_id']} is not staffed on project {project_id}"
                )

            work_hour, _ = ProjectWorkHour.objects.update_or_create(
                project=project,
                member=member,
                year_month=entry["year_month"],
                defaults={
                    "planned_hours": entry["planned_hours"],
                    "actual_hours": entry["actual_hours"],
                    "notes": entry.get("notes") or "",
                },
            )
            saved.append(work_hour)
            touched[project_id].append(work_hour)

    for project_id in sorted(touched):
        project = projects[project_id]
        rows = touched[project_id]
        details = {
            **_project_ref(project),
            "memberIds": sorted({row.member_id for row in rows}),
            "yearMonths": sorted({row.year_month for row in rows}),
            "recordCount": len(rows),
            "totalPlannedHours": str(sum((r.planned_hours for r in rows), Decimal(0))),
            "totalActualHours": str(sum((r.actual_hours for r in rows), Decimal(0))),
        }
        log_activity(
            actor_id=actor.id,
            action=ActivityAction.WORKHOUR_UPDATE,
            entity_type=EntityType.PROJECT,
            entity_id=project.id,
            entity_name=project.name,
            details=details,
            request=request,
        )

    logger.info(
        "work_hours_updated",
        extra={
            "operation": "BULK_UPDATE_WORK_HOURS",
            "record_count": len(saved),
            "project_ids": sorted(touched),
        },
    )
    return saved


# -----------------------------
# Staff role catalog
# -----------------------------


def _set_role_active(role, is_active):
    if role.is_active == is_active:
        return None
    old_value = role.is_active
    role.is_active = is_active
    role.save(update_fields=["is_active", "updated_at"])
    return {
        "action": "啟用" if is_active else "停用",
        "oldValue": {"isActive": old_value},
        "newValue": {"isActive": is_active},
    }


def _log_role_update(actor, role, details, request):
    log_activity(
        actor_id=actor.id,
        action=ActivityAction.ROLE_UPDATE,
        entity_type=EntityType.ROLE,
        entity_id=role.id,
        entity_name=role.name,
        details=details,
        request=request,
    )


def update_staff_role(actor_id, role_id, is_active, request=None):
    """Enable or disable a staff role (admin only)."""
    actor = _get_actor(actor_id, ("admin",), "manage roles")
    if not isinstance(is_active, bool):
        raise ValidationError("isActive must be a boolean")

    with transaction.atomic():
        try:
            role = StaffRole.objects.select_for_update().get(id=role_id)
        except StaffRole.DoesNotExist:
            raise NotFoundError(f"Role {role_id} does not exist")
        details = _set_role_active(role, is_active)

    if details:
        _log_role_update(actor, role, details, request)
    return role


def batch_update_staff_roles(actor_id, items, request=None):
    """
    Apply many isActive toggles. Unknown ids are skipped.

    Returns:
        list[StaffRole]: Roles whose state actually changed
    """
    actor = _get_actor(actor_id, ("admin",), "manage roles")
    for item in items:
        if not isinstance(item.get("is_active"), bool):
            raise ValidationError("isActive must be a boolean")

    changed = []
    with transaction.atomic():
        for item in items:
            role = StaffRole.objects.select_for_update().filter(id=item.get("id")).first()
            if role is None:
                continue
            details = _set_role_active(role, item["is_active"])
            if details:
                changed.append((role, details))

    for role, details in changed:
        _log_role_update(actor, role, details, request)
    return [role for role, _ in changed]
