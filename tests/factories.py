from uuid import uuid4

from taskboard.models.employee import Employee
from taskboard.models.organization import Organization
from taskboard.models.project import Project
from taskboard.models.task import Task, TaskAssignee, TaskType


def make_org(name="Acme"):
    return Organization(id=uuid4(), name=name)


def make_employee(org, first_name, last_name="Doe", *, is_archived=False):
    return Employee(
        id=uuid4(),
        organization_id=org.id,
        first_name=first_name,
        last_name=last_name,
        is_archived=is_archived,
    )


def make_project(org, name, *, is_archived=False):
    return Project(id=uuid4(), organization_id=org.id, name=name, is_archived=is_archived)


def make_task(
    project,
    points,
    *,
    type=TaskType.SINGLE,
    status="done",
    assigned_to=None,
    assigned_at=None,
    completed_at=None,
    updated_at=None,
):
    return Task(
        id=uuid4(),
        project_id=project.id,
        title=f"task worth {points}",
        status=status,
        points=points,
        type=type.value,
        assigned_to_id=assigned_to.id if assigned_to is not None else None,
        assigned_at=assigned_at,
        completed_at=completed_at,
        updated_at=updated_at if updated_at is not None else completed_at,
    )


def assign(task, *employees):
    return [TaskAssignee(task_id=task.id, employee_id=e.id) for e in employees]
