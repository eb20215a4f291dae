"""
Reusable CTE builders for the performance dashboards.

Each builder returns a SQLAlchemy ``CTE`` that callers compose into larger
statements. ``organization_id`` is either a plain value (UUID or its string
form) or a bind parameter from :func:`organization_param`, so several CTEs in
one statement can share a single ``:organization_id`` placeholder. Time
windows are bound values computed from the caller's clock (UTC by default).
"""
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from sqlalchemy import Date, Float, Uuid, and_, bindparam, case, cast, func, or_, select
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import CTE, BindParameter, FunctionElement
from taskboard.models.employee import Employee
from taskboard.models.project import Project
from taskboard.models.task import DONE_STATUSES, SPLIT_TYPES, Task, TaskAssignee, TaskType

WEEKLY_WINDOW = timedelta(days=7)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_organization_id(organization_id):
    """UUID for concrete ids; bind parameters pass through."""
    if isinstance(organization_id, (BindParameter, uuid.UUID)):
        return organization_id
    return uuid.UUID(str(organization_id))


def organization_param(organization_id):
    return bindparam("organization_id", value=as_organization_id(organization_id), type_=Uuid)


class utc_date(FunctionElement):
    """Calendar date of a timestamp, read in UTC whatever the session time zone."""
    type = Date()
    name = "utc_date"
    inherit_cache = True


@compiles(utc_date)
def _utc_date_default(element, compiler, **kw):
    return "date(%s)" % compiler.process(element.clauses, **kw)


@compiles(utc_date, "postgresql")
def _utc_date_postgresql(element, compiler, **kw):
    return "date(timezone('UTC', %s))" % compiler.process(element.clauses, **kw)


def is_done():
    return func.lower(Task.status).in_(DONE_STATUSES)


def assignee_count():
    """Number of task_assignees rows for the enclosing task."""
    return (
        select(func.count())
        .select_from(TaskAssignee)
        .where(TaskAssignee.task_id == Task.id)
        .correlate(Task)
        .scalar_subquery()
    )


def split_points():
    """
    Points one linked employee earns from a task: the full value for SINGLE,
    an even share for SHARED/SEQUENTIAL. A task with no assignee rows is
    divided by 1.
    """
    divisor = func.coalesce(func.nullif(assignee_count(), 0), 1)
    return case(
        (Task.type.in_(SPLIT_TYPES), cast(Task.points, Float) / divisor),
        else_=cast(Task.points, Float),
    )


def employee_task_link():
    """Join condition tying an employee to the tasks they are credited for."""
    is_co_assignee = (
        select(TaskAssignee.task_id)
        .where(TaskAssignee.task_id == Task.id)
        .where(TaskAssignee.employee_id == Employee.id)
        .correlate(Task, Employee)
        .exists()
    )
    return or_(
        and_(Task.type == TaskType.SINGLE.value, Task.assigned_to_id == Employee.id),
        and_(Task.type.in_(SPLIT_TYPES), is_co_assignee),
    )


def yesterday_bounds(today: date) -> Tuple[datetime, datetime]:
    """[yesterday 00:00, today 00:00) in UTC."""
    start = datetime.combine(today - timedelta(days=1), time.min, tzinfo=timezone.utc)
    end = datetime.combine(today, time.min, tzinfo=timezone.utc)
    return start, end


def weekly_stats_cte(organization_id, *, now: Optional[datetime] = None) -> CTE:
    """weekly_stats(employee_id, weekly_points): completed in the last 7 days, rolling."""
    since = (now or utcnow()) - WEEKLY_WINDOW
    return (
        select(
            Employee.id.label("employee_id"),
            func.coalesce(func.sum(split_points()), 0).label("weekly_points"),
        )
        .select_from(Employee)
        .outerjoin(
            Task,
            and_(employee_task_link(), is_done(), Task.completed_at >= since),
        )
        .where(Employee.organization_id == as_organization_id(organization_id))
        .group_by(Employee.id)
        .cte("weekly_stats")
    )


def yesterday_stats_cte(organization_id, *, today: Optional[date] = None) -> CTE:
    """
    yesterday_stats(employee_id, yesterday_points, yesterday_task_count):
    tasks whose completed_at falls on the previous calendar day.
    """
    start, end = yesterday_bounds(today or utcnow().date())
    return (
        select(
            Employee.id.label("employee_id"),
            func.coalesce(func.sum(split_points()), 0).label("yesterday_points"),
            func.count(Task.id).label("yesterday_task_count"),
        )
        .select_from(Employee)
        .outerjoin(
            Task,
            and_(
                employee_task_link(),
                is_done(),
                Task.completed_at >= start,
                Task.completed_at < end,
            ),
        )
        .where(Employee.organization_id == as_organization_id(organization_id))
        .group_by(Employee.id)
        .cte("yesterday_stats")
    )


def project_stats_cte(organization_id, *, today: Optional[date] = None) -> CTE:
    """
    project_stats(project_id, total_points, yesterday_points) for the
    organization's non-archived projects.

    yesterday_points keys off the date of updated_at, not completed_at, and
    compares whole dates rather than a timestamp range.
    """
    yesterday = (today or utcnow().date()) - timedelta(days=1)
    touched_yesterday = utc_date(Task.updated_at) == yesterday
    return (
        select(
            Project.id.label("project_id"),
            func.coalesce(func.sum(Task.points), 0).label("total_points"),
            func.coalesce(
                func.sum(case((and_(is_done(), touched_yesterday), Task.points), else_=0)),
                0,
            ).label("yesterday_points"),
        )
        .select_from(Project)
        .outerjoin(Task, Task.project_id == Project.id)
        .where(Project.organization_id == as_organization_id(organization_id))
        .where(Project.is_archived.is_(False))
        .group_by(Project.id)
        .cte("project_stats")
    )


def performer_stats_ctes() -> Tuple[CTE, CTE]:
    """
    performer_stats: completed points per (project, assigned_to employee),
    across every organization.
    ranked_performers: the same rows numbered 1..N inside each project by
    points, ties ordered by employee id.

    Not organization scoped; join the result against an org-scoped project
    set.
    """
    performer_stats = (
        select(
            Task.project_id.label("project_id"),
            Employee.id.label("employee_id"),
            Employee.first_name,
            Employee.last_name,
            func.sum(Task.points).label("points"),
        )
        .select_from(Task)
        .join(Employee, Task.assigned_to_id == Employee.id)
        .where(is_done())
        .group_by(Task.project_id, Employee.id, Employee.first_name, Employee.last_name)
        .cte("performer_stats")
    )
    ranked_performers = select(
        performer_stats.c.project_id,
        performer_stats.c.employee_id,
        performer_stats.c.first_name,
        performer_stats.c.last_name,
        performer_stats.c.points,
        func.row_number()
        .over(
            partition_by=performer_stats.c.project_id,
            order_by=(performer_stats.c.points.desc(), performer_stats.c.employee_id.asc()),
        )
        .label("rank"),
    ).cte("ranked_performers")
    return performer_stats, ranked_performers
