from calendar import monthrange
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional
from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncConnection
from taskboard.models.employee import Employee
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.schemas.performance import (
    CompletionRateRow,
    CompletionTimeRow,
    DashboardSummary,
    EmployeePerformanceRow,
    LeaderboardRow,
    MonthlyTrendPoint,
    MonthlyTrendResponse,
    MonthSummary,
    ProjectOverviewRow,
    ProjectStatsRow,
    StatusCount,
    TopPerformerRow,
    TrendAnalysis,
    WeeklyStatsRow,
    WeeklyTrendPoint,
    YesterdayStatsRow,
)
from taskboard.services.stats_ctes import (
    employee_task_link,
    is_done,
    organization_param,
    performer_stats_ctes,
    project_stats_cte,
    split_points,
    utcnow,
    weekly_stats_cte,
    yesterday_stats_cte,
)


async def fetch_weekly_stats(
    conn: AsyncConnection, organization_id, *, now: Optional[datetime] = None
) -> List[WeeklyStatsRow]:
    weekly = weekly_stats_cte(organization_param(organization_id), now=now)
    result = await conn.execute(
        select(weekly).order_by(weekly.c.weekly_points.desc(), weekly.c.employee_id)
    )
    return [WeeklyStatsRow.model_validate(dict(row._mapping)) for row in result]


async def fetch_yesterday_stats(
    conn: AsyncConnection, organization_id, *, today: Optional[date] = None
) -> List[YesterdayStatsRow]:
    yesterday = yesterday_stats_cte(organization_param(organization_id), today=today)
    result = await conn.execute(
        select(yesterday).order_by(yesterday.c.yesterday_points.desc(), yesterday.c.employee_id)
    )
    return [YesterdayStatsRow.model_validate(dict(row._mapping)) for row in result]


async def fetch_project_stats(
    conn: AsyncConnection, organization_id, *, today: Optional[date] = None
) -> List[ProjectStatsRow]:
    stats = project_stats_cte(organization_param(organization_id), today=today)
    result = await conn.execute(
        select(stats).order_by(stats.c.total_points.desc(), stats.c.project_id)
    )
    return [ProjectStatsRow.model_validate(dict(row._mapping)) for row in result]


async def fetch_top_performers(
    conn: AsyncConnection, organization_id, *, limit: Optional[int] = None
) -> List[TopPerformerRow]:
    """Ranked performers of the organization's non-archived projects, `limit` per project."""
    _, ranked = performer_stats_ctes()
    stmt = (
        select(
            ranked.c.project_id,
            Project.name.label("project_name"),
            ranked.c.employee_id,
            ranked.c.first_name,
            ranked.c.last_name,
            ranked.c.points,
            ranked.c.rank,
        )
        .select_from(ranked)
        .join(Project, Project.id == ranked.c.project_id)
        .where(Project.organization_id == organization_param(organization_id))
        .where(Project.is_archived.is_(False))
        .order_by(Project.name, ranked.c.project_id, ranked.c.rank)
    )
    if limit is not None:
        stmt = stmt.where(ranked.c.rank <= limit)
    result = await conn.execute(stmt)
    return [TopPerformerRow.model_validate(dict(row._mapping)) for row in result]


async def fetch_employee_performance(
    conn: AsyncConnection, organization_id, *, now: Optional[datetime] = None
) -> List[EmployeePerformanceRow]:
    """Weekly and yesterday figures side by side, one statement, one org parameter."""
    now = now or utcnow()
    org = organization_param(organization_id)
    weekly = weekly_stats_cte(org, now=now)
    yesterday = yesterday_stats_cte(org, today=now.date())
    stmt = (
        select(
            Employee.id.label("employee_id"),
            Employee.first_name,
            Employee.last_name,
            weekly.c.weekly_points,
            yesterday.c.yesterday_points,
            yesterday.c.yesterday_task_count,
        )
        .select_from(Employee)
        .join(weekly, weekly.c.employee_id == Employee.id)
        .join(yesterday, yesterday.c.employee_id == Employee.id)
        .order_by(weekly.c.weekly_points.desc(), Employee.last_name, Employee.first_name, Employee.id)
    )
    result = await conn.execute(stmt)
    return [EmployeePerformanceRow.model_validate(dict(row._mapping)) for row in result]


async def fetch_project_overview(
    conn: AsyncConnection, organization_id, *, today: Optional[date] = None
) -> List[ProjectOverviewRow]:
    stats = project_stats_cte(organization_param(organization_id), today=today)
    _, ranked = performer_stats_ctes()
    stmt = (
        select(
            Project.id.label("project_id"),
            Project.name,
            stats.c.total_points,
            stats.c.yesterday_points,
            ranked.c.employee_id.label("top_performer_id"),
            ranked.c.first_name.label("top_performer_first_name"),
            ranked.c.last_name.label("top_performer_last_name"),
            ranked.c.points.label("top_performer_points"),
        )
        .select_from(Project)
        .join(stats, stats.c.project_id == Project.id)
        .outerjoin(ranked, and_(ranked.c.project_id == Project.id, ranked.c.rank == 1))
        .order_by(Project.name, Project.id)
    )
    result = await conn.execute(stmt)
    return [ProjectOverviewRow.model_validate(dict(row._mapping)) for row in result]


async def fetch_points_leaderboard(
    conn: AsyncConnection, organization_id, *, limit: int = 10
) -> List[LeaderboardRow]:
    """All-time split points on completed tasks, active employees only."""
    total_points = func.coalesce(func.sum(split_points()), 0).label("total_points")
    stmt = (
        select(
            Employee.id.label("employee_id"),
            Employee.first_name,
            Employee.last_name,
            total_points,
        )
        .select_from(Employee)
        .outerjoin(Task, and_(employee_task_link(), is_done()))
        .where(Employee.organization_id == organization_param(organization_id))
        .where(Employee.is_archived.is_(False))
        .group_by(Employee.id, Employee.first_name, Employee.last_name)
        .order_by(total_points.desc(), Employee.id)
        .limit(limit)
    )
    result = await conn.execute(stmt)
    return [LeaderboardRow.model_validate(dict(row._mapping)) for row in result]


async def fetch_completion_rates(conn: AsyncConnection, organization_id) -> List[CompletionRateRow]:
    stmt = (
        select(
            Employee.id.label("employee_id"),
            Employee.first_name,
            Employee.last_name,
            func.count(Task.id).label("total_tasks"),
            func.count(case((is_done(), Task.id))).label("completed_tasks"),
        )
        .select_from(Employee)
        .outerjoin(Task, employee_task_link())
        .where(Employee.organization_id == organization_param(organization_id))
        .where(Employee.is_archived.is_(False))
        .group_by(Employee.id, Employee.first_name, Employee.last_name)
    )
    result = await conn.execute(stmt)

    rows = []
    for row in result:
        total, completed = row.total_tasks, row.completed_tasks
        rate = round(completed / total * 100, 2) if total else 0.0
        rows.append(CompletionRateRow(**row._mapping, completion_rate=rate))
    rows.sort(key=lambda r: (-r.completion_rate, r.last_name, r.first_name))
    return rows


async def fetch_average_completion_times(
    conn: AsyncConnection, organization_id
) -> List[CompletionTimeRow]:
    """Mean time from assignment to the completing update, per active employee."""
    result = await conn.execute(
        select(
            Employee.id.label("employee_id"),
            Employee.first_name,
            Employee.last_name,
            Task.assigned_at,
            Task.updated_at,
        )
        .select_from(Employee)
        .join(Task, and_(employee_task_link(), is_done()))
        .where(Employee.organization_id == organization_param(organization_id))
        .where(Employee.is_archived.is_(False))
        .where(Task.assigned_at.is_not(None))
        .where(Task.updated_at.is_not(None))
    )

    per_employee = {}
    for row in result:
        elapsed = as_utc(row.updated_at) - as_utc(row.assigned_at)
        entry = per_employee.setdefault(row.employee_id, [row.first_name, row.last_name, []])
        entry[2].append(elapsed.total_seconds() * 1000)

    rows = [
        CompletionTimeRow(
            employee_id=employee_id,
            first_name=first_name,
            last_name=last_name,
            average_completion_ms=round(sum(durations) / len(durations)),
            task_count=len(durations),
        )
        for employee_id, (first_name, last_name, durations) in per_employee.items()
    ]
    rows.sort(key=lambda r: (-r.average_completion_ms, str(r.employee_id)))
    return rows


def as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive values, already UTC
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def months_back(moment: datetime, months: int) -> datetime:
    """Same day `months` calendar months earlier, clamped to the month's last day."""
    year, month = divmod(moment.year * 12 + moment.month - 1 - months, 12)
    month += 1
    day = min(moment.day, monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def analyze_trend(data: List[MonthlyTrendPoint]) -> Optional[TrendAnalysis]:
    if not data:
        return None

    total_points = sum(p.points for p in data)
    best = max(data, key=lambda p: p.points)
    worst = min(data, key=lambda p: p.points)

    # Last month against the first
    trend = 0
    if len(data) >= 2 and data[0].points > 0:
        trend = round((data[-1].points - data[0].points) / data[0].points * 100)

    return TrendAnalysis(
        avg_points=round(total_points / len(data)),
        trend=trend,
        best_month=MonthSummary(name=best.name, points=best.points),
        worst_month=MonthSummary(name=worst.name, points=worst.points),
        total_tasks=sum(p.task_count for p in data),
    )


async def fetch_monthly_trend(
    conn: AsyncConnection,
    organization_id,
    *,
    months: int = 12,
    now: Optional[datetime] = None,
) -> MonthlyTrendResponse:
    """Completed points and task counts per calendar month of updated_at."""
    since = months_back(now or utcnow(), months)
    result = await conn.execute(
        select(Task.updated_at, Task.points)
        .join(Project, Task.project_id == Project.id)
        .where(Project.organization_id == organization_param(organization_id))
        .where(is_done())
        .where(Task.updated_at >= since)
    )

    buckets = {}
    for updated_at, points in result:
        updated_at = as_utc(updated_at)
        key = (updated_at.year, updated_at.month)
        bucket = buckets.setdefault(key, [0, 0])
        bucket[0] += points or 0
        bucket[1] += 1

    data = [
        MonthlyTrendPoint(
            name=date(year, month, 1).strftime("%b %Y"),
            points=points,
            task_count=count,
        )
        for (year, month), (points, count) in sorted(buckets.items())
    ]
    return MonthlyTrendResponse(data=data, analysis=analyze_trend(data))


async def fetch_weekly_trend(
    conn: AsyncConnection,
    organization_id,
    *,
    weeks: int = 12,
    now: Optional[datetime] = None,
) -> List[WeeklyTrendPoint]:
    """Completed points per ISO week (Monday start) of updated_at."""
    since = (now or utcnow()) - timedelta(weeks=weeks)
    result = await conn.execute(
        select(Task.updated_at, Task.points)
        .join(Project, Task.project_id == Project.id)
        .where(Project.organization_id == organization_param(organization_id))
        .where(is_done())
        .where(Task.updated_at >= since)
    )

    buckets = {}
    for updated_at, points in result:
        day = as_utc(updated_at).date()
        monday = day - timedelta(days=day.weekday())
        buckets[monday] = buckets.get(monday, 0) + (points or 0)

    return [
        WeeklyTrendPoint(name=monday.isoformat(), points=points)
        for monday, points in sorted(buckets.items())
    ]


async def fetch_dashboard_summary(conn: AsyncConnection, organization_id) -> DashboardSummary:
    org = organization_param(organization_id)
    total_employees = (
        select(func.count(Employee.id))
        .where(Employee.organization_id == org)
        .where(Employee.is_archived.is_(False))
        .scalar_subquery()
    )
    total_projects = (
        select(func.count(Project.id)).where(Project.organization_id == org).scalar_subquery()
    )
    total_points = (
        select(func.coalesce(func.sum(Task.points), 0))
        .join(Project, Task.project_id == Project.id)
        .where(Project.organization_id == org)
        .scalar_subquery()
    )
    result = await conn.execute(
        select(
            total_employees.label("total_employees"),
            total_projects.label("total_projects"),
            total_points.label("total_points"),
        )
    )
    summary = DashboardSummary.model_validate(dict(result.one()._mapping))

    by_status = await conn.execute(
        select(Task.status, func.count(Task.id).label("count"))
        .join(Project, Task.project_id == Project.id)
        .where(Project.organization_id == org)
        .group_by(Task.status)
        .order_by(Task.status)
    )
    summary.tasks_by_status = [StatusCount(status=status, count=count) for status, count in by_status]
    return summary
