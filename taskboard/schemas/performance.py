from pydantic import BaseModel
from typing import Optional, List
from uuid import UUID

class WeeklyStatsRow(BaseModel):
    employee_id: UUID
    weekly_points: float

class YesterdayStatsRow(BaseModel):
    employee_id: UUID
    yesterday_points: float
    yesterday_task_count: int

class ProjectStatsRow(BaseModel):
    project_id: UUID
    total_points: int
    yesterday_points: int

class TopPerformerRow(BaseModel):
    project_id: UUID
    project_name: str
    employee_id: UUID
    first_name: str
    last_name: str
    points: int
    rank: int  # 1..N per project, no shared ranks


class EmployeePerformanceRow(BaseModel):
    employee_id: UUID
    first_name: str
    last_name: str
    weekly_points: float
    yesterday_points: float
    yesterday_task_count: int

class ProjectOverviewRow(BaseModel):
    project_id: UUID
    name: str
    total_points: int
    yesterday_points: int
    top_performer_id: Optional[UUID] = None
    top_performer_first_name: Optional[str] = None
    top_performer_last_name: Optional[str] = None
    top_performer_points: Optional[int] = None


class LeaderboardRow(BaseModel):
    employee_id: UUID
    first_name: str
    last_name: str
    total_points: float

class CompletionRateRow(BaseModel):
    employee_id: UUID
    first_name: str
    last_name: str
    total_tasks: int
    completed_tasks: int
    completion_rate: float  # percent, 2 decimals


class MonthlyTrendPoint(BaseModel):
    name: str  # "Oct 2026"
    points: int
    task_count: int

class MonthSummary(BaseModel):
    name: str
    points: int

class TrendAnalysis(BaseModel):
    avg_points: int
    trend: int  # % change, last month vs first month
    best_month: MonthSummary
    worst_month: MonthSummary
    total_tasks: int

class MonthlyTrendResponse(BaseModel):
    data: List[MonthlyTrendPoint]
    analysis: Optional[TrendAnalysis] = None


class CompletionTimeRow(BaseModel):
    employee_id: UUID
    first_name: str
    last_name: str
    average_completion_ms: int  # assigned_at -> updated_at
    task_count: int

class WeeklyTrendPoint(BaseModel):
    name: str  # Monday of the week, "2026-10-12"
    points: int


class StatusCount(BaseModel):
    status: Optional[str]
    count: int

class DashboardSummary(BaseModel):
    total_employees: int
    total_projects: int
    total_points: int
    tasks_by_status: List[StatusCount] = []
