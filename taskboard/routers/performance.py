from functools import partial
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncEngine
from taskboard.config import settings
from taskboard.database import get_engine
from taskboard.schemas.performance import (
    CompletionRateRow,
    CompletionTimeRow,
    DashboardSummary,
    EmployeePerformanceRow,
    LeaderboardRow,
    MonthlyTrendResponse,
    ProjectOverviewRow,
    ProjectStatsRow,
    TopPerformerRow,
    WeeklyStatsRow,
    WeeklyTrendPoint,
    YesterdayStatsRow,
)
from taskboard.services import performance
from taskboard.services.transaction import run_in_transaction

router = APIRouter(prefix="/organizations/{organization_id}/performance", tags=["performance"])


@router.get("/weekly", response_model=list[WeeklyStatsRow])
async def get_weekly_stats(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    return await run_in_transaction(
        engine, partial(performance.fetch_weekly_stats, organization_id=organization_id)
    )


@router.get("/yesterday", response_model=list[YesterdayStatsRow])
async def get_yesterday_stats(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    return await run_in_transaction(
        engine, partial(performance.fetch_yesterday_stats, organization_id=organization_id)
    )


@router.get("/projects", response_model=list[ProjectStatsRow])
async def get_project_stats(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    return await run_in_transaction(
        engine, partial(performance.fetch_project_stats, organization_id=organization_id)
    )


@router.get("/top-performers", response_model=list[TopPerformerRow])
async def get_top_performers(
    organization_id: UUID,
    limit: Optional[int] = Query(None, ge=1, le=100),
    engine: AsyncEngine = Depends(get_engine),
):
    return await run_in_transaction(
        engine,
        partial(performance.fetch_top_performers, organization_id=organization_id, limit=limit),
    )


@router.get("/employees", response_model=list[EmployeePerformanceRow])
async def get_employee_performance(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    # Today's leaderboard: weekly and yesterday figures per employee
    return await run_in_transaction(
        engine, partial(performance.fetch_employee_performance, organization_id=organization_id)
    )


@router.get("/overview", response_model=list[ProjectOverviewRow])
async def get_project_overview(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    return await run_in_transaction(
        engine, partial(performance.fetch_project_overview, organization_id=organization_id)
    )


@router.get("/leaderboard", response_model=list[LeaderboardRow])
async def get_points_leaderboard(
    organization_id: UUID,
    limit: Optional[int] = Query(None, ge=1, le=100),
    engine: AsyncEngine = Depends(get_engine),
):
    return await run_in_transaction(
        engine,
        partial(
            performance.fetch_points_leaderboard,
            organization_id=organization_id,
            limit=limit or settings.LEADERBOARD_LIMIT,
        ),
    )


@router.get("/completion-rate", response_model=list[CompletionRateRow])
async def get_completion_rates(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    return await run_in_transaction(
        engine, partial(performance.fetch_completion_rates, organization_id=organization_id)
    )


@router.get("/average-completion-time", response_model=list[CompletionTimeRow])
async def get_average_completion_times(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    return await run_in_transaction(
        engine, partial(performance.fetch_average_completion_times, organization_id=organization_id)
    )


@router.get("/weekly-trend", response_model=list[WeeklyTrendPoint])
async def get_weekly_trend(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    return await run_in_transaction(
        engine,
        partial(
            performance.fetch_weekly_trend,
            organization_id=organization_id,
            weeks=settings.TREND_WEEKS,
        ),
    )


@router.get("/monthly-trend", response_model=MonthlyTrendResponse)
async def get_monthly_trend(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    return await run_in_transaction(
        engine,
        partial(
            performance.fetch_monthly_trend,
            organization_id=organization_id,
            months=settings.TREND_MONTHS,
        ),
    )


@router.get("/summary", response_model=DashboardSummary)
async def get_dashboard_summary(organization_id: UUID, engine: AsyncEngine = Depends(get_engine)):
    return await run_in_transaction(
        engine, partial(performance.fetch_dashboard_summary, organization_id=organization_id)
    )
