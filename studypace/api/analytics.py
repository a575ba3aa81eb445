from typing import Literal

from fastapi import APIRouter, Query

from studypace.api.deps import SessionDep, CurrentUser
from studypace.services.analytics import AnalyticsService

router = APIRouter()


@router.get("/daily", name="daily_analytics")
async def get_daily_analytics(
        db: SessionDep,
        user: CurrentUser,
        days: int = Query(30, ge=1, le=365)
):
    """Per-day rollups for the last `days` days (days without study are omitted)."""
    rows = AnalyticsService(db, user.id).daily(days)
    return [
        {
            "date": row.date,
            "total_pages_read": row.total_pages_read,
            "total_time_seconds": row.total_time_seconds,
            "study_sessions_count": row.study_sessions_count,
            "focus_score_average": round(row.focus_score_average, 4),
            "average_page_time": row.average_page_time,
            "time_of_day_minutes": {
                "morning": round(row.morning_minutes, 1),
                "afternoon": round(row.afternoon_minutes, 1),
                "evening": round(row.evening_minutes, 1),
                "night": round(row.night_minutes, 1),
            },
        }
        for row in rows
    ]


@router.get("/patterns", name="study_patterns")
async def get_study_patterns(db: SessionDep, user: CurrentUser):
    return {"patterns": AnalyticsService(db, user.id).study_patterns()}


@router.get("/trends", name="performance_trends")
async def get_performance_trends(
        db: SessionDep,
        user: CurrentUser,
        period: Literal["7d", "30d", "90d"] = "30d",
        metric: Literal["speed", "pages", "focus", "time"] = "speed"
):
    """Daily trend line for one metric, with improvement and consistency scores."""
    return AnalyticsService(db, user.id).trends(period, metric)


@router.get("/velocity", name="velocity_trends")
async def get_velocity_trends(
        db: SessionDep,
        user: CurrentUser,
        period: Literal["7d", "30d", "90d"] = "30d"
):
    return AnalyticsService(db, user.id).velocity(period)


@router.get("/dashboard", name="dashboard")
async def get_dashboard(db: SessionDep, user: CurrentUser):
    return AnalyticsService(db, user.id).dashboard()
