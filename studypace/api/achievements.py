from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Annotated, Literal

from studypace.api.deps import SessionDep, CurrentUser, http_error
from studypace.services.achievements import AchievementService
from studypace.services.user_stats import UserStatsService

router = APIRouter()


def get_achievement_service(db: SessionDep, user: CurrentUser) -> AchievementService:
    return AchievementService(db, user_id=user.id)


def earned_payload(user_achievement) -> dict:
    a = user_achievement.achievement
    return {
        "code": a.code,
        "name": a.name,
        "description": a.description,
        "icon": a.icon,
        "category": a.category,
        "points": a.points,
        "earned_at": user_achievement.earned_at,
        "progress_value": user_achievement.progress_value,
    }


@router.get("/", name="achievements")
async def list_achievements(service: Annotated[AchievementService, Depends(get_achievement_service)]):
    """The whole catalog with earned state and progress."""
    items = service.overview()
    stats = UserStatsService(service.db, service.user_id).peek()
    return {
        "achievements": items,
        "earned_count": sum(1 for i in items if i["earned"]),
        "total_count": len(items),
        "total_xp_points": stats.total_xp_points,
        "current_level": stats.current_level,
    }


@router.get("/recent", name="recent_achievements")
async def recent_achievements(
        service: Annotated[AchievementService, Depends(get_achievement_service)],
        limit: int = Query(5, ge=1, le=50)
):
    return [earned_payload(ua) for ua in service.recent(limit)]


@router.get("/leaderboard", name="leaderboard")
async def leaderboard(
        service: Annotated[AchievementService, Depends(get_achievement_service)],
        metric: Literal["xp", "streak", "pages", "time"] = "xp",
        limit: int = Query(10, ge=1, le=100)
):
    try:
        return {"metric": metric, "entries": service.leaderboard(metric, limit)}
    except ValueError as e:
        raise http_error(e)


@router.post("/check", name="check_achievements")
async def check_achievements(
        service: Annotated[AchievementService, Depends(get_achievement_service)],
        db: SessionDep
):
    """Re-evaluate the catalog. Calling it again without new activity awards nothing."""
    try:
        awarded = service.check_and_award()
        db.commit()
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "new_achievements": [earned_payload(ua) for ua in awarded],
        "xp_gained": sum(ua.achievement.points for ua in awarded),
    }
