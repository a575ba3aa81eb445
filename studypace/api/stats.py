from fastapi import APIRouter

from studypace.api.deps import SessionDep, CurrentUser
from studypace.core.estimates import format_duration, words_per_minute
from studypace.core.stats import STAT_FIELDS, XP_PER_LEVEL_UNIT
from studypace.services.user_stats import UserStatsService

router = APIRouter()


@router.get("/me", name="my_stats")
async def get_my_stats(db: SessionDep, user: CurrentUser):
    """
    The caller's aggregate. Users without any activity get the defaults
    (no row is created by reading).
    """
    stats = UserStatsService(db, user.id).peek()

    # XP needed for the next level: 100 * level^2
    next_level_xp = XP_PER_LEVEL_UNIT * stats.current_level ** 2

    payload = {name: getattr(stats, name) for name in STAT_FIELDS}
    payload.update({
        "formatted_total_time": format_duration(stats.total_time_spent_seconds),
        "words_per_minute": words_per_minute(stats.average_reading_speed_seconds),
        "next_level_xp": next_level_xp,
        "xp_to_next_level": max(0, next_level_xp - stats.total_xp_points),
    })
    return payload
