from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Annotated, Optional, Literal
from dataclasses import asdict

from studypace.api.deps import SessionDep, CurrentUser, http_error
from studypace.schemas.sessions import SessionStart, SessionActivity, SessionPause, SessionResume, SessionEndRequest
from studypace.services.sessions import StudySessionService
from studypace.core import focus

router = APIRouter()


def get_session_service(db: SessionDep, user: CurrentUser) -> StudySessionService:
    return StudySessionService(db, user_id=user.id)


def session_payload(session) -> dict:
    return {
        "id": session.id,
        "document_id": session.document_id,
        "session_type": session.session_type,
        "session_goal": session.session_goal,
        "started_at": session.started_at,
        "ended_at": session.ended_at,
        "is_active": session.is_active,
        "total_duration_seconds": session.total_duration_seconds,
        "active_reading_seconds": session.active_reading_seconds,
        "break_time_seconds": session.break_time_seconds,
        "pages_covered": session.pages_covered,
        "tab_switches": session.tab_switches,
        "app_minimized_count": session.app_minimized_count,
        "inactivity_periods": session.inactivity_periods,
        "focus_events": session.focus_events,
        "focus_score": session.focus_score,
        "completion_status": session.completion_status,
        "energy_level": session.energy_level,
        "comprehension_rating": session.comprehension_rating,
        "difficulty_rating": session.difficulty_rating,
        "notes": session.notes,
    }


def _achievement_payload(user_achievement) -> dict:
    a = user_achievement.achievement
    return {
        "code": a.code,
        "name": a.name,
        "icon": a.icon,
        "points": a.points,
        "earned_at": user_achievement.earned_at,
    }


@router.post("/", status_code=201, name="start_session")
async def start_session(
        request: SessionStart,
        service: Annotated[StudySessionService, Depends(get_session_service)],
        db: SessionDep
):
    try:
        session = service.start_session(
            document_id=request.document_id,
            session_type=request.session_type,
            energy_level=request.energy_level,
            session_goal=request.session_goal,
            target_pages=request.target_pages,
            target_duration_minutes=request.target_duration_minutes
        )
        db.commit()
        db.refresh(session)
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "session": session_payload(session),
        "tips": focus.session_tips(request.session_type, request.energy_level),
    }


@router.patch("/{session_id}/activity", name="session_activity")
async def update_activity(
        session_id: int,
        request: SessionActivity,
        service: Annotated[StudySessionService, Depends(get_session_service)],
        db: SessionDep
):
    """Activity ping: stores the running counters and rescored focus for live feedback."""
    try:
        session = service.update_activity(session_id, **request.model_dump())
        db.commit()
        db.refresh(session)
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "session": session_payload(session),
        "focus_score": round(session.focus_score * 100),
        "feedback": focus.live_feedback(session, session.focus_score),
        "recommendations": focus.activity_recommendations(session),
    }


@router.patch("/{session_id}/pause", name="pause_session")
async def pause_session(
        session_id: int,
        request: SessionPause,
        service: Annotated[StudySessionService, Depends(get_session_service)],
        db: SessionDep
):
    try:
        session = service.pause_session(session_id, request.reason)
        db.commit()
        db.refresh(session)
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "session": session_payload(session),
        "break_suggestions": focus.break_suggestions(request.reason),
        "optimal_break_minutes": focus.optimal_break_minutes(session),
    }


@router.patch("/{session_id}/resume", name="resume_session")
async def resume_session(
        session_id: int,
        request: SessionResume,
        service: Annotated[StudySessionService, Depends(get_session_service)],
        db: SessionDep
):
    try:
        session = service.resume_session(session_id, request.energy_level)
        db.commit()
        db.refresh(session)
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "session": session_payload(session),
        "refocus_tips": focus.refocus_tips(request.energy_level, session),
        "target_minutes": focus.remaining_optimal_minutes(session),
    }


@router.patch("/{session_id}/end", name="end_session")
async def end_session(
        session_id: int,
        request: SessionEndRequest,
        service: Annotated[StudySessionService, Depends(get_session_service)],
        db: SessionDep
):
    """
    Finish the session. Stats, the daily rollup and achievements are
    updated in the same transaction.
    """
    try:
        result = service.end_session(session_id, **request.model_dump())
        db.commit()
        db.refresh(result.session)
    except ValueError as e:
        db.rollback()
        raise http_error(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "session": session_payload(result.session),
        "performance": result.performance.to_dict(),
        "summary": result.summary,
        "new_achievements": [_achievement_payload(ua) for ua in result.new_achievements],
        "next_session_recommendations": result.next_recommendations,
        "insights": [asdict(i) for i in result.insights],
    }


@router.get("/", name="list_sessions")
async def list_sessions(
        service: Annotated[StudySessionService, Depends(get_session_service)],
        limit: int = Query(20, ge=1, le=100),
        offset: int = Query(0, ge=0),
        document_id: Optional[int] = None,
        status: Optional[Literal["active", "completed"]] = None
):
    sessions, total, statistics = service.list_sessions(limit, offset, document_id, status)
    return {
        "sessions": [session_payload(s) for s in sessions],
        "total": total,
        "limit": limit,
        "offset": offset,
        "statistics": statistics,
    }


@router.get("/{session_id}", name="session_detail")
async def get_session(
        session_id: int,
        service: Annotated[StudySessionService, Depends(get_session_service)],
):
    try:
        session = service.get_session(session_id)
    except ValueError as e:
        raise http_error(e)

    return {
        "session": session_payload(session),
        "performance": focus.analyze_performance(session, detailed=True).to_dict(),
        "breaks": (session.pause_data or {}).get("breaks", []),
    }
