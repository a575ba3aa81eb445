from pydantic import BaseModel, Field
from typing import Optional, Literal


class SessionStart(BaseModel):
    document_id: Optional[int] = None
    session_type: Literal["reading", "review", "practice", "exam_prep"] = "reading"
    energy_level: int = Field(default=3, ge=1, le=5)
    session_goal: Optional[str] = None
    target_pages: Optional[int] = Field(default=None, ge=1)
    target_duration_minutes: Optional[int] = Field(default=None, ge=1)


class SessionActivity(BaseModel):
    # Running totals from the client, not deltas
    pages_covered: Optional[int] = Field(default=None, ge=0, le=1000)
    tab_switches: Optional[int] = Field(default=None, ge=0, le=10000)
    app_minimized_count: Optional[int] = Field(default=None, ge=0, le=1000)
    inactivity_periods: Optional[int] = Field(default=None, ge=0)
    focus_events: Optional[int] = Field(default=None, ge=0)
    break_time_seconds: Optional[int] = Field(default=None, ge=0, le=86400)


class SessionPause(BaseModel):
    reason: Literal["break", "interruption", "bathroom", "snack", "other"] = "break"


class SessionResume(BaseModel):
    energy_level: Optional[int] = Field(default=None, ge=1, le=5)


class SessionEndRequest(BaseModel):
    # Unknown values are logged and recorded as "completed"
    completion_status: str = "completed"
    pages_covered: Optional[int] = Field(default=None, ge=0, le=1000)
    comprehension_rating: Optional[int] = Field(default=None, ge=1, le=5)
    difficulty_rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None
