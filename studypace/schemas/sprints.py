from pydantic import BaseModel, Field
from typing import Optional


class SprintCreate(BaseModel):
    document_id: int
    preferred_session_seconds: Optional[int] = Field(default=None, ge=60)


class SprintComplete(BaseModel):
    pages_completed: int = Field(ge=0)
    completion_quality: int = Field(ge=1, le=5)
