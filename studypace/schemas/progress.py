from pydantic import BaseModel, Field
from typing import Optional


class PageCompleteRequest(BaseModel):
    document_id: int
    page_number: int = Field(ge=1)
    time_spent_seconds: int = Field(ge=0)


class FeedbackRequest(BaseModel):
    page_time_seconds: float = Field(ge=0)
    document_id: Optional[int] = None
    page_number: Optional[int] = Field(default=None, ge=1)
    session_id: Optional[int] = None
    activity_level: float = Field(default=1.0, ge=0, le=1)
