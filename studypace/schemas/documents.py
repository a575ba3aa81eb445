from pydantic import BaseModel, Field
from typing import Optional


class DocumentCreate(BaseModel):
    title: str = Field(min_length=1)
    total_pages: int = Field(ge=0)
    file_name: Optional[str] = None


class PageAnalysisUpdate(BaseModel):
    # Produced by the document analysis step
    estimated_time_seconds: Optional[float] = Field(default=None, ge=0)
    difficulty_rating: Optional[int] = Field(default=None, ge=1, le=5)
