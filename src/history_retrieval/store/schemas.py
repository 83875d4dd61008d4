"""
Source Document Records

Pydantic records for the two document classes the retrieval corpus is built
from. These are what every DocumentStore implementation returns, regardless of
whether the rows come from PostgreSQL or the in-memory store.
"""

from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class HistoryEvent(BaseModel):
    """
    A dated historical event.
    """
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    year: int = Field(..., description="Negative years are BCE.")
    era: str
    description: str
    region: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


class BookChapter(BaseModel):
    """
    A chapter of the book, with its narrative and optional commentary.
    """
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    chapter_number: Optional[int] = None
    narrative: str
    commentary: Optional[str] = None
    era: Optional[str] = None
    time_span: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)
