"""
API Models

Request and response bodies for the HTTP surface. Search results and context
bundles reuse the retrieval models directly.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict

from ..retrieval.models import (
    ContextOptions,
    DocumentClass,
    SearchOptions,
    TimeRange,
)


class SearchRequest(BaseModel):
    """
    Semantic search request payload.
    """
    query: str = Field(..., min_length=1)
    limit: int = Field(default=10, ge=0, le=100)
    threshold: float = Field(default=0.7, ge=-1.0, le=1.0)
    document_class: Optional[DocumentClass] = None
    era: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    def to_options(self) -> SearchOptions:
        return SearchOptions(
            limit=self.limit,
            threshold=self.threshold,
            document_class=self.document_class,
            era=self.era,
        )


class ContextRequest(BaseModel):
    """
    Historical context (fact-check) request payload.
    """
    claim: str = Field(..., min_length=1)
    include_similar: bool = True
    time_range: Optional[TimeRange] = None

    model_config = ConfigDict(extra="forbid")

    def to_options(self) -> ContextOptions:
        return ContextOptions(
            include_similar=self.include_similar,
            time_range=self.time_range,
        )


class OperationResult(BaseModel):
    """
    Standardized result for administrative operations.
    """
    status: Literal["refreshed", "cleared", "ok"]
    count: Optional[int] = Field(default=None, ge=0)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


class CorpusStatsResponse(BaseModel):
    initialized: bool
    total_documents: int = Field(..., ge=0)
    events: int = Field(..., ge=0)
    chapters: int = Field(..., ge=0)
    dimension: int = Field(..., ge=0)
