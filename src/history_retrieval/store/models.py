"""
SQLAlchemy Models

Defines the relational tables the retrieval corpus is sourced from:
- Book chapters (narrative + commentary)
- History events (dated, with era and region)

Only the columns the retrieval engine reads are mapped here; the rest of the
application owns the full schema and its migrations.
"""

from __future__ import annotations

from typing import Optional, List

from sqlalchemy import Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .schemas import BookChapter, HistoryEvent


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Book Chapter Model
# ---------------------------------------------------------------------

class BookChapterRow(Base):
    """
    A chapter of the book.
    """
    __tablename__ = "book_chapters"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    chapter_number: Mapped[int] = mapped_column(Integer, nullable=False)
    narrative: Mapped[str] = mapped_column(Text, nullable=False)
    commentary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[Optional[List[str]]] = mapped_column(JSONB, nullable=True, default=list)
    time_span: Mapped[Optional[str]] = mapped_column("time_span", Text, nullable=True)
    era: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def to_record(self) -> BookChapter:
        return BookChapter(
            id=self.id,
            title=self.title,
            chapter_number=self.chapter_number,
            narrative=self.narrative,
            commentary=self.commentary,
            era=self.era,
            time_span=self.time_span,
            tags=list(self.tags or []),
        )


# ---------------------------------------------------------------------
# History Event Model
# ---------------------------------------------------------------------

class HistoryEventRow(Base):
    """
    A dated historical event. Negative years are BCE.
    """
    __tablename__ = "history_events"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    era: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[Optional[List[str]]] = mapped_column(JSONB, nullable=True, default=list)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    region: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def to_record(self) -> HistoryEvent:
        return HistoryEvent(
            id=self.id,
            title=self.title,
            year=self.year,
            era=self.era,
            description=self.description,
            region=self.region,
            tags=list(self.tags or []),
        )
