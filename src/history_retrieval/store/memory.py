"""
In-Memory Document Store

Dictionary-backed DocumentStore used when no database is configured and in
tests. Insertion order is preserved, so corpus build order is deterministic.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .schemas import BookChapter, HistoryEvent


SEED_CHAPTERS = [
    BookChapter(
        id="ch_41",
        title="Horus – The Falcon God of Kingship",
        chapter_number=41,
        narrative=(
            "In the vast expanse of the Nile Valley, where the river's life-giving waters "
            "carved civilization from desert sands, there soared a divine falcon whose "
            "piercing gaze would shape the destiny of pharaohs and the cosmic order itself. "
            "Horus, the sky god whose name echoes through millennia, represents more than "
            "myth: he embodies the living bridge between earthly kingship and divine "
            "authority.\n\n"
            "Archaeological evidence from the Predynastic Period (c. 6000-3100 BCE) reveals "
            "falcon imagery in burial sites and ceremonial objects, suggesting that the Horus "
            "cult predates the unification of Upper and Lower Egypt. The famous Narmer "
            "Palette, dating to approximately 3100 BCE, shows the falcon god overseeing the "
            "pharaoh's victory, establishing a template for divine kingship that would endure "
            "for three millennia."
        ),
        commentary=(
            "The mythology of Horus intertwines with historical events in ways that reveal "
            "deep truths about ancient Egyptian society. The story of Horus's battle with Seth "
            "reflects not only cosmic struggle between order and chaos, but also real political "
            "conflicts that shaped early Egyptian dynasties."
        ),
        tags=["Ancient Egypt", "Mythology", "Kingship", "Nile Valley"],
        time_span="3100 BCE - 332 BCE",
        era="Ancient History",
    ),
]

SEED_EVENTS = [
    HistoryEvent(
        id="pyramids_giza",
        title="Pyramids of Giza Construction",
        year=-2580,
        era="Old Kingdom",
        tags=["Egypt", "Architecture", "Engineering"],
        description=(
            "The Great Pyramid of Giza, built for Pharaoh Khufu, represents the pinnacle "
            "of Old Kingdom architecture and engineering."
        ),
        region="Egypt",
    ),
    HistoryEvent(
        id="first_dynasty",
        title="First Egyptian Dynasty",
        year=-3100,
        era="Early Dynastic",
        tags=["Egypt", "Politics", "Unification"],
        description=(
            "Narmer (Menes) unifies Upper and Lower Egypt, establishing the first pharaonic "
            "dynasty and the template for divine kingship."
        ),
        region="Egypt",
    ),
    HistoryEvent(
        id="neolithic_revolution",
        title="Neolithic Revolution Begins",
        year=-12000,
        era="Prehistoric",
        tags=["Global", "Agriculture", "Civilization"],
        description=(
            "Agricultural revolution transforms human society, leading to permanent "
            "settlements and the foundation for civilization."
        ),
        region="Global",
    ),
]


class InMemoryDocumentStore:
    """
    DocumentStore over plain dictionaries.

    With no arguments the store is seeded with a sample chapter and three
    events so the engine has something to search out of the box.
    """

    def __init__(
        self,
        events: Optional[Iterable[HistoryEvent]] = None,
        chapters: Optional[Iterable[BookChapter]] = None,
    ) -> None:
        if events is None and chapters is None:
            events, chapters = SEED_EVENTS, SEED_CHAPTERS

        self._events: Dict[str, HistoryEvent] = {e.id: e for e in events or []}
        self._chapters: Dict[str, BookChapter] = {c.id: c for c in chapters or []}

    async def list_events(self) -> List[HistoryEvent]:
        return list(self._events.values())

    async def list_chapters(self) -> List[BookChapter]:
        return list(self._chapters.values())

    async def get_chapter(self, chapter_id: str) -> Optional[BookChapter]:
        return self._chapters.get(chapter_id)

    def add_event(self, event: HistoryEvent) -> None:
        self._events[event.id] = event

    def add_chapter(self, chapter: BookChapter) -> None:
        self._chapters[chapter.id] = chapter
