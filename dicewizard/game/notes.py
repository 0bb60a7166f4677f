import logging
from typing import List, Optional
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.models import Note, NoteKind, NoteTarget

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20
MAX_SEARCH_LIMIT = 100


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_SEARCH_LIMIT
    return max(1, min(int(limit), MAX_SEARCH_LIMIT))


class NoteEngine:
    """Private notes: every query is scoped to the owning user"""

    @classmethod
    async def create_note(cls, user_id: int, target: NoteTarget, db: AsyncSession,
                          title: str = "", body: str = "") -> Note:
        note = Note(
            user_id=user_id,
            entity_type=target.kind,
            entity_id=target.id,
            title=(title or "").strip(),
            body=body or "",
        )
        db.add(note)
        await db.commit()
        logger.info("Note %s created by user %s on %s", note.id, user_id, target.kind.value)
        return note

    @classmethod
    async def search_notes(cls, user_id: int, db: AsyncSession, query: str = "",
                           kind: Optional[NoteKind] = None, entity_id: Optional[int] = None,
                           limit: Optional[int] = None) -> List[Note]:
        """Notes whose title or body contains every whitespace-separated term"""
        stmt = select(Note).where(Note.user_id == user_id)
        if kind is not None:
            stmt = stmt.where(Note.entity_type == kind)
        if entity_id is not None:
            stmt = stmt.where(Note.entity_id == entity_id)
        for term in (query or "").split():
            pattern = _like_pattern(term)
            stmt = stmt.where(or_(Note.title.ilike(pattern, escape="\\"), Note.body.ilike(pattern, escape="\\")))

        stmt = stmt.order_by(Note.updated_at.desc(), Note.id.desc()).limit(clamp_limit(limit))
        result = await db.execute(stmt)
        return list(result.scalars().all())
