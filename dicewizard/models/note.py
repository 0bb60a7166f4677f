from dataclasses import dataclass
from typing import Optional
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from dicewizard.database import Base, utcnow, enum_column
from dicewizard.errors import InvalidNoteTarget
import enum

class NoteKind(str, enum.Enum):
    GENERAL = "general"
    CAMPAIGN = "campaign"
    CHARACTER = "character"
    SCENE = "scene"
    MAP = "map"
    TOKEN = "token"
    HANDOUT = "handout"


@dataclass(frozen=True)
class NoteTarget:
    """What a note is attached to. GENERAL is a standalone note and has no id."""
    kind: NoteKind = NoteKind.GENERAL
    id: Optional[int] = None

    @classmethod
    def parse(cls, kind: Optional[str], entity_id: Optional[int] = None) -> "NoteTarget":
        try:
            parsed = NoteKind(kind or NoteKind.GENERAL.value)
        except ValueError:
            raise InvalidNoteTarget(f"unknown note target '{kind}'")
        if parsed is NoteKind.GENERAL:
            if entity_id is not None:
                raise InvalidNoteTarget("standalone notes take no entity id")
        elif entity_id is None:
            raise InvalidNoteTarget(f"{parsed.value} notes need an entity id")
        return cls(parsed, entity_id)


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    entity_type = Column(enum_column(NoteKind, "note_kind"), default=NoteKind.GENERAL, nullable=False)
    entity_id = Column(Integer, nullable=True)
    title = Column(String(200), default="")
    body = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def target(self) -> NoteTarget:
        return NoteTarget(NoteKind(self.entity_type), self.entity_id)
