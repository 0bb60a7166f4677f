from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.api.deps import Deadline, get_current_user_id, get_db
from dicewizard.errors import InvalidNoteTarget
from dicewizard.game.notes import NoteEngine, DEFAULT_SEARCH_LIMIT
from dicewizard.models import NoteKind, NoteTarget
from dicewizard.models.campaign import parse_enum
from dicewizard.schemas import NoteCreate, NoteResponse

router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.post("", response_model=NoteResponse, status_code=201)
async def create_note(data: NoteCreate, user_id: int = Depends(get_current_user_id),
                      db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    target = NoteTarget.parse(data.entity_type, data.entity_id)
    return await deadline(NoteEngine.create_note(user_id, target, db, title=data.title, body=data.body))


@router.get("/search", response_model=list[NoteResponse])
async def search_notes(q: str = "", entity_type: Optional[str] = None, entity_id: Optional[int] = None,
                       limit: int = DEFAULT_SEARCH_LIMIT, user_id: int = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    kind = parse_enum(NoteKind, entity_type, InvalidNoteTarget) if entity_type else None
    return await deadline(NoteEngine.search_notes(
        user_id, db, query=q, kind=kind, entity_id=entity_id, limit=limit,
    ))
