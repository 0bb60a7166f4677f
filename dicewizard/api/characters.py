from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.api.deps import Deadline, get_current_user_id, get_db
from dicewizard.game.characters import CharacterEngine, character_view
from dicewizard.schemas import CharacterCreate, CharacterUpdate, CharacterResponse

router = APIRouter(prefix="/api/characters", tags=["characters"])


@router.get("", response_model=list[CharacterResponse])
async def list_characters(user_id: int = Depends(get_current_user_id), db: AsyncSession = Depends(get_db),
                          deadline: Deadline = Depends()):
    chars = await deadline(CharacterEngine.list_characters(user_id, db))
    return [character_view(c) for c in chars]


@router.post("", response_model=CharacterResponse, status_code=201)
async def create_character(data: CharacterCreate, user_id: int = Depends(get_current_user_id),
                           db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    char = await deadline(CharacterEngine.create_character(user_id, data.model_dump(), db))
    return character_view(char)


@router.get("/{character_id}", response_model=CharacterResponse)
async def get_character(character_id: int, user_id: int = Depends(get_current_user_id),
                        db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    char = await deadline(CharacterEngine.get_character(character_id, user_id, db))
    return character_view(char)


@router.put("/{character_id}", response_model=CharacterResponse)
async def update_character(character_id: int, data: CharacterUpdate, user_id: int = Depends(get_current_user_id),
                           db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    char = await deadline(CharacterEngine.update_character(character_id, user_id, data.model_dump(), db))
    return character_view(char)


@router.delete("/{character_id}", status_code=204)
async def delete_character(character_id: int, user_id: int = Depends(get_current_user_id),
                           db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    await deadline(CharacterEngine.delete_character(character_id, user_id, db))
