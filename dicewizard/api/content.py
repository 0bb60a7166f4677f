from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.api.deps import Deadline, get_current_user_id, get_db
from dicewizard.game.content import ContentEngine
from dicewizard.schemas import (
    SceneCreate, SceneResponse, MapCreate, MapResponse, TokenCreate, TokenMove, TokenLayerUpdate, TokenResponse,
    HandoutCreate, HandoutResponse,
)

router = APIRouter(tags=["content"])


@router.post("/api/campaigns/{campaign_id}/scenes", response_model=SceneResponse, status_code=201)
async def create_scene(campaign_id: int, data: SceneCreate, user_id: int = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(ContentEngine.create_scene(
        campaign_id, user_id, data.name, db, description=data.description, ordering=data.ordering,
    ))


@router.post("/api/campaigns/{campaign_id}/maps", response_model=MapResponse, status_code=201)
async def create_map(campaign_id: int, data: MapCreate, user_id: int = Depends(get_current_user_id),
                     db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(ContentEngine.create_map(
        campaign_id, user_id, data.name, db, base_image_url=data.base_image_url, scene_id=data.scene_id,
    ))


@router.post("/api/maps/{map_id}/tokens", response_model=TokenResponse, status_code=201)
async def create_token(map_id: int, data: TokenCreate, user_id: int = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    fields = data.model_dump(exclude={"label"})
    return await deadline(ContentEngine.create_token(map_id, user_id, data.label, db, **fields))


@router.put("/api/tokens/{token_id}/position", response_model=TokenResponse)
async def move_token(token_id: int, data: TokenMove, user_id: int = Depends(get_current_user_id),
                     db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(ContentEngine.move_token(token_id, user_id, data.position_x, data.position_y, db))


@router.put("/api/tokens/{token_id}/layer", response_model=TokenResponse)
async def set_token_layer(token_id: int, data: TokenLayerUpdate, user_id: int = Depends(get_current_user_id),
                          db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(ContentEngine.set_token_layer(token_id, user_id, data.layer, db))


@router.get("/api/campaigns/{campaign_id}/handouts", response_model=list[HandoutResponse])
async def list_handouts(campaign_id: int, user_id: int = Depends(get_current_user_id),
                        db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(ContentEngine.list_handouts(campaign_id, user_id, db))


@router.post("/api/campaigns/{campaign_id}/handouts", response_model=HandoutResponse, status_code=201)
async def create_handout(campaign_id: int, data: HandoutCreate, user_id: int = Depends(get_current_user_id),
                         db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(ContentEngine.create_handout(
        campaign_id, user_id, db, title=data.title, description=data.description, file_url=data.file_url,
    ))
