from datetime import timedelta
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.api.deps import Deadline, get_current_user_id, get_db, get_settings
from dicewizard.config import Settings
from dicewizard.game.invites import InviteEngine
from dicewizard.schemas import InviteCreate, InviteResponse, InviteListItem, CampaignResponse

router = APIRouter(tags=["invites"])


@router.get("/api/campaigns/{campaign_id}/invites", response_model=list[InviteListItem])
async def list_invites(campaign_id: int, user_id: int = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(InviteEngine.list_invites(campaign_id, user_id, db))


@router.post("/api/campaigns/{campaign_id}/invites", response_model=InviteResponse, status_code=201)
async def create_invite(campaign_id: int, data: InviteCreate, user_id: int = Depends(get_current_user_id),
                        db: AsyncSession = Depends(get_db), config: Settings = Depends(get_settings),
                        deadline: Deadline = Depends()):
    ttl = timedelta(hours=data.ttl_hours) if data.ttl_hours else None
    return await deadline(InviteEngine.create_invite(
        campaign_id, user_id, db,
        role_default=data.role_default,
        ttl=ttl,
        default_ttl=timedelta(days=config.INVITE_TTL_DAYS),
    ))


@router.post("/api/invites/{code}/accept", response_model=CampaignResponse)
async def accept_invite(code: str, user_id: int = Depends(get_current_user_id),
                        db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(InviteEngine.redeem_invite(code, user_id, db))


@router.post("/api/invites/{invite_id}/revoke", response_model=InviteResponse)
async def revoke_invite(invite_id: int, user_id: int = Depends(get_current_user_id),
                        db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(InviteEngine.revoke_invite(invite_id, user_id, db))
