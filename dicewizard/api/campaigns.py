from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.api.deps import Deadline, get_current_user_id, get_db
from dicewizard.errors import MemberNotFound
from dicewizard.game.aggregate import CampaignAggregate
from dicewizard.game.membership import MembershipEngine
from dicewizard.models import MemberRole
from dicewizard.schemas import (
    CampaignCreate, CampaignUpdate, CampaignStatusUpdate, ActiveSceneUpdate, CampaignResponse,
    CampaignDetailResponse, AddCharacterRequest, CampaignCharacterResponse,
    MembershipResponse, MemberResponse, MemberRoleUpdate,
)

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


@router.get("", response_model=list[CampaignResponse])
async def list_campaigns(user_id: int = Depends(get_current_user_id), db: AsyncSession = Depends(get_db),
                         deadline: Deadline = Depends()):
    return await deadline(CampaignAggregate.get_campaigns_for_user(user_id, db))


@router.post("", response_model=CampaignResponse, status_code=201)
async def create_campaign(data: CampaignCreate, user_id: int = Depends(get_current_user_id),
                          db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(MembershipEngine.create_campaign_with_owner(
        user_id, data.name, db,
        description=data.description, visibility=data.visibility, status=data.status,
    ))


@router.get("/{campaign_id}", response_model=CampaignDetailResponse)
async def get_campaign(campaign_id: int, user_id: int = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(CampaignAggregate.get_campaign_detail(campaign_id, user_id, db))


@router.put("/{campaign_id}", response_model=CampaignResponse)
async def update_campaign(campaign_id: int, data: CampaignUpdate, user_id: int = Depends(get_current_user_id),
                          db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(MembershipEngine.update_campaign(
        campaign_id, user_id, db,
        name=data.name, description=data.description, visibility=data.visibility, status=data.status,
    ))


@router.put("/{campaign_id}/status", response_model=CampaignResponse)
async def update_campaign_status(campaign_id: int, data: CampaignStatusUpdate,
                                 user_id: int = Depends(get_current_user_id),
                                 db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(MembershipEngine.update_campaign_status(campaign_id, user_id, data.status, db))


@router.put("/{campaign_id}/active-scene", response_model=CampaignResponse)
async def set_active_scene(campaign_id: int, data: ActiveSceneUpdate, user_id: int = Depends(get_current_user_id),
                           db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(CampaignAggregate.set_active_scene(campaign_id, user_id, data.scene_id, db))


@router.post("/{campaign_id}/characters", response_model=CampaignCharacterResponse, status_code=201)
async def add_character(campaign_id: int, data: AddCharacterRequest, user_id: int = Depends(get_current_user_id),
                        db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(MembershipEngine.add_character_to_campaign(campaign_id, user_id, data.character_id, db))


# ============ members ============
@router.get("/{campaign_id}/members", response_model=list[MemberResponse])
async def list_members(campaign_id: int, user_id: int = Depends(get_current_user_id),
                       db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(MembershipEngine.list_members(campaign_id, user_id, db))


@router.get("/{campaign_id}/members/{member_user_id}", response_model=MembershipResponse)
async def get_membership(campaign_id: int, member_user_id: int, user_id: int = Depends(get_current_user_id),
                         db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    async def lookup():
        await MembershipEngine.get_campaign(campaign_id, db)
        await MembershipEngine.require_member(campaign_id, user_id, MemberRole.VIEWER, db)
        member = await MembershipEngine.get_membership(campaign_id, member_user_id, db)
        if member is None:
            raise MemberNotFound()
        return member

    return await deadline(lookup())


@router.put("/{campaign_id}/members/{member_user_id}/role", response_model=MembershipResponse)
async def update_member_role(campaign_id: int, member_user_id: int, data: MemberRoleUpdate,
                             user_id: int = Depends(get_current_user_id),
                             db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(MembershipEngine.update_member_role(campaign_id, user_id, member_user_id, data.role, db))


@router.post("/{campaign_id}/members/{member_user_id}/revoke", response_model=MembershipResponse)
async def revoke_member(campaign_id: int, member_user_id: int, user_id: int = Depends(get_current_user_id),
                        db: AsyncSession = Depends(get_db), deadline: Deadline = Depends()):
    return await deadline(MembershipEngine.revoke_member(campaign_id, user_id, member_user_id, db))
