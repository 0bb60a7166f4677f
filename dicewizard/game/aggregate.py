import logging
from typing import List, Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.database import as_utc
from dicewizard.game.content import ContentEngine
from dicewizard.game.membership import MembershipEngine, member_view
from dicewizard.models import (
    User, Character, Campaign, CampaignMember, CampaignCharacter, CampaignHandout,
    Scene, Map, Token, MemberRole, MemberStatus, TokenLayer,
)

logger = logging.getLogger(__name__)


def campaign_view(campaign: Campaign) -> dict:
    return {
        "id": campaign.id,
        "owner_id": campaign.owner_id,
        "name": campaign.name,
        "description": campaign.description or "",
        "visibility": campaign.visibility,
        "status": campaign.status,
        "active_scene_id": campaign.active_scene_id,
        "created_at": as_utc(campaign.created_at),
        "updated_at": as_utc(campaign.updated_at),
    }


def token_view(token: Token) -> dict:
    return {
        "id": token.id,
        "map_id": token.map_id,
        "character_id": token.character_id,
        "label": token.label,
        "image_url": token.image_url or "",
        "size_squares": token.size_squares,
        "position_x": token.position_x,
        "position_y": token.position_y,
        "facing_deg": token.facing_deg,
        "audience": list(token.audience or []),
        "tags": list(token.tags or []),
        "notes": token.notes or "",
        "layer": token.layer,
        "created_by": token.created_by,
        "created_at": as_utc(token.created_at),
    }


def map_view(campaign_map: Map, tokens: List[dict]) -> dict:
    return {
        "id": campaign_map.id,
        "scene_id": campaign_map.scene_id,
        "name": campaign_map.name,
        "base_image_url": campaign_map.base_image_url or "",
        "grid_size_ft": campaign_map.grid_size_ft,
        "width_px": campaign_map.width_px,
        "height_px": campaign_map.height_px,
        "created_at": as_utc(campaign_map.created_at),
        "tokens": tokens,
    }


def scene_view(scene: Scene, scene_map: Optional[dict]) -> dict:
    return {
        "id": scene.id,
        "campaign_id": scene.campaign_id,
        "name": scene.name,
        "description": scene.description or "",
        "ordering": scene.ordering,
        "is_active": scene.is_active,
        "created_by": scene.created_by,
        "created_at": as_utc(scene.created_at),
        "map": scene_map,
    }


def handout_view(handout: CampaignHandout) -> dict:
    return {
        "id": handout.id,
        "campaign_id": handout.campaign_id,
        "title": handout.title,
        "description": handout.description or "",
        "file_url": handout.file_url or "",
        "created_by": handout.created_by,
        "created_at": as_utc(handout.created_at),
        "updated_at": as_utc(handout.updated_at),
    }


class CampaignAggregate:
    """Role-filtered read model of a campaign"""

    @classmethod
    async def get_campaigns_for_user(cls, user_id: int, db: AsyncSession) -> List[Campaign]:
        result = await db.execute(
            select(Campaign)
            .join(CampaignMember, CampaignMember.campaign_id == Campaign.id)
            .where(CampaignMember.user_id == user_id, CampaignMember.status == MemberStatus.ACCEPTED)
            .order_by(Campaign.updated_at.desc(), Campaign.id.desc())
        )
        return list(result.scalars().all())

    @classmethod
    async def get_campaign_detail(cls, campaign_id: int, user_id: int, db: AsyncSession) -> dict:
        """Campaign plus members, characters, scenes (map and tokens) and handouts.

        Viewers only receive the campaign's active scene (none when no scene
        is active) and never ``gm`` layer tokens; both filters run in the
        queries themselves.
        """
        campaign = await MembershipEngine.get_campaign(campaign_id, db)
        member = await MembershipEngine.require_member(campaign_id, user_id, MemberRole.VIEWER, db)
        role = MemberRole(member.role)
        sees_gm_layer = role.at_least(MemberRole.EDITOR)

        member_rows = await db.execute(
            select(CampaignMember, User.username)
            .join(User, User.id == CampaignMember.user_id)
            .where(CampaignMember.campaign_id == campaign_id)
            .order_by(CampaignMember.id)
        )
        members = [member_view(m, username) for m, username in member_rows.all()]

        character_rows = await db.execute(
            select(CampaignCharacter, Character, User.username)
            .join(Character, Character.id == CampaignCharacter.character_id)
            .join(User, User.id == Character.user_id)
            .where(CampaignCharacter.campaign_id == campaign_id)
            .order_by(CampaignCharacter.id)
        )
        characters = [
            {
                "link_id": link.id,
                "character_id": character.id,
                "character_name": character.name,
                "character_class": character.char_class or "",
                "character_level": character.level,
                "owner_id": character.user_id,
                "owner_username": username,
            }
            for link, character, username in character_rows.all()
        ]

        scene_query = select(Scene).where(Scene.campaign_id == campaign_id).order_by(Scene.ordering, Scene.id)
        if not sees_gm_layer:
            # players only ever see the scene on the table right now
            scene_query = scene_query.where(Scene.id == campaign.active_scene_id)
        scenes: List[Scene] = []
        if sees_gm_layer or campaign.active_scene_id is not None:
            scene_rows = await db.execute(scene_query)
            scenes = list(scene_rows.scalars().all())
        maps: List[Map] = []
        if scenes:
            map_rows = await db.execute(
                select(Map).where(Map.scene_id.in_([s.id for s in scenes])).order_by(Map.id)
            )
            maps = list(map_rows.scalars().all())

        tokens_by_map = {m.id: [] for m in maps}
        if maps:
            token_query = select(Token).where(Token.map_id.in_(list(tokens_by_map))).order_by(Token.id)
            if not sees_gm_layer:
                token_query = token_query.where(Token.layer != TokenLayer.GM)
            token_rows = await db.execute(token_query)
            for token in token_rows.scalars().all():
                tokens_by_map[token.map_id].append(token_view(token))

        map_by_scene = {m.scene_id: map_view(m, tokens_by_map[m.id]) for m in maps}

        handout_rows = await db.execute(
            select(CampaignHandout)
            .where(CampaignHandout.campaign_id == campaign_id)
            .order_by(CampaignHandout.created_at.desc(), CampaignHandout.id.desc())
        )

        return {
            "campaign": campaign_view(campaign),
            "role": role,
            "members": members,
            "characters": characters,
            "scenes": [scene_view(s, map_by_scene.get(s.id)) for s in scenes],
            "handouts": [handout_view(h) for h in handout_rows.scalars().all()],
        }

    @classmethod
    async def set_active_scene(cls, campaign_id: int, user_id: int, scene_id: Optional[int],
                               db: AsyncSession) -> Campaign:
        """Mark one scene active (or none, when ``scene_id`` is None)."""
        campaign = await MembershipEngine.get_campaign(campaign_id, db)
        await MembershipEngine.require_member(campaign_id, user_id, MemberRole.EDITOR, db)
        if scene_id is not None:
            await ContentEngine.get_scene(campaign_id, scene_id, db)

        await db.execute(
            update(Scene)
            .where(Scene.campaign_id == campaign_id)
            .values(is_active=(Scene.id == scene_id) if scene_id is not None else False)
            .execution_options(synchronize_session=False)
        )
        campaign.active_scene_id = scene_id
        await db.commit()
        logger.info("Campaign %s active scene set to %s by user %s", campaign_id, scene_id, user_id)
        return campaign
