import logging
from typing import List, Optional, Sequence, Tuple, Union
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.database import is_unique_violation
from dicewizard.errors import (
    SceneNotFound, CampaignMapNotFound, TokenNotFound, CharacterNotFound, SceneMapExists, InvalidLayer,
)
from dicewizard.game.membership import MembershipEngine
from dicewizard.models import (
    Character, Scene, Map, Token, CampaignHandout, MemberRole, TokenLayer, DEFAULT_TOKEN_AUDIENCE,
)
from dicewizard.models.campaign import parse_enum

logger = logging.getLogger(__name__)

DEFAULT_SCENE_NAME = "Table"
DEFAULT_HANDOUT_TITLE = "Handout"


class ContentEngine:
    """Scenes, maps, tokens and handouts hanging off a campaign.

    Every write needs an accepted editor or owner; reads need any accepted
    membership.
    """

    # ============ scenes ============
    @classmethod
    async def create_scene(cls, campaign_id: int, user_id: int, name: str, db: AsyncSession,
                           description: str = "", ordering: Optional[int] = None) -> Scene:
        await MembershipEngine.get_campaign(campaign_id, db)
        await MembershipEngine.require_member(campaign_id, user_id, MemberRole.EDITOR, db)

        if ordering is None:
            result = await db.execute(
                select(func.max(Scene.ordering)).where(Scene.campaign_id == campaign_id)
            )
            highest = result.scalar()
            ordering = 0 if highest is None else highest + 1

        scene = Scene(
            campaign_id=campaign_id,
            name=name.strip() or DEFAULT_SCENE_NAME,
            description=description or "",
            ordering=ordering,
            created_by=user_id,
        )
        db.add(scene)
        await db.commit()
        logger.info("Scene %s created in campaign %s by user %s", scene.id, campaign_id, user_id)
        return scene

    @classmethod
    async def get_scene(cls, campaign_id: int, scene_id: int, db: AsyncSession) -> Scene:
        scene = await db.get(Scene, scene_id)
        if scene is None or scene.campaign_id != campaign_id:
            raise SceneNotFound()
        return scene

    @classmethod
    async def _ensure_default_scene(cls, campaign_id: int, user_id: int, db: AsyncSession) -> Scene:
        result = await db.execute(
            select(Scene)
            .where(Scene.campaign_id == campaign_id)
            .order_by(Scene.ordering, Scene.id)
            .limit(1)
        )
        scene = result.scalar_one_or_none()
        if scene is not None:
            return scene
        scene = Scene(
            campaign_id=campaign_id,
            name=DEFAULT_SCENE_NAME,
            description="",
            ordering=0,
            is_active=True,
            created_by=user_id,
        )
        db.add(scene)
        await db.flush()
        return scene

    # ============ maps ============
    @classmethod
    async def create_map(cls, campaign_id: int, user_id: int, name: str, db: AsyncSession,
                         base_image_url: str = "", scene_id: Optional[int] = None) -> Map:
        """Put a map on a scene; without ``scene_id`` the campaign's first scene is used."""
        campaign = await MembershipEngine.get_campaign(campaign_id, db)
        await MembershipEngine.require_member(campaign_id, user_id, MemberRole.EDITOR, db)

        if scene_id is None:
            scene = await cls._ensure_default_scene(campaign_id, user_id, db)
            if scene.is_active and campaign.active_scene_id is None:
                campaign.active_scene_id = scene.id
        else:
            scene = await cls.get_scene(campaign_id, scene_id, db)

        existing = await db.execute(select(Map.id).where(Map.scene_id == scene.id))
        if existing.scalar_one_or_none() is not None:
            await db.rollback()
            raise SceneMapExists()

        campaign_map = Map(scene_id=scene.id, name=name.strip(), base_image_url=base_image_url or "")
        db.add(campaign_map)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if is_unique_violation(e):
                raise SceneMapExists()
            raise
        logger.info("Map %s created on scene %s of campaign %s", campaign_map.id, campaign_map.scene_id, campaign_id)
        return campaign_map

    @classmethod
    async def _campaign_for_map(cls, map_id: int, db: AsyncSession) -> int:
        result = await db.execute(
            select(Scene.campaign_id).join(Map, Map.scene_id == Scene.id).where(Map.id == map_id)
        )
        campaign_id = result.scalar_one_or_none()
        if campaign_id is None:
            raise CampaignMapNotFound()
        return campaign_id

    # ============ tokens ============
    @classmethod
    async def create_token(cls, map_id: int, user_id: int, label: str, db: AsyncSession,
                           character_id: Optional[int] = None, image_url: str = "",
                           size_squares: int = 1, position_x: int = 0, position_y: int = 0,
                           facing_deg: int = 0, audience: Optional[Sequence[str]] = None,
                           tags: Optional[Sequence[str]] = None, notes: str = "",
                           layer: Union[TokenLayer, str, None] = None) -> Token:
        layer = parse_enum(TokenLayer, layer or TokenLayer.TOKEN, InvalidLayer)
        campaign_id = await cls._campaign_for_map(map_id, db)
        await MembershipEngine.require_member(campaign_id, user_id, MemberRole.EDITOR, db)

        if character_id is not None and await db.get(Character, character_id) is None:
            raise CharacterNotFound()

        token = Token(
            map_id=map_id,
            character_id=character_id,
            label=label.strip(),
            image_url=image_url or "",
            size_squares=size_squares if size_squares and size_squares > 0 else 1,
            position_x=position_x,
            position_y=position_y,
            facing_deg=facing_deg,
            audience=list(audience) if audience else list(DEFAULT_TOKEN_AUDIENCE),
            tags=list(tags or []),
            notes=notes or "",
            layer=layer,
            created_by=user_id,
        )
        db.add(token)
        await db.commit()
        logger.info("Token %s placed on map %s (layer %s)", token.id, map_id, layer.value)
        return token

    @classmethod
    async def _token_for_edit(cls, token_id: int, user_id: int, db: AsyncSession) -> Tuple[Token, int]:
        result = await db.execute(
            select(Token, Scene.campaign_id)
            .join(Map, Map.id == Token.map_id)
            .join(Scene, Scene.id == Map.scene_id)
            .where(Token.id == token_id)
            .execution_options(populate_existing=True)
        )
        row = result.one_or_none()
        if row is None:
            raise TokenNotFound()
        token, campaign_id = row
        await MembershipEngine.require_member(campaign_id, user_id, MemberRole.EDITOR, db)
        return token, campaign_id

    @classmethod
    async def move_token(cls, token_id: int, user_id: int, position_x: int, position_y: int,
                         db: AsyncSession) -> Token:
        token, _ = await cls._token_for_edit(token_id, user_id, db)
        token.position_x = position_x
        token.position_y = position_y
        await db.commit()
        return token

    @classmethod
    async def set_token_layer(cls, token_id: int, user_id: int, layer: Union[TokenLayer, str],
                              db: AsyncSession) -> Token:
        layer = parse_enum(TokenLayer, layer, InvalidLayer)
        token, campaign_id = await cls._token_for_edit(token_id, user_id, db)
        token.layer = layer
        await db.commit()
        logger.info("Token %s in campaign %s moved to layer %s", token_id, campaign_id, layer.value)
        return token

    # ============ handouts ============
    @classmethod
    async def create_handout(cls, campaign_id: int, user_id: int, db: AsyncSession, title: str = "",
                             description: str = "", file_url: str = "") -> CampaignHandout:
        await MembershipEngine.get_campaign(campaign_id, db)
        await MembershipEngine.require_member(campaign_id, user_id, MemberRole.EDITOR, db)

        handout = CampaignHandout(
            campaign_id=campaign_id,
            title=(title or "").strip() or DEFAULT_HANDOUT_TITLE,
            description=description or "",
            file_url=file_url or "",
            created_by=user_id,
        )
        db.add(handout)
        await db.commit()
        return handout

    @classmethod
    async def list_handouts(cls, campaign_id: int, user_id: int, db: AsyncSession) -> List[CampaignHandout]:
        await MembershipEngine.get_campaign(campaign_id, db)
        await MembershipEngine.require_member(campaign_id, user_id, MemberRole.VIEWER, db)

        result = await db.execute(
            select(CampaignHandout)
            .where(CampaignHandout.campaign_id == campaign_id)
            .order_by(CampaignHandout.created_at.desc(), CampaignHandout.id.desc())
        )
        return list(result.scalars().all())
