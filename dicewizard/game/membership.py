import logging
from typing import List, Optional, Union
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.database import is_unique_violation
from dicewizard.errors import (
    CampaignNotFound, NotCampaignMember, NotPermitted, CharacterNotOwned, CampaignCharacterExists,
    InvalidCampaignStatus, InvalidVisibility, InvalidRole, InvalidMemberTransition, MemberNotFound,
)
from dicewizard.models import (
    User, Character, Campaign, CampaignMember, CampaignCharacter,
    CampaignStatus, CampaignVisibility, MemberRole, MemberStatus,
)
from dicewizard.models.campaign import parse_enum

logger = logging.getLogger(__name__)


def member_view(member: CampaignMember, username: str) -> dict:
    return {
        "id": member.id,
        "campaign_id": member.campaign_id,
        "user_id": member.user_id,
        "username": username,
        "role": member.role,
        "status": member.status,
        "invited_by": member.invited_by,
        "created_at": member.created_at,
    }


class MembershipEngine:
    """Who may do what on a campaign, and the membership rows behind it"""

    @classmethod
    async def get_membership(cls, campaign_id: int, user_id: int, db: AsyncSession) -> Optional[CampaignMember]:
        result = await db.execute(
            select(CampaignMember)
            .where(CampaignMember.campaign_id == campaign_id, CampaignMember.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @classmethod
    async def require_member(cls, campaign_id: int, user_id: int, min_role: MemberRole,
                             db: AsyncSession) -> CampaignMember:
        """Gate for every campaign operation.

        Raises NotCampaignMember when the user holds no accepted membership and
        NotPermitted when the accepted role ranks below ``min_role``.
        """
        member = await cls.get_membership(campaign_id, user_id, db)
        if member is None or member.status != MemberStatus.ACCEPTED:
            raise NotCampaignMember()
        if not MemberRole(member.role).at_least(min_role):
            raise NotPermitted()
        return member

    @classmethod
    async def get_campaign(cls, campaign_id: int, db: AsyncSession) -> Campaign:
        campaign = await db.get(Campaign, campaign_id, populate_existing=True)
        if campaign is None:
            raise CampaignNotFound()
        return campaign

    @classmethod
    async def create_campaign_with_owner(cls, owner_id: int, name: str, db: AsyncSession,
                                         description: str = "",
                                         visibility: Union[CampaignVisibility, str, None] = None,
                                         status: Union[CampaignStatus, str, None] = None) -> Campaign:
        """Insert the campaign and its accepted owner membership in one transaction"""
        visibility = parse_enum(CampaignVisibility, visibility or CampaignVisibility.PRIVATE, InvalidVisibility)
        status = parse_enum(CampaignStatus, status or CampaignStatus.NOT_STARTED, InvalidCampaignStatus)

        campaign = Campaign(
            owner_id=owner_id,
            name=name.strip(),
            description=description or "",
            visibility=visibility,
            status=status,
        )
        db.add(campaign)
        try:
            await db.flush()
            db.add(CampaignMember(
                campaign_id=campaign.id,
                user_id=owner_id,
                role=MemberRole.OWNER,
                status=MemberStatus.ACCEPTED,
            ))
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Campaign %s created by user %s", campaign.id, owner_id)
        return campaign

    @classmethod
    async def update_campaign(cls, campaign_id: int, user_id: int, db: AsyncSession,
                              name: Optional[str] = None, description: Optional[str] = None,
                              visibility: Union[CampaignVisibility, str, None] = None,
                              status: Union[CampaignStatus, str, None] = None) -> Campaign:
        if visibility:
            visibility = parse_enum(CampaignVisibility, visibility, InvalidVisibility)
        if status:
            status = parse_enum(CampaignStatus, status, InvalidCampaignStatus)

        campaign = await cls.get_campaign(campaign_id, db)
        await cls.require_member(campaign_id, user_id, MemberRole.EDITOR, db)

        if name and name.strip():
            campaign.name = name.strip()
        if description:
            campaign.description = description
        if visibility:
            campaign.visibility = visibility
        if status:
            campaign.status = status
        await db.commit()
        return campaign

    @classmethod
    async def update_campaign_status(cls, campaign_id: int, user_id: int,
                                     new_status: Union[CampaignStatus, str], db: AsyncSession) -> Campaign:
        status = parse_enum(CampaignStatus, new_status, InvalidCampaignStatus)
        campaign = await cls.get_campaign(campaign_id, db)
        await cls.require_member(campaign_id, user_id, MemberRole.EDITOR, db)

        previous = CampaignStatus(campaign.status)
        campaign.status = status
        await db.commit()
        logger.info("Campaign %s status %s -> %s by user %s", campaign_id, previous.value, status.value, user_id)
        return campaign

    @classmethod
    async def add_character_to_campaign(cls, campaign_id: int, user_id: int, character_id: int,
                                        db: AsyncSession) -> CampaignCharacter:
        await cls.get_campaign(campaign_id, db)
        await cls.require_member(campaign_id, user_id, MemberRole.EDITOR, db)

        character = await db.get(Character, character_id)
        if character is None or character.user_id != user_id:
            raise CharacterNotOwned()

        existing = await db.execute(
            select(CampaignCharacter.id).where(
                CampaignCharacter.campaign_id == campaign_id,
                CampaignCharacter.character_id == character_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise CampaignCharacterExists()

        link = CampaignCharacter(campaign_id=campaign_id, character_id=character_id)
        db.add(link)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if is_unique_violation(e):
                raise CampaignCharacterExists()
            raise

        logger.info("Character %s attached to campaign %s by user %s", character_id, campaign_id, user_id)
        return link

    @classmethod
    async def list_members(cls, campaign_id: int, user_id: int, db: AsyncSession) -> List[dict]:
        await cls.get_campaign(campaign_id, db)
        await cls.require_member(campaign_id, user_id, MemberRole.VIEWER, db)

        result = await db.execute(
            select(CampaignMember, User.username)
            .join(User, User.id == CampaignMember.user_id)
            .where(CampaignMember.campaign_id == campaign_id)
            .order_by(CampaignMember.id)
        )
        return [member_view(member, username) for member, username in result.all()]

    @classmethod
    async def update_member_role(cls, campaign_id: int, acting_user_id: int, target_user_id: int,
                                 role: Union[MemberRole, str], db: AsyncSession) -> CampaignMember:
        """Change a member's role between editor and viewer.

        Ownership is never granted this way and the owner's own membership
        can never be changed.
        """
        new_role = parse_enum(MemberRole, role, InvalidRole)
        if new_role is MemberRole.OWNER:
            raise InvalidRole("ownership cannot be granted")

        await cls.get_campaign(campaign_id, db)
        await cls.require_member(campaign_id, acting_user_id, MemberRole.EDITOR, db)

        target = await cls.get_membership(campaign_id, target_user_id, db)
        if target is None:
            raise MemberNotFound()
        if target.role == MemberRole.OWNER:
            raise NotPermitted("the campaign owner's role cannot be changed")

        previous = target.role
        target.role = new_role
        await db.commit()
        logger.info("Campaign %s member %s role %s -> %s by user %s",
                    campaign_id, target_user_id, MemberRole(previous).value, new_role.value, acting_user_id)
        return target

    @classmethod
    async def revoke_member(cls, campaign_id: int, acting_user_id: int, target_user_id: int,
                            db: AsyncSession) -> CampaignMember:
        await cls.get_campaign(campaign_id, db)
        await cls.require_member(campaign_id, acting_user_id, MemberRole.OWNER, db)

        target = await cls.get_membership(campaign_id, target_user_id, db)
        if target is None:
            raise MemberNotFound()
        if target.role == MemberRole.OWNER:
            raise NotPermitted("the campaign owner cannot be revoked")

        current_status = MemberStatus(target.status)
        result = await db.execute(
            update(CampaignMember)
            .where(CampaignMember.id == target.id, CampaignMember.status == MemberStatus.ACCEPTED)
            .values(status=MemberStatus.REVOKED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise InvalidMemberTransition(
                current_status=current_status.value,
                target_status=MemberStatus.REVOKED.value,
            )
        await db.commit()
        await db.refresh(target)
        logger.info("Campaign %s member %s revoked by user %s", campaign_id, target_user_id, acting_user_id)
        return target
