import enum
import logging
import secrets
from datetime import datetime, timedelta
from typing import List, Optional, Union
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.database import utcnow, as_utc, is_unique_violation
from dicewizard.errors import (
    InviteNotFound, InviteExpired, InviteRedeemed, InviteRevoked, InviteAlreadyRevoked,
    InviteCodeUnavailable, AlreadyMember, InvalidRole,
)
from dicewizard.game.membership import MembershipEngine
from dicewizard.models import (
    Campaign, CampaignInvite, CampaignMember, InviteRole, InviteStatus, MemberRole, MemberStatus,
)
from dicewizard.models.campaign import parse_enum

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"  # no 0/O or 1/I
CODE_LENGTH = 8
CODE_ATTEMPTS = 5
DEFAULT_INVITE_TTL = timedelta(days=7)


class InviteState(str, enum.Enum):
    ACTIVE = "active"
    REDEEMED = "redeemed"
    REVOKED = "revoked"
    EXPIRED = "expired"


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def mask_code(code: str) -> str:
    return f"{code[:3]}*****"


def invite_state(invite: CampaignInvite, now: datetime) -> InviteState:
    if invite.redeemed_at is not None:
        return InviteState.REDEEMED
    if invite.status == InviteStatus.REVOKED:
        return InviteState.REVOKED
    if as_utc(invite.expires_at) <= now:
        return InviteState.EXPIRED
    return InviteState.ACTIVE


def invite_view(invite: CampaignInvite, now: datetime) -> dict:
    return {
        "id": invite.id,
        "campaign_id": invite.campaign_id,
        "code": invite.code,
        "invited_by": invite.invited_by,
        "role_default": invite.role_default,
        "status": invite.status,
        "state": invite_state(invite, now),
        "expires_at": as_utc(invite.expires_at),
        "redeemed_by": invite.redeemed_by,
        "redeemed_at": as_utc(invite.redeemed_at),
        "created_at": as_utc(invite.created_at),
    }


class InviteEngine:
    """Issue, redeem and revoke single-use campaign invite codes.

    Lifecycle per invite::

        active --redeem (before expiry)--> redeemed
        active --revoke-->                 revoked

    ``redeemed`` is never stored as a status; it is the invite having a
    ``redeemed_at`` timestamp. Both terminal states are final.
    """

    @classmethod
    async def create_invite(cls, campaign_id: int, issuer_id: int, db: AsyncSession,
                            role_default: Union[InviteRole, str, None] = None,
                            ttl: Optional[timedelta] = None,
                            now: Optional[datetime] = None,
                            default_ttl: timedelta = DEFAULT_INVITE_TTL) -> CampaignInvite:
        role = parse_enum(InviteRole, role_default or InviteRole.VIEWER, InvalidRole)
        now = now or utcnow()
        if ttl is None or ttl <= timedelta(0):
            ttl = default_ttl

        await MembershipEngine.get_campaign(campaign_id, db)
        await MembershipEngine.require_member(campaign_id, issuer_id, MemberRole.EDITOR, db)

        for attempt in range(1, CODE_ATTEMPTS + 1):
            invite = CampaignInvite(
                campaign_id=campaign_id,
                code=generate_code(),
                invited_by=issuer_id,
                role_default=role,
                status=InviteStatus.ACTIVE,
                expires_at=now + ttl,
            )
            db.add(invite)
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                if not is_unique_violation(e):
                    raise
                logger.info("Invite code collision on attempt %d for campaign %s", attempt, campaign_id)
                continue
            logger.info("Invite %s (%s) issued for campaign %s by user %s, role %s",
                        invite.id, mask_code(invite.code), campaign_id, issuer_id, role.value)
            return invite

        raise InviteCodeUnavailable()

    @classmethod
    async def list_invites(cls, campaign_id: int, user_id: int, db: AsyncSession,
                           now: Optional[datetime] = None) -> List[dict]:
        now = now or utcnow()
        await MembershipEngine.get_campaign(campaign_id, db)
        await MembershipEngine.require_member(campaign_id, user_id, MemberRole.EDITOR, db)

        result = await db.execute(
            select(CampaignInvite)
            .where(CampaignInvite.campaign_id == campaign_id)
            .order_by(CampaignInvite.created_at.desc(), CampaignInvite.id.desc())
        )
        return [invite_view(invite, now) for invite in result.scalars().all()]

    @classmethod
    async def redeem_invite(cls, code: str, user_id: int, db: AsyncSession,
                            now: Optional[datetime] = None) -> Campaign:
        """Turn an invite code into an accepted membership.

        Checks run in order: the invite exists, has not been redeemed or
        revoked, has not expired, and the user is not already an accepted
        member. Claiming the invite and writing the membership commit
        together; a concurrent redeemer that loses the claim gets
        InviteRedeemed.
        """
        now = now or utcnow()
        result = await db.execute(
            select(CampaignInvite)
            .where(CampaignInvite.code == code.strip().upper())
            .execution_options(populate_existing=True)
        )
        invite = result.scalar_one_or_none()
        if invite is None:
            raise InviteNotFound()
        if invite.redeemed_at is not None:
            raise InviteRedeemed()
        if invite.status == InviteStatus.REVOKED:
            raise InviteRevoked()
        if as_utc(invite.expires_at) <= now:
            raise InviteExpired()

        invite_id, campaign_id = invite.id, invite.campaign_id
        member = await MembershipEngine.get_membership(campaign_id, user_id, db)
        if member is not None and member.status == MemberStatus.ACCEPTED:
            raise AlreadyMember()

        claimed = await db.execute(
            update(CampaignInvite)
            .where(
                CampaignInvite.id == invite_id,
                CampaignInvite.status == InviteStatus.ACTIVE,
                CampaignInvite.redeemed_at.is_(None),
            )
            .values(redeemed_by=user_id, redeemed_at=now)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            await db.rollback()
            current = await db.get(CampaignInvite, invite_id, populate_existing=True)
            if current is not None and current.redeemed_at is None and current.status == InviteStatus.REVOKED:
                raise InviteRevoked()
            raise InviteRedeemed()

        role = InviteRole(invite.role_default).as_member_role()
        if member is None:
            db.add(CampaignMember(
                campaign_id=campaign_id,
                user_id=user_id,
                role=role,
                status=MemberStatus.ACCEPTED,
                invited_by=invite.invited_by,
            ))
        else:
            restored = await db.execute(
                update(CampaignMember)
                .where(CampaignMember.id == member.id, CampaignMember.status != MemberStatus.ACCEPTED)
                .values(
                    role=role,
                    status=MemberStatus.ACCEPTED,
                    invited_by=func.coalesce(CampaignMember.invited_by, invite.invited_by),
                )
                .execution_options(synchronize_session=False)
            )
            if restored.rowcount != 1:
                await db.rollback()
                raise AlreadyMember()

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if is_unique_violation(e):
                raise AlreadyMember()
            raise

        logger.info("Invite %s (%s) redeemed by user %s into campaign %s as %s",
                    invite_id, mask_code(invite.code), user_id, campaign_id, role.value)
        return await MembershipEngine.get_campaign(campaign_id, db)

    @classmethod
    async def revoke_invite(cls, invite_id: int, acting_user_id: int, db: AsyncSession) -> CampaignInvite:
        invite = await db.get(CampaignInvite, invite_id, populate_existing=True)
        if invite is None:
            raise InviteNotFound()
        await MembershipEngine.require_member(invite.campaign_id, acting_user_id, MemberRole.EDITOR, db)

        if invite.redeemed_at is not None:
            raise InviteRedeemed()
        if invite.status == InviteStatus.REVOKED:
            raise InviteAlreadyRevoked(invite=invite)

        result = await db.execute(
            update(CampaignInvite)
            .where(
                CampaignInvite.id == invite.id,
                CampaignInvite.status == InviteStatus.ACTIVE,
                CampaignInvite.redeemed_at.is_(None),
            )
            .values(status=InviteStatus.REVOKED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            current = await db.get(CampaignInvite, invite_id, populate_existing=True)
            if current is not None and current.redeemed_at is not None:
                raise InviteRedeemed()
            raise InviteAlreadyRevoked(invite=current)

        await db.commit()
        await db.refresh(invite)
        logger.info("Invite %s (%s) revoked by user %s", invite.id, mask_code(invite.code), acting_user_id)
        return invite
