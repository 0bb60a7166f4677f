"""
Tests for the invite lifecycle: issue, redeem, revoke
"""
import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import func, select

import dicewizard.game.invites as invites_module
from dicewizard.database import utcnow, as_utc
from dicewizard.errors import (
    NotPermitted, InviteNotFound, InviteExpired, InviteRedeemed, InviteRevoked, InviteAlreadyRevoked,
    InviteCodeUnavailable, AlreadyMember, InvalidRole,
)
from dicewizard.game.invites import InviteEngine, InviteState, CODE_ALPHABET, CODE_LENGTH
from dicewizard.game.membership import MembershipEngine
from dicewizard.models import CampaignMember, InviteRole, InviteStatus, MemberRole, MemberStatus


@pytest.fixture
def campaign(call, users):
    async def _campaign():
        return await call(MembershipEngine.create_campaign_with_owner, users.owner, "Storm King's Thunder")
    return _campaign


class TestCreateInvite:
    """Issuing invite codes"""

    @pytest.mark.asyncio
    async def test_code_shape_and_expiry(self, call, users, campaign):
        camp = await campaign()
        now = utcnow()

        invite = await call(InviteEngine.create_invite, camp.id, users.owner, ttl=timedelta(days=3), now=now)

        assert len(invite.code) == CODE_LENGTH
        assert set(invite.code) <= set(CODE_ALPHABET)
        assert invite.role_default == InviteRole.VIEWER
        assert invite.status == InviteStatus.ACTIVE
        assert as_utc(invite.expires_at) == now + timedelta(days=3)

    @pytest.mark.asyncio
    async def test_non_positive_ttl_uses_default(self, call, users, campaign):
        camp = await campaign()
        now = utcnow()

        invite = await call(InviteEngine.create_invite, camp.id, users.owner, ttl=timedelta(0), now=now,
                            default_ttl=timedelta(days=7))
        assert as_utc(invite.expires_at) == now + timedelta(days=7)

    @pytest.mark.asyncio
    async def test_owner_role_never_granted(self, call, users, campaign):
        camp = await campaign()
        with pytest.raises(InvalidRole):
            await call(InviteEngine.create_invite, camp.id, users.owner, role_default="owner")

    @pytest.mark.asyncio
    async def test_viewer_cannot_issue(self, call, users, campaign):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner)
        await call(InviteEngine.redeem_invite, invite.code, users.alice)

        with pytest.raises(NotPermitted):
            await call(InviteEngine.create_invite, camp.id, users.alice)

    @pytest.mark.asyncio
    async def test_code_collision_is_retried(self, call, users, campaign, monkeypatch):
        camp = await campaign()
        first = await call(InviteEngine.create_invite, camp.id, users.owner)
        codes = iter([first.code, first.code, "FRESH234"])
        monkeypatch.setattr(invites_module, "generate_code", lambda length=CODE_LENGTH: next(codes))

        second = await call(InviteEngine.create_invite, camp.id, users.owner)
        assert second.code == "FRESH234"

    @pytest.mark.asyncio
    async def test_persistent_collisions_give_up(self, call, users, campaign, monkeypatch):
        camp = await campaign()
        first = await call(InviteEngine.create_invite, camp.id, users.owner)
        monkeypatch.setattr(invites_module, "generate_code", lambda length=CODE_LENGTH: first.code)

        with pytest.raises(InviteCodeUnavailable):
            await call(InviteEngine.create_invite, camp.id, users.owner)


class TestRedeemInvite:
    """Redeeming codes into memberships"""

    @pytest.mark.asyncio
    async def test_unknown_code(self, call, users):
        with pytest.raises(InviteNotFound):
            await call(InviteEngine.redeem_invite, "NOPE2345", users.alice)

    @pytest.mark.asyncio
    async def test_redeem_creates_membership(self, call, users, campaign):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner, role_default="editor")

        redeemed_into = await call(InviteEngine.redeem_invite, invite.code.lower(), users.alice)
        assert redeemed_into.id == camp.id

        member = await call(MembershipEngine.get_membership, camp.id, users.alice)
        assert member.role == MemberRole.EDITOR
        assert member.status == MemberStatus.ACCEPTED
        assert member.invited_by == users.owner

    @pytest.mark.asyncio
    async def test_expired_editor_invite_changes_nothing(self, call, users, campaign, database):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner, role_default="editor",
                            ttl=timedelta(days=7))

        with pytest.raises(InviteExpired) as exc:
            await call(InviteEngine.redeem_invite, invite.code, users.alice, now=utcnow() + timedelta(days=8))
        assert exc.value.kind == "Expired"

        assert await call(MembershipEngine.get_membership, camp.id, users.alice) is None
        listed = await call(InviteEngine.list_invites, camp.id, users.owner, now=utcnow() + timedelta(days=8))
        assert listed[0]["state"] == InviteState.EXPIRED
        assert listed[0]["redeemed_at"] is None

    @pytest.mark.asyncio
    async def test_second_redeem_is_rejected(self, call, users, campaign):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner)
        await call(InviteEngine.redeem_invite, invite.code, users.alice)

        with pytest.raises(InviteRedeemed):
            await call(InviteEngine.redeem_invite, invite.code, users.bob)

    @pytest.mark.asyncio
    async def test_existing_member_rejected(self, call, users, campaign):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner)

        with pytest.raises(AlreadyMember):
            await call(InviteEngine.redeem_invite, invite.code, users.owner)

        listed = await call(InviteEngine.list_invites, camp.id, users.owner)
        assert listed[0]["state"] == InviteState.ACTIVE

    @pytest.mark.asyncio
    async def test_concurrent_redemption_has_one_winner(self, call, users, campaign, database):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner)

        results = await asyncio.gather(
            call(InviteEngine.redeem_invite, invite.code, users.alice),
            call(InviteEngine.redeem_invite, invite.code, users.bob),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InviteRedeemed)
        assert failures[0].kind == "AlreadyRedeemed"

        async with database.session() as session:
            joined = await session.scalar(
                select(func.count()).select_from(CampaignMember).where(
                    CampaignMember.campaign_id == camp.id,
                    CampaignMember.role != MemberRole.OWNER,
                )
            )
        assert joined == 1

    @pytest.mark.asyncio
    async def test_same_user_racing_twice(self, call, users, campaign, database):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner)

        results = await asyncio.gather(
            call(InviteEngine.redeem_invite, invite.code, users.alice),
            call(InviteEngine.redeem_invite, invite.code, users.alice),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], (InviteRedeemed, AlreadyMember))
        async with database.session() as session:
            rows = await session.scalar(
                select(func.count()).select_from(CampaignMember).where(CampaignMember.user_id == users.alice)
            )
        assert rows == 1

    @pytest.mark.asyncio
    async def test_revoked_member_rejoins_with_new_invite(self, call, users, campaign):
        camp = await campaign()
        first = await call(InviteEngine.create_invite, camp.id, users.owner)
        await call(InviteEngine.redeem_invite, first.code, users.alice)
        await call(MembershipEngine.revoke_member, camp.id, users.owner, users.alice)

        second = await call(InviteEngine.create_invite, camp.id, users.owner, role_default="editor")
        await call(InviteEngine.redeem_invite, second.code, users.alice)

        member = await call(MembershipEngine.get_membership, camp.id, users.alice)
        assert member.status == MemberStatus.ACCEPTED
        assert member.role == MemberRole.EDITOR
        assert member.invited_by == users.owner


class TestRevokeInvite:
    """Revoking invite codes"""

    @pytest.mark.asyncio
    async def test_revoke_twice_reports_already_revoked(self, call, users, campaign):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner)

        revoked = await call(InviteEngine.revoke_invite, invite.id, users.owner)
        assert revoked.status == InviteStatus.REVOKED

        with pytest.raises(InviteAlreadyRevoked) as exc:
            await call(InviteEngine.revoke_invite, invite.id, users.owner)
        assert exc.value.invite.status == InviteStatus.REVOKED
        assert exc.value.invite.redeemed_at is None

        listed = await call(InviteEngine.list_invites, camp.id, users.owner)
        assert [i["state"] for i in listed] == [InviteState.REVOKED]

    @pytest.mark.asyncio
    async def test_revoked_code_cannot_be_redeemed(self, call, users, campaign):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner)
        await call(InviteEngine.revoke_invite, invite.id, users.owner)

        with pytest.raises(InviteRevoked):
            await call(InviteEngine.redeem_invite, invite.code, users.alice)

    @pytest.mark.asyncio
    async def test_redeemed_invite_cannot_be_revoked(self, call, users, campaign):
        camp = await campaign()
        invite = await call(InviteEngine.create_invite, camp.id, users.owner)
        await call(InviteEngine.redeem_invite, invite.code, users.alice)

        with pytest.raises(InviteRedeemed):
            await call(InviteEngine.revoke_invite, invite.id, users.owner)

    @pytest.mark.asyncio
    async def test_listing_is_newest_first(self, call, users, campaign):
        camp = await campaign()
        older = await call(InviteEngine.create_invite, camp.id, users.owner)
        newer = await call(InviteEngine.create_invite, camp.id, users.owner)

        listed = await call(InviteEngine.list_invites, camp.id, users.owner)
        assert [i["id"] for i in listed] == [newer.id, older.id]
