"""
Tests for scenes, maps, tokens and handouts
"""
import pytest

from dicewizard.errors import (
    SceneMapExists, SceneNotFound, CampaignMapNotFound, CharacterNotFound, InvalidLayer, NotPermitted,
    TokenNotFound,
)
from dicewizard.game.content import ContentEngine, DEFAULT_SCENE_NAME, DEFAULT_HANDOUT_TITLE
from dicewizard.game.invites import InviteEngine
from dicewizard.game.membership import MembershipEngine
from dicewizard.models import TokenLayer, DEFAULT_TOKEN_AUDIENCE


class TestScenesAndMaps:
    """Scene ordering and the one-map-per-scene rule"""

    @pytest.mark.asyncio
    async def test_map_without_scene_creates_default_table(self, call, users):
        campaign = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Descent into Avernus")

        campaign_map = await call(ContentEngine.create_map, campaign.id, users.owner, "Elturel")
        scene = await call(ContentEngine.get_scene, campaign.id, campaign_map.scene_id)

        assert scene.name == DEFAULT_SCENE_NAME
        assert scene.ordering == 0
        assert scene.is_active is True
        reloaded = await call(MembershipEngine.get_campaign, campaign.id)
        assert reloaded.active_scene_id == scene.id

    @pytest.mark.asyncio
    async def test_second_map_on_scene_rejected(self, call, users):
        campaign = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Descent into Avernus")
        scene = await call(ContentEngine.create_scene, campaign.id, users.owner, "Gate")
        await call(ContentEngine.create_map, campaign.id, users.owner, "Gate map", scene_id=scene.id)

        with pytest.raises(SceneMapExists):
            await call(ContentEngine.create_map, campaign.id, users.owner, "Another", scene_id=scene.id)

    @pytest.mark.asyncio
    async def test_scene_ordering_appends(self, call, users):
        campaign = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Descent into Avernus")
        first = await call(ContentEngine.create_scene, campaign.id, users.owner, "Candlekeep")
        second = await call(ContentEngine.create_scene, campaign.id, users.owner, "  ")

        assert first.ordering == 0
        assert second.ordering == 1
        assert second.name == DEFAULT_SCENE_NAME

    @pytest.mark.asyncio
    async def test_scene_from_other_campaign(self, call, users):
        mine = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Mine")
        theirs = await call(MembershipEngine.create_campaign_with_owner, users.alice, "Theirs")
        scene = await call(ContentEngine.create_scene, theirs.id, users.alice, "Hidden")

        with pytest.raises(SceneNotFound):
            await call(ContentEngine.create_map, mine.id, users.owner, "Map", scene_id=scene.id)


class TestTokens:
    """Token placement, movement and layers"""

    @pytest.mark.asyncio
    async def test_token_defaults(self, call, users):
        campaign = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Icewind Dale")
        campaign_map = await call(ContentEngine.create_map, campaign.id, users.owner, "Bryn Shander")

        token = await call(ContentEngine.create_token, campaign_map.id, users.owner, " Goblin ", size_squares=0)

        assert token.label == "Goblin"
        assert token.size_squares == 1
        assert token.layer == TokenLayer.TOKEN
        assert token.audience == DEFAULT_TOKEN_AUDIENCE
        assert token.tags == []

    @pytest.mark.asyncio
    async def test_unknown_layer_rejected(self, call, users):
        campaign = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Icewind Dale")
        campaign_map = await call(ContentEngine.create_map, campaign.id, users.owner, "Bryn Shander")

        with pytest.raises(InvalidLayer):
            await call(ContentEngine.create_token, campaign_map.id, users.owner, "Yeti", layer="sky")

    @pytest.mark.asyncio
    async def test_missing_map_or_character(self, call, users):
        with pytest.raises(CampaignMapNotFound):
            await call(ContentEngine.create_token, 404, users.owner, "Ghost")

        campaign = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Icewind Dale")
        campaign_map = await call(ContentEngine.create_map, campaign.id, users.owner, "Bryn Shander")
        with pytest.raises(CharacterNotFound):
            await call(ContentEngine.create_token, campaign_map.id, users.owner, "Ghost", character_id=404)

    @pytest.mark.asyncio
    async def test_move_and_relayer(self, call, users):
        campaign = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Icewind Dale")
        campaign_map = await call(ContentEngine.create_map, campaign.id, users.owner, "Bryn Shander")
        token = await call(ContentEngine.create_token, campaign_map.id, users.owner, "Chardalyn")

        moved = await call(ContentEngine.move_token, token.id, users.owner, 4, 7)
        assert (moved.position_x, moved.position_y) == (4, 7)

        hidden = await call(ContentEngine.set_token_layer, token.id, users.owner, "gm")
        assert hidden.layer == TokenLayer.GM

        with pytest.raises(TokenNotFound):
            await call(ContentEngine.move_token, 404, users.owner, 0, 0)

    @pytest.mark.asyncio
    async def test_viewer_cannot_place_tokens(self, call, users):
        campaign = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Icewind Dale")
        campaign_map = await call(ContentEngine.create_map, campaign.id, users.owner, "Bryn Shander")
        invite = await call(InviteEngine.create_invite, campaign.id, users.owner)
        await call(InviteEngine.redeem_invite, invite.code, users.alice)

        with pytest.raises(NotPermitted):
            await call(ContentEngine.create_token, campaign_map.id, users.alice, "Sneaky")


class TestHandouts:
    """Campaign handouts"""

    @pytest.mark.asyncio
    async def test_blank_title_defaults(self, call, users):
        campaign = await call(MembershipEngine.create_campaign_with_owner, users.owner, "Saltmarsh")

        handout = await call(ContentEngine.create_handout, campaign.id, users.owner, title="  ",
                             file_url="https://example.test/letter.png")
        assert handout.title == DEFAULT_HANDOUT_TITLE

        listed = await call(ContentEngine.list_handouts, campaign.id, users.owner)
        assert [h.id for h in listed] == [handout.id]
