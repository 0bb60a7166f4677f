from dicewizard.models.user import User
from dicewizard.models.character import Character
from dicewizard.models.campaign import (
    Campaign, CampaignMember, CampaignCharacter, CampaignInvite,
    CampaignVisibility, CampaignStatus, MemberRole, MemberStatus, InviteRole, InviteStatus,
)
from dicewizard.models.content import (
    Scene, Map, Token, CampaignHandout, TokenLayer, DEFAULT_TOKEN_AUDIENCE,
)
from dicewizard.models.note import Note, NoteKind, NoteTarget

__all__ = [
    "User", "Character",
    "Campaign", "CampaignMember", "CampaignCharacter", "CampaignInvite",
    "CampaignVisibility", "CampaignStatus", "MemberRole", "MemberStatus", "InviteRole", "InviteStatus",
    "Scene", "Map", "Token", "CampaignHandout", "TokenLayer", "DEFAULT_TOKEN_AUDIENCE",
    "Note", "NoteKind", "NoteTarget",
]
