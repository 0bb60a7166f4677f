from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, model_validator
from dicewizard.models import (
    CampaignStatus, CampaignVisibility, MemberRole, MemberStatus, InviteRole, InviteStatus, TokenLayer, NoteKind,
)
from dicewizard.game.invites import InviteState

# ============ auth ============
class UserRegister(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=6)

class UserLogin(BaseModel):
    username: str
    password: str

class UserResponse(BaseModel):
    id: int
    username: str
    created_at: datetime

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    token: str
    user: UserResponse

# ============ characters ============
class CharacterFields(BaseModel):
    name: Optional[str] = None
    race: Optional[str] = None
    char_class: Optional[str] = None
    level: Optional[int] = Field(default=None, ge=1, le=20)
    background: Optional[str] = None
    alignment: Optional[str] = None
    experience_points: Optional[int] = Field(default=None, ge=0)
    strength: Optional[int] = Field(default=None, ge=1, le=30)
    dexterity: Optional[int] = Field(default=None, ge=1, le=30)
    constitution: Optional[int] = Field(default=None, ge=1, le=30)
    intelligence: Optional[int] = Field(default=None, ge=1, le=30)
    wisdom: Optional[int] = Field(default=None, ge=1, le=30)
    charisma: Optional[int] = Field(default=None, ge=1, le=30)
    max_hp: Optional[int] = None
    current_hp: Optional[int] = None
    temp_hp: Optional[int] = None
    armor_class: Optional[int] = None
    speed: Optional[int] = None
    hit_dice: Optional[str] = None
    skill_proficiencies: Optional[List[str]] = None
    saving_throw_proficiencies: Optional[List[str]] = None
    features: Optional[List[str]] = None
    equipment: Optional[List[str]] = None
    notes: Optional[str] = None

class CharacterCreate(CharacterFields):
    name: str = Field(min_length=1, max_length=100)

class CharacterUpdate(CharacterFields):
    pass

class DerivedStatsResponse(BaseModel):
    modifiers: Dict[str, int]
    proficiency_bonus: int
    initiative: int
    passive_perception: int
    skills: Dict[str, int]
    saving_throws: Dict[str, int]

class CharacterResponse(BaseModel):
    id: int
    user_id: int
    name: str
    race: str = ""
    char_class: str = ""
    level: int
    background: str = ""
    alignment: str = ""
    experience_points: int = 0
    strength: int
    dexterity: int
    constitution: int
    intelligence: int
    wisdom: int
    charisma: int
    max_hp: int
    current_hp: int
    temp_hp: int
    armor_class: int
    speed: int
    hit_dice: str
    skill_proficiencies: List[str] = []
    saving_throw_proficiencies: List[str] = []
    features: List[str] = []
    equipment: List[str] = []
    notes: str = ""
    created_at: datetime
    updated_at: datetime
    derived: DerivedStatsResponse

# ============ campaigns ============
class CampaignCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    visibility: Optional[str] = None
    status: Optional[str] = None

class CampaignUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    visibility: Optional[str] = None
    status: Optional[str] = None

class CampaignStatusUpdate(BaseModel):
    status: str

class ActiveSceneUpdate(BaseModel):
    scene_id: Optional[int] = None

class CampaignResponse(BaseModel):
    id: int
    owner_id: int
    name: str
    description: Optional[str] = ""
    visibility: CampaignVisibility
    status: CampaignStatus
    active_scene_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class AddCharacterRequest(BaseModel):
    character_id: int

class CampaignCharacterResponse(BaseModel):
    id: int
    campaign_id: int
    character_id: int
    created_at: datetime

    class Config:
        from_attributes = True

class CampaignCharacterSummary(BaseModel):
    link_id: int
    character_id: int
    character_name: str
    character_class: str
    character_level: int
    owner_id: int
    owner_username: str

# ============ members ============
class MembershipResponse(BaseModel):
    campaign_id: int
    user_id: int
    role: MemberRole
    status: MemberStatus
    invited_by: Optional[int] = None

    class Config:
        from_attributes = True

class MemberResponse(BaseModel):
    id: int
    campaign_id: int
    user_id: int
    username: str
    role: MemberRole
    status: MemberStatus
    invited_by: Optional[int] = None
    created_at: datetime

class MemberRoleUpdate(BaseModel):
    role: str

# ============ invites ============
class InviteCreate(BaseModel):
    role_default: Optional[str] = None
    ttl_hours: Optional[int] = None

class InviteResponse(BaseModel):
    id: int
    campaign_id: int
    code: str
    invited_by: int
    role_default: InviteRole
    status: InviteStatus
    expires_at: datetime
    redeemed_by: Optional[int] = None
    redeemed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class InviteListItem(InviteResponse):
    state: InviteState

# ============ scenes / maps / tokens ============
class SceneCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    ordering: Optional[int] = None

class SceneResponse(BaseModel):
    id: int
    campaign_id: int
    name: str
    description: Optional[str] = ""
    ordering: int
    is_active: bool
    created_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

class MapCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    base_image_url: str = ""
    scene_id: Optional[int] = None

class MapResponse(BaseModel):
    id: int
    scene_id: int
    name: str
    base_image_url: Optional[str] = ""
    grid_size_ft: int
    width_px: Optional[int] = None
    height_px: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

class TokenCreate(BaseModel):
    label: str = Field(min_length=1, max_length=100)
    character_id: Optional[int] = None
    image_url: str = ""
    size_squares: int = 1
    position_x: int = 0
    position_y: int = 0
    facing_deg: int = 0
    audience: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    notes: str = ""
    layer: Optional[str] = None

class TokenMove(BaseModel):
    position_x: int
    position_y: int

class TokenLayerUpdate(BaseModel):
    layer: str

class TokenResponse(BaseModel):
    id: int
    map_id: int
    character_id: Optional[int] = None
    label: str
    image_url: Optional[str] = ""
    size_squares: int
    position_x: int
    position_y: int
    facing_deg: int
    audience: List[str] = []
    tags: List[str] = []
    notes: Optional[str] = ""
    layer: TokenLayer
    created_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

class MapDetail(MapResponse):
    tokens: List[TokenResponse] = []

class SceneDetail(SceneResponse):
    map: Optional[MapDetail] = None

# ============ handouts ============
class HandoutCreate(BaseModel):
    title: str = ""
    description: str = ""
    file_url: str = ""

class HandoutResponse(BaseModel):
    id: int
    campaign_id: int
    title: str
    description: Optional[str] = ""
    file_url: Optional[str] = ""
    created_by: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class CampaignDetailResponse(BaseModel):
    campaign: CampaignResponse
    role: MemberRole
    members: List[MemberResponse]
    characters: List[CampaignCharacterSummary]
    scenes: List[SceneDetail]
    handouts: List[HandoutResponse]

# ============ notes ============
class NoteCreate(BaseModel):
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    title: str = ""
    body: str = ""

    @model_validator(mode="after")
    def has_content(self):
        if not self.title.strip() and not self.body.strip():
            raise ValueError("a note needs a title or a body")
        return self

class NoteResponse(BaseModel):
    id: int
    user_id: int
    entity_type: NoteKind
    entity_id: Optional[int] = None
    title: Optional[str] = ""
    body: Optional[str] = ""
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
