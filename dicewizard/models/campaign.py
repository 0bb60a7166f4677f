from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from dicewizard.database import Base, utcnow, enum_column
import enum

class CampaignVisibility(str, enum.Enum):
    PRIVATE = "private"
    INVITE = "invite"

class CampaignStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"

class MemberRole(str, enum.Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: "MemberRole") -> bool:
        return self.rank >= other.rank

_ROLE_RANK = {MemberRole.VIEWER: 1, MemberRole.EDITOR: 2, MemberRole.OWNER: 3}

class MemberStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"

class InviteRole(str, enum.Enum):
    """Roles an invite may grant; ownership is never one of them"""
    VIEWER = "viewer"
    EDITOR = "editor"

    def as_member_role(self) -> MemberRole:
        return MemberRole(self.value)

class InviteStatus(str, enum.Enum):
    ACTIVE = "active"
    REVOKED = "revoked"

def parse_enum(enum_cls, value, error_cls):
    """Coerce a raw string into ``enum_cls`` or raise ``error_cls``"""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise error_cls(f"{error_cls.default_message}: {value!r}")


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, default="")
    visibility = Column(enum_column(CampaignVisibility, "campaign_visibility"),
                        default=CampaignVisibility.PRIVATE, nullable=False)
    status = Column(enum_column(CampaignStatus, "campaign_status"),
                    default=CampaignStatus.NOT_STARTED, nullable=False)
    # weak reference; scenes never cascade through it
    active_scene_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    members = relationship("CampaignMember", back_populates="campaign")


class CampaignMember(Base):
    __tablename__ = "campaign_members"
    __table_args__ = (UniqueConstraint("campaign_id", "user_id", name="uq_campaign_member"),)

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(enum_column(MemberRole, "member_role"), default=MemberRole.VIEWER, nullable=False)
    status = Column(enum_column(MemberStatus, "member_status"), default=MemberStatus.PENDING, nullable=False)
    invited_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    campaign = relationship("Campaign", back_populates="members")


class CampaignCharacter(Base):
    __tablename__ = "campaign_characters"
    __table_args__ = (UniqueConstraint("campaign_id", "character_id", name="uq_campaign_character"),)

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    character_id = Column(Integer, ForeignKey("characters.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class CampaignInvite(Base):
    __tablename__ = "campaign_invites"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(16), unique=True, index=True, nullable=False)
    invited_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role_default = Column(enum_column(InviteRole, "invite_role"), default=InviteRole.VIEWER, nullable=False)
    status = Column(enum_column(InviteStatus, "invite_status"), default=InviteStatus.ACTIVE, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    redeemed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    redeemed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
