from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, DateTime, JSON
from dicewizard.database import Base, utcnow, enum_column
import enum

class TokenLayer(str, enum.Enum):
    MAP = "map"
    OBJECT = "object"
    TOKEN = "token"
    GM = "gm"

DEFAULT_TOKEN_AUDIENCE = ["gm-only"]


class Scene(Base):
    __tablename__ = "scenes"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, default="")
    ordering = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Map(Base):
    __tablename__ = "maps"

    id = Column(Integer, primary_key=True, index=True)
    # one map per scene
    scene_id = Column(Integer, ForeignKey("scenes.id", ondelete="CASCADE"), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    base_image_url = Column(String(500), default="")
    grid_size_ft = Column(Integer, default=5, nullable=False)
    width_px = Column(Integer, nullable=True)
    height_px = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Token(Base):
    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, index=True)
    map_id = Column(Integer, ForeignKey("maps.id", ondelete="CASCADE"), nullable=False, index=True)
    character_id = Column(Integer, ForeignKey("characters.id", ondelete="SET NULL"), nullable=True)
    label = Column(String(100), nullable=False)
    image_url = Column(String(500), default="")
    size_squares = Column(Integer, default=1, nullable=False)
    position_x = Column(Integer, default=0, nullable=False)
    position_y = Column(Integer, default=0, nullable=False)
    facing_deg = Column(Integer, default=0, nullable=False)
    audience = Column(JSON, default=lambda: list(DEFAULT_TOKEN_AUDIENCE))
    tags = Column(JSON, default=list)
    notes = Column(Text, default="")
    layer = Column(enum_column(TokenLayer, "token_layer"), default=TokenLayer.TOKEN, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class CampaignHandout(Base):
    __tablename__ = "campaign_handouts"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, default="")
    file_url = Column(String(500), default="")
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
