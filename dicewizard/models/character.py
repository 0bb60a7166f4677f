from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, JSON
from sqlalchemy.orm import relationship
from dicewizard.database import Base, utcnow

class Character(Base):
    __tablename__ = "characters"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    race = Column(String(50), default="")
    char_class = Column(String(50), default="")
    level = Column(Integer, default=1, nullable=False)
    background = Column(String(100), default="")
    alignment = Column(String(50), default="")
    experience_points = Column(Integer, default=0)

    # ability scores
    strength = Column(Integer, default=10, nullable=False)
    dexterity = Column(Integer, default=10, nullable=False)
    constitution = Column(Integer, default=10, nullable=False)
    intelligence = Column(Integer, default=10, nullable=False)
    wisdom = Column(Integer, default=10, nullable=False)
    charisma = Column(Integer, default=10, nullable=False)

    # combat
    max_hp = Column(Integer, default=10, nullable=False)
    current_hp = Column(Integer, default=10, nullable=False)
    temp_hp = Column(Integer, default=0, nullable=False)
    armor_class = Column(Integer, default=10, nullable=False)
    speed = Column(Integer, default=30, nullable=False)
    hit_dice = Column(String(20), default="1d8")

    skill_proficiencies = Column(JSON, default=list)  # ["perception", "stealth"]
    saving_throw_proficiencies = Column(JSON, default=list)  # ["dexterity", "wisdom"]
    features = Column(JSON, default=list)
    equipment = Column(JSON, default=list)
    notes = Column(Text, default="")

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="characters")
