from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from dicewizard.database import Base, utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    characters = relationship("Character", back_populates="user")
