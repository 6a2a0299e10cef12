from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from app.database import Base


class Profile(Base):
    """Credit wallet of a dashboard user"""
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    credits_remaining = Column(Integer, nullable=False, default=0)
    unlimited = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Profile(id={self.id}, credits={self.credits_remaining}, unlimited={self.unlimited})>"
