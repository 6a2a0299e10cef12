from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class ListingReveal(Base):
    """
    A listing unmasked by a user for credits.
    One row per (user, listing); rows are never updated or deleted.
    """
    __tablename__ = "listing_reveals"
    __table_args__ = (
        UniqueConstraint("user_id", "listing_id", name="uq_listing_reveals_user_listing"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    credit_cost = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    listing = relationship("Listing", back_populates="reveals")

    def __repr__(self):
        return f"<ListingReveal(user_id={self.user_id}, listing_id={self.listing_id})>"
