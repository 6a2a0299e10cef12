from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.database import Base


class Run(Base):
    """
    One execution of the external scraper.
    Used only as a recency marker for "since previous run" queries.
    """
    __tablename__ = "runs"

    id = Column(String(64), primary_key=True)
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Run(id={self.id}, started_at={self.started_at})>"
