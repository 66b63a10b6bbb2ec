"""Scrap model — which user saved which index document, per category."""

from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import relationship

from profile_service.models.base import Base, TimestampMixin, UUIDMixin


class Scrap(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "scraps"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(20), nullable=False)  # outside, intern, competition, language, qnet
    document_id = Column(String(100), nullable=False)

    # Relationships
    user = relationship("User", back_populates="scraps")

    __table_args__ = (
        UniqueConstraint("user_id", "category", "document_id", name="uq_scraps_user_category_document"),
        Index("idx_scraps_category_document", "category", "document_id"),
    )
