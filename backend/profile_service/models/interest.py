"""Interest models — shared interest and keyword vocabularies and the user's picks."""

from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from profile_service.models.base import Base, TimestampMixin, UUIDMixin


class Interest(UUIDMixin, Base):
    __tablename__ = "interests"

    name = Column(String(50), unique=True, nullable=False)


class Keyword(UUIDMixin, Base):
    __tablename__ = "keywords"

    name = Column(String(100), unique=True, nullable=False)


class UserInterest(UUIDMixin, TimestampMixin, Base):
    """One keyword a user follows under one interest."""

    __tablename__ = "user_interests"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    interest_id = Column(Uuid(as_uuid=True), ForeignKey("interests.id"), nullable=False)
    keyword_id = Column(Uuid(as_uuid=True), ForeignKey("keywords.id"), nullable=False)

    # Relationships
    user = relationship("User", back_populates="interests")
    interest = relationship("Interest")
    keyword = relationship("Keyword")

    __table_args__ = (
        UniqueConstraint("user_id", "interest_id", "keyword_id", name="uq_user_interests_user_interest_keyword"),
    )
