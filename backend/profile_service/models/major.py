"""Major models — a user's sub major belongs to a main major (the ranking cohort)."""

from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from profile_service.models.base import Base, TimestampMixin, UUIDMixin


class MainMajor(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "main_majors"

    name = Column(String(100), unique=True, nullable=False)

    # Relationships
    sub_majors = relationship("SubMajor", back_populates="main_major", cascade="all, delete-orphan")


class SubMajor(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "sub_majors"

    name = Column(String(100), nullable=False)
    main_major_id = Column(Uuid(as_uuid=True), ForeignKey("main_majors.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    main_major = relationship("MainMajor", back_populates="sub_majors")
    users = relationship("User", back_populates="sub_major")

    __table_args__ = (
        UniqueConstraint("main_major_id", "name", name="uq_sub_majors_main_name"),
    )
