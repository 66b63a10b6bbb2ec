"""User model — profile plus the cached thermometer score and cohort percentile."""

from sqlalchemy import Column, String, Float, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from profile_service.models.base import Base, TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    nickname = Column(String(50), unique=True, nullable=False)
    phone = Column(String(20), index=True)
    provider = Column(String(20), nullable=False, default="email", server_default="email")  # email or the OAuth provider name
    profile_image = Column(String(500))
    sub_major_id = Column(Uuid(as_uuid=True), ForeignKey("sub_majors.id"), nullable=False, index=True)

    # Derived, written only by the thermometer cascade and the ranking pass
    thermometer = Column(Float, default=0.0, server_default="0", nullable=False)
    top = Column(Float, default=100.0, server_default="100", nullable=False)

    # Relationships
    sub_major = relationship("SubMajor", back_populates="users")
    scraps = relationship("Scrap", back_populates="user", cascade="all, delete-orphan")
    interests = relationship("UserInterest", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_users_thermometer", "thermometer"),
    )
