"""Activity models — the five record tables that feed a user's thermometer score."""

from sqlalchemy import Column, String, Date, JSON, ForeignKey, Uuid
from sqlalchemy.orm import declared_attr

from profile_service.models.base import Base, TimestampMixin, UUIDMixin


class ActivityMixin(UUIDMixin, TimestampMixin):
    """Columns shared by every activity table. Each row belongs to exactly one user."""

    @declared_attr
    def user_id(cls):
        return Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    started_on = Column(Date)
    ended_on = Column(Date)
    extra_data = Column(JSON)


class UserOutside(ActivityMixin, Base):
    __tablename__ = "user_outsides"

    organization = Column(String(255))


class UserIntern(ActivityMixin, Base):
    __tablename__ = "user_interns"

    company = Column(String(255))


class UserCompetition(ActivityMixin, Base):
    __tablename__ = "user_competitions"

    organizer = Column(String(255))
    award = Column(String(100))


class UserLanguage(ActivityMixin, Base):
    __tablename__ = "user_languages"

    test = Column(String(50))
    score = Column(String(20))


class UserQnet(ActivityMixin, Base):
    __tablename__ = "user_qnets"

    license_number = Column(String(50))
