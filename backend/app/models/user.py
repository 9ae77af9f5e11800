"""
User model. Email is stored lower-cased, so the unique index is effectively
case-insensitive. Role is fixed at signup.
"""

from sqlalchemy import Column, Integer, String, CheckConstraint

from app.db.base import Base, TimestampMixin

ROLE_ORGANIZER = "organizer"
ROLE_ATTENDEE = "attendee"
ROLES = (ROLE_ORGANIZER, ROLE_ATTENDEE)


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(60), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_ATTENDEE)

    __table_args__ = (
        CheckConstraint("role IN ('organizer', 'attendee')", name="check_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
