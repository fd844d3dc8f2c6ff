"""
user.py — ORM Model for Application Users (credential rows)

Purpose:
- Represent users who can log in with a username + PIN.
- Stores the salted PIN hash and its salt only, never the raw PIN.
- `is_active = False` is a soft-deactivation: the row stays, sessions go.

Used by:
- services/credentials.py (login, PIN rotation)
- services/users.py (admin management)
"""

from sqlalchemy import Boolean, Column, DateTime, String, func

from taskflow.models.base import Base


class User(Base):
    __tablename__ = "tf_auth"

    user_id = Column(String(36), primary_key=True)

    # Authentication fields
    username = Column(String(64), unique=True, index=True, nullable=False)
    pin_hash = Column(String, nullable=False)
    pin_salt = Column(String(64), nullable=False)

    # Display
    display_name = Column(String(100), nullable=True)

    is_admin = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<User {self.username}>"
