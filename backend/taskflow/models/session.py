"""
session.py — ORM Model for Login Sessions

A session is valid only while `now < expires_at`. Rows are removed by the
expiry sweep at login or when the owning user is deactivated.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, func

from taskflow.models.base import Base


class AuthSession(Base):
    __tablename__ = "tf_sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("tf_auth.user_id", ondelete="CASCADE"), index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Session user={self.user_id} expires={self.expires_at}>"
