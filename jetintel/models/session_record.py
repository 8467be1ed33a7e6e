"""
App session model - durable backing for SqlSessionStore.

One row per app-issued session token. The upstream token pair is stored
as a unit and always rewritten together.

The password column is plaintext. Access to this table must be limited to
the service itself.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, Float, Index
from sqlalchemy.orm import Mapped, mapped_column

from jetintel.models.base import Base


class SessionRecord(Base):
    """
    Upstream session keyed by the app-issued token.

    Fields:
        token: Opaque app session token handed to the client
        base_url: Upstream base URL the session was created against
        email/password: Credentials kept for re-login
        bearer_token/api_token: The live upstream token pair
        created_at/last_validated_at: Upstream token timestamps (epoch seconds)
        expires_at: When the app session itself lapses
    """

    __tablename__ = 'app_sessions'

    token: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment='App-issued session token'
    )

    base_url: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255))
    password: Mapped[str] = mapped_column(
        String(255),
        comment='Upstream password, plaintext'
    )

    bearer_token: Mapped[str] = mapped_column(String(2048))
    api_token: Mapped[str] = mapped_column(String(255))

    created_at: Mapped[float] = mapped_column(
        Float,
        comment='Upstream token pair issue time (epoch seconds)'
    )
    last_validated_at: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    expires_at: Mapped[datetime] = mapped_column(
        DateTime,
        comment='App session expiry (UTC)'
    )

    __table_args__ = (
        Index('ix_app_sessions_expires_at', 'expires_at'),
    )

    def __repr__(self) -> str:
        return f'<SessionRecord {self.token[:8]}... {self.email}>'
