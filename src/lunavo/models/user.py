# src/lunavo/models/user.py
"""SQLAlchemy model for notification recipients."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lunavo.db.session import Base


class UserAccount(Base):
    """Recipient lookup data: role and the device push token, if registered."""

    __tablename__ = "user_account"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # student | peer-educator | moderator | counselor | admin ...
    role: Mapped[str] = mapped_column(String(40), nullable=False, default="student")
    push_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
