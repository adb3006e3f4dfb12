"""SQLAlchemy model for actors (producers, admins, consumers)."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from farmtrace.common.models import Base, TimestampMixin

ROLES = ("producer", "admin", "consumer")


class UserModel(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="consumer")
