"""User model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from app.database import Base


class User(Base):
    """Registered account. Email is stored lower-cased and is unique."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=False)
    email = Column(String(256), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    password_reset_token = Column(String(256), nullable=True, index=True)
    password_reset_expires_at = Column(DateTime, nullable=True)
