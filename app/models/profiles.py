from sqlalchemy import Column, String
from app.db.database import Base


class Profile(Base):
    """Display info for a user; rows are owned by the auth/profile provider"""
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, unique=True, nullable=False)
    email = Column(String, nullable=True)
    full_name = Column(String(200), nullable=True)
    avatar_url = Column(String, nullable=True)
