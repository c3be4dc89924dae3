from sqlalchemy import Column, DateTime, String
from taskai.database import Base
from taskai.models.task import _new_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    # Stored lower-cased so uniqueness is case-insensitive
    email = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)
    image = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
