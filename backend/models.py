# models.py
from sqlalchemy import Column, String, Integer
from backend.db import Base

class Config(Base):
    """Server-wide setting stored as a name/value string pair."""
    __tablename__ = "config"
    __table_args__ = {'extend_existing': True}
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    value = Column(String, nullable=False)

    def __repr__(self):
        return f"<Config(name={self.name}, value={self.value})>"
