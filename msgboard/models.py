"""
SQLAlchemy ORM models for database tables.

This module contains database table definitions using SQLAlchemy.
For Pydantic request/response schemas, see schemas.py.
"""

from sqlalchemy import Column, Index, Integer, String, Text

from msgboard.storage import Base


class Message(Base):
    """
    A single board message, stored as its raw Markdown source.
    
    Table: messages
    Primary Key: id (AUTOINCREMENT, so ids are never handed out twice)
    """
    __tablename__ = "messages"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    created_at = Column(String, nullable=False)  # Server time, fixed-width ISO-8601 UTC

    def __repr__(self) -> str:
        return f"<Message id={self.id} created_at={self.created_at}>"


Index("idx_messages_created_at", Message.created_at.desc())
