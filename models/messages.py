"""Message model for the ordered turns of a thread."""
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, func
from sqlalchemy.orm import relationship
from uuid import uuid4
from .threads import Base


class Message(Base):
    """
    SQLAlchemy model for messages.
    
    Messages are append-only. `position` is the append sequence within the
    thread and orders history; `created_at` only breaks ties between rows
    written concurrently with the same position.
    """
    __tablename__ = "messages"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    thread_id = Column(String(64), ForeignKey("threads.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False)  # "user" or "assistant"
    content = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    thread = relationship("Thread", back_populates="messages")
