"""Thread model for conversation management."""
from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Thread(Base):
    """
    SQLAlchemy model for conversation threads.
    
    Each thread represents a conversation between one user and Bo.
    The identifier is opaque: either supplied by the client or generated
    by the server, and never changed afterwards.
    """
    __tablename__ = "threads"
    
    id = Column(String(64), primary_key=True)
    user_email = Column(String(320), nullable=True, index=True)
    title = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    messages = relationship("Message", back_populates="thread", order_by="Message.created_at")
