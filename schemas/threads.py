"""Pydantic schemas for thread-related data and responses."""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageRecord(BaseModel):
    """One entry of a thread's ordered history."""
    role: MessageRole
    content: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class ThreadSnapshot(BaseModel):
    """A resolved thread and the history persisted for it so far."""
    thread_id: str
    messages: List[MessageRecord] = Field(default_factory=list)


class ThreadSummary(BaseModel):
    """Schema for thread listings."""
    id: str
    title: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ThreadHistoryResponse(BaseModel):
    """Schema for GET /v1/threads/{thread_id}."""
    thread_id: str = Field(alias="threadId")
    messages: List[MessageRecord] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class ThreadListResponse(BaseModel):
    """Schema for GET /v1/threads."""
    threads: List[ThreadSummary] = Field(default_factory=list)
