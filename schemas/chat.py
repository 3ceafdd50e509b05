"""Pydantic schemas for chat and service responses."""
from pydantic import BaseModel, ConfigDict, Field


class ChatResponse(BaseModel):
    """Schema for POST /v1/chat."""
    reply: str
    thread_id: str = Field(alias="threadId")

    model_config = ConfigDict(populate_by_name=True)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    service: str
    version: str
