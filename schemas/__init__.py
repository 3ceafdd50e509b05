from .threads import (
    MessageRole, MessageRecord, ThreadSnapshot, ThreadSummary,
    ThreadHistoryResponse, ThreadListResponse,
)
from .chat import ChatResponse, HealthResponse

__all__ = ["MessageRole", "MessageRecord", "ThreadSnapshot", "ThreadSummary",
           "ThreadHistoryResponse", "ThreadListResponse",
           "ChatResponse", "HealthResponse"]
