from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

class ChatRequest(BaseModel):
    # Fields stay loose here; ConversationGateway.validate reports the specific problem.
    model_config = ConfigDict(populate_by_name=True)

    user_email: Optional[str] = Field(default=None, alias="userEmail", description="Owner of the thread")
    message: Optional[Any] = Field(default=None, description="User message to send to Bo")
    thread_id: Optional[str] = Field(default=None, alias="threadId", description="Thread to continue; omitted starts a new one")
