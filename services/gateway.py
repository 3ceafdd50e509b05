"""Conversation gateway: one chat turn from request to persisted reply."""
from typing import Tuple
import logging

from fastapi.concurrency import run_in_threadpool

from dtos.chat_request import ChatRequest
from exceptions import BadRequestError, PersistenceError
from schemas.chat import ChatResponse
from schemas.threads import MessageRecord, MessageRole
from services.llm import LLMProxy
from services.threads import ThreadStore

logger = logging.getLogger(__name__)


class ConversationGateway:
    """
    Orchestrates a chat turn: validate, resolve the thread, complete, persist.

    Authentication and rate limiting happen before `chat` is called. Store
    calls run in the threadpool; the provider call is the only await on
    the network. Requests on the same thread are not serialized against
    each other.
    """

    def __init__(self, thread_store: ThreadStore, llm_proxy: LLMProxy):
        self.thread_store = thread_store
        self.llm_proxy = llm_proxy

    @staticmethod
    def validate(request: ChatRequest) -> Tuple[str, str]:
        """Return (message, user_email) or raise BadRequestError."""
        if not isinstance(request.message, str) or not request.message:
            raise BadRequestError("message is required and must be a string")
        if not request.user_email:
            raise BadRequestError("userEmail is required")
        return request.message, request.user_email

    async def chat(self, request: ChatRequest) -> ChatResponse:
        message, user_email = self.validate(request)

        snapshot = await run_in_threadpool(
            self.thread_store.get_or_create_thread, request.thread_id or None, user_email
        )
        # The user turn is only persisted once the provider has answered
        history = [*snapshot.messages, MessageRecord(role=MessageRole.USER, content=message)]

        reply = await self.llm_proxy.complete(history, user_email)

        try:
            await run_in_threadpool(self.thread_store.append_turn, snapshot.thread_id, message, reply)
        except PersistenceError as e:
            logger.error(f"[Chat] Reply sent but turn not saved for thread {snapshot.thread_id}: {e}")

        return ChatResponse(reply=reply, thread_id=snapshot.thread_id)
