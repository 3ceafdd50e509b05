"""Client for the LLM completion endpoint that speaks as Bo."""
from typing import Any, Dict, List, Optional, Sequence
import logging

import httpx
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from config import DEFAULT_LLM_API_URL, DEFAULT_LLM_MODEL
from exceptions import ConfigurationError, UpstreamError
from schemas.threads import MessageRecord, MessageRole

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
MAX_OUTPUT_TOKENS = 4096
FALLBACK_REPLY = "I hit a snag processing that. Try again?"

BO_SYSTEM_PROMPT = """You are Bo, Taptico's AI assistant and operational backbone.

## Your Personality
- **Tough-love**: You're supportive but honest. If something's a bad idea, you say so directly.
- **Accountable**: You track commitments, deadlines, and follow through. You call out drift.
- **Supportive of wins**: Celebrate successes genuinely, but don't over-hype.
- **10th-grader explanations**: When explaining technical topics, make it clear enough for a smart 10th grader to understand.

## Your Role
You're the "paranoid adult in the room". You help the Taptico team with:
- Operations & productivity
- Research & analysis
- Content creation
- Client delivery support
- Knowledge management

## Your Rules
1. Be direct. Don't pad responses with unnecessary pleasantries.
2. If you don't know something, say so.
3. If a request seems like a bad idea, push back with a clear explanation.
4. Keep responses actionable.
5. When something is done well, acknowledge it briefly and move on.

## Your Voice
Professional but not corporate. Friendly but not sycophantic. Think "trusted senior colleague."
"""


def extract_reply(data: Any) -> str:
    """Return the first text segment of a provider response, or the fallback reply."""
    if not isinstance(data, dict):
        return FALLBACK_REPLY
    content = data.get("content")
    if not isinstance(content, list) or not content or not isinstance(content[0], dict):
        return FALLBACK_REPLY
    text = content[0].get("text")
    if not isinstance(text, str) or not text:
        return FALLBACK_REPLY
    return text


class LLMProxy:
    """Builds the provider request from thread history and normalizes the result."""

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = DEFAULT_LLM_API_URL,
        model: str = DEFAULT_LLM_MODEL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def build_messages(history: Sequence[MessageRecord], user_email: str) -> List[BaseMessage]:
        """Persona block first, then the history with every non-user role collapsed to the assistant."""
        messages: List[BaseMessage] = [
            SystemMessage(content=f"{BO_SYSTEM_PROMPT}\n\nCurrent user: {user_email}")
        ]
        for entry in history:
            if entry.role == MessageRole.USER:
                messages.append(HumanMessage(content=entry.content))
            else:
                messages.append(AIMessage(content=entry.content))
        return messages

    def build_payload(self, history: Sequence[MessageRecord], user_email: str) -> Dict[str, Any]:
        system, *turns = self.build_messages(history, user_email)
        return {
            "model": self.model,
            "max_tokens": MAX_OUTPUT_TOKENS,
            "system": system.content,
            "messages": [
                {"role": "user" if isinstance(m, HumanMessage) else "assistant", "content": m.content}
                for m in turns
            ],
        }

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def complete(self, history: Sequence[MessageRecord], user_email: str) -> str:
        """
        Send the conversation to the provider and return Bo's reply.

        Raises:
            ConfigurationError: If no provider credential is configured
            UpstreamError: If the provider answers with a non-success status or cannot be reached
        """
        if not self.configured:
            raise ConfigurationError("LLM API key not configured")

        payload = self.build_payload(history, user_email)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"[LLM] Request failed: {e.__class__.__name__}: {e}")
            raise UpstreamError(f"LLM request failed: {e.__class__.__name__}") from e

        if not response.is_success:
            logger.error(f"[LLM] API error: {response.status_code} - {response.text}")
            raise UpstreamError(f"LLM API error: {response.status_code}", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            logger.warning("[LLM] Response body was not JSON, using fallback reply")
            return FALLBACK_REPLY

        return extract_reply(data)
