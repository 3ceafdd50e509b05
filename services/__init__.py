from .threads import ThreadStore, StoreStatus
from .auth import CredentialGuard
from .rate_limit import RateLimiter
from .llm import LLMProxy
from .gateway import ConversationGateway

__all__ = ["ThreadStore", "StoreStatus", "CredentialGuard", "RateLimiter", "LLMProxy", "ConversationGateway"]
