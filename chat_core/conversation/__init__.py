from chat_core.conversation.buffer import ConversationBuffer
from chat_core.conversation.rate_limiter import RateLimiter
from chat_core.conversation.sanitize import sanitize

__all__ = ["ConversationBuffer", "RateLimiter", "sanitize"]
