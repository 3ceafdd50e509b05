from .threads import Thread, Base
from .messages import Message

__all__ = ["Thread", "Message", "Base"]
