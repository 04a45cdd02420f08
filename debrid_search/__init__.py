from .config import Settings, get_configuration
from .models import DebridAccount, StreamRecord
from .services import StreamService

__all__ = [
    "Settings",
    "get_configuration",
    "DebridAccount",
    "StreamRecord",
    "StreamService",
]
