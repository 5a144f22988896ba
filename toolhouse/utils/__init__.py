from .ansi import (
    Ansi,
    USER_LABEL,
    AGENT_LABEL,
    ERROR_LABEL,
    console,
)
from .spinner import Spinner

__all__ = [
    "Ansi",
    "USER_LABEL",
    "AGENT_LABEL",
    "ERROR_LABEL",
    "console",
    "Spinner",
]
