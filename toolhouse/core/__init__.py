from .agent import Toolhouse, RequestConfig, DEFAULT_BASE_URL, RUN_ID_HEADER
from .errors import ToolhouseError, RequestFailed
from .reply import AgentReply, FragmentStream

__all__ = [
    "Toolhouse",
    "RequestConfig",
    "AgentReply",
    "FragmentStream",
    "ToolhouseError",
    "RequestFailed",
    "DEFAULT_BASE_URL",
    "RUN_ID_HEADER",
]
