"""Python client for Toolhouse agents.

Library
-------
    agent = Toolhouse("<agent id>")
    text = await agent.send("Hello")           # complete reply
    async for fragment in agent.send("More"):  # streamed reply
        ...

The first message starts a run, later messages continue it. The run id is
available through `get_run_id()` and can be set with `set_run_id()`.

Chat commands
-------------
/run [run_id]   show the current run id, or continue the given run
/new, /clear    start a new conversation with the next message
/stream on|off  print replies as they arrive, or once complete
/exit           quit

Run `python -m toolhouse <agent id>` or `toolhouse-chat <agent id>`.
"""
# Re-export useful symbols for convenience
from .core import (
    Toolhouse,
    AgentReply,
    FragmentStream,
    RequestConfig,
    ToolhouseError,
    RequestFailed,
    DEFAULT_BASE_URL,
)
from .cli import ChatCLI, run_cli

__all__ = [
    "Toolhouse",
    "AgentReply",
    "FragmentStream",
    "RequestConfig",
    "ToolhouseError",
    "RequestFailed",
    "DEFAULT_BASE_URL",
    "ChatCLI",
    "run_cli",
]
