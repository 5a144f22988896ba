"""Interactive terminal chat with a Toolhouse agent."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from .core import DEFAULT_BASE_URL, RequestFailed, Toolhouse
from .utils import (
    Ansi,
    AGENT_LABEL,
    ERROR_LABEL,
    USER_LABEL,
    Spinner,
    console,
)

logger = logging.getLogger(__name__)


class ChatCLI:
    """High-level orchestration class for the interactive REPL."""

    def __init__(self, agent: Toolhouse, stream: bool = True):
        self.agent = agent
        self.stream = stream

    # ---------------- Talking to the agent ---------------

    async def _collect(self, message: str) -> str:
        reply = self.agent.send(message)
        spinner = Spinner(prefix=f"{AGENT_LABEL}> ")

        if not self.stream:
            spinner.start()
            try:
                text = await reply
            finally:
                spinner.stop()
            console.print(text, markup=False, highlight=False)
            return text

        accumulator: List[str] = []
        spinner.start()
        try:
            async with reply.open_sequence() as fragments:
                async for fragment in fragments:
                    spinner.stop()
                    console.print(fragment, end="", markup=False, highlight=False)
                    accumulator.append(fragment)
        finally:
            spinner.stop()
        console.print()  # new line after stream ends
        return "".join(accumulator)

    def ask(self, message: str) -> str:
        """Send *message*, render the reply and return its text ("" on failure)."""
        try:
            return asyncio.run(self._collect(message))
        except RequestFailed as exc:
            console.print(f"\n[{ERROR_LABEL}] {escape(str(exc))}\n")
            return ""
        except KeyboardInterrupt:
            console.print("\n[interrupted]", markup=False)
            return ""

    # ---------------- Command handling ---------------

    def handle_command(self, line: str) -> bool:
        """Handle slash commands. Return False to exit REPL."""

        parts = line.strip().split()
        if not parts:
            return True

        cmd = parts[0].lower()

        if cmd == "/help":
            from . import __doc__ as _doc  # lazy import to avoid circularity

            console.print(_doc or "(no help available)", markup=False)

        elif cmd == "/exit":
            console.print("Bye!")
            return False

        elif cmd == "/run":
            if len(parts) == 1:
                run_id = self.agent.get_run_id()
                console.print(f"run id: {run_id or '(none yet)'}", markup=False)
            elif len(parts) == 2:
                self.agent.set_run_id(parts[1])
                console.print(f"[continuing run {parts[1]}]", markup=False)
            else:
                console.print("Usage: /run [run_id]")

        elif cmd in ("/new", "/clear"):
            self.agent.set_run_id(None)
            console.print("[next message starts a new conversation]", markup=False)

        elif cmd == "/stream":
            if len(parts) != 2 or parts[1] not in {"on", "off"}:
                console.print("Usage: /stream on|off")
            else:
                self.stream = parts[1] == "on"
                state = "enabled" if self.stream else "disabled"
                console.print(f"[streaming {state}]", markup=False)

        else:
            console.print(Ansi.style(f"Unknown command: {escape(cmd)} (see /help)", Ansi.FG_RED))

        return True

    # ---------------- Interaction loop ---------------

    def repl(self) -> None:
        """Run the interactive read–eval–print-loop."""
        console.print(Panel.fit("Toolhouse Agent Chat", style="bold magenta"))

        console.print(
            Ansi.style("Type your message and press Enter. Commands start with '/'.", Ansi.FG_YELLOW),
            Ansi.style(f"Agent: {escape(self.agent.agent_id)}.", Ansi.FG_YELLOW),
            Ansi.style("Type /help for help.", Ansi.FG_YELLOW),
            sep="\n",
        )

        while True:
            try:
                line = console.input(f"{USER_LABEL}> ").strip()
            except (EOFError, KeyboardInterrupt):
                console.print("\n[signal caught – exiting]", markup=False)
                break

            if not line:
                continue

            if line.startswith("/"):
                if not self.handle_command(line):
                    break
                continue

            self.ask(line)


# ---------------------------------------------------------------------------
# Entrypoint helpers (keeping it separate simplifies __main__ handling)
# ---------------------------------------------------------------------------

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Interactive chat with a Toolhouse agent."
    )
    parser.add_argument(
        "agent_id",
        nargs="?",
        default=os.getenv("TOOLHOUSE_AGENT_ID"),
        help="Agent id or agent URL (default: $TOOLHOUSE_AGENT_ID)",
    )
    parser.add_argument(
        "--base-url",
        default=os.getenv("TOOLHOUSE_BASE_URL", DEFAULT_BASE_URL),
        help=f"Agents service URL (default: $TOOLHOUSE_BASE_URL or {DEFAULT_BASE_URL})",
    )
    parser.add_argument("--env", help="Value of the 'env' query parameter")
    parser.add_argument("--toolhouse-id", help="Value of the 'toolhouse_id' query parameter")
    parser.add_argument("--bundle", help="Value of the 'bundle' query parameter")
    parser.add_argument("--run-id", help="Continue an existing run instead of starting a new one")
    parser.add_argument("--no-stream", action="store_true", help="Wait for complete replies")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log HTTP activity")
    return parser.parse_args(argv)


def run_cli(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)

    if not args.agent_id:
        sys.stderr.write(
            "Error: no agent id given.\n"
            "(Pass it as an argument or set TOOLHOUSE_AGENT_ID)\n"
        )
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    agent = Toolhouse(
        args.agent_id,
        base_url=args.base_url,
        env=args.env,
        toolhouse_id=args.toolhouse_id,
        bundle=args.bundle,
    )
    if args.run_id:
        agent.set_run_id(args.run_id)
    logger.debug("Chatting with %r", agent)

    ChatCLI(agent, stream=not args.no_stream).repl()


if __name__ == "__main__":  # pragma: no cover
    run_cli()
