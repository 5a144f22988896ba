"""Reply object returned by :meth:`Toolhouse.send`."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, AsyncGenerator, Callable, Generator, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .agent import RequestConfig, Toolhouse


class FragmentStream:
    """Async iterator over reply fragments that can also be used as a context.

    Leaving ``async with`` closes the underlying response at once, even after a
    ``break``. A bare ``async for`` that stops early only releases it when the
    event loop finalizes the iterator.
    """

    def __init__(self, fragments: AsyncGenerator[str, None]) -> None:
        self._fragments = fragments

    def __aiter__(self) -> "FragmentStream":
        return self

    async def __anext__(self) -> str:
        return await self._fragments.__anext__()

    async def aclose(self) -> None:
        await self._fragments.aclose()

    async def __aenter__(self) -> "FragmentStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class AgentReply:
    """A pending agent reply that can be consumed whole or incrementally.

    * ``await reply`` (or :meth:`text`, :meth:`subscribe`) fetches the complete
      reply text.
    * ``async for fragment in reply`` (or :meth:`open_sequence`) streams it.

    Every consumption issues its own request with the body and target that
    were fixed when the message was sent; nothing is cached between them.
    """

    def __init__(self, agent: "Toolhouse", body: str, config: "RequestConfig") -> None:
        self._agent = agent
        self.body = body
        self.config = config

    def __repr__(self) -> str:
        return f"AgentReply(method={self.config.method!r}, url={self.config.url!r})"

    def __await__(self) -> Generator[object, None, str]:
        return self.text().__await__()

    def __aiter__(self) -> FragmentStream:
        return self.open_sequence()

    async def text(self) -> str:
        return await self._agent.fetch_complete(self.body, self.config)

    def open_sequence(self) -> FragmentStream:
        """Return a fresh iterator over the reply fragments.

        Use it as ``async with reply.open_sequence() as fragments:`` to have the
        response released as soon as the block is left.
        """
        return FragmentStream(self._agent.fetch_stream(self.body, self.config))

    def subscribe(
        self,
        on_complete: Callable[[str], object],
        on_error: Optional[Callable[[BaseException], object]] = None,
    ) -> "asyncio.Task[str]":
        """Fetch the complete reply in the background and report the outcome.

        Must be called from a running event loop. Without *on_error* a failure
        is left on the returned task.
        """
        task = asyncio.get_running_loop().create_task(self.text())

        def _dispatch(done: "asyncio.Task[str]") -> None:
            if done.cancelled():
                return
            exc = done.exception()
            if exc is None:
                on_complete(done.result())
            elif on_error is not None:
                on_error(exc)

        task.add_done_callback(_dispatch)
        return task
