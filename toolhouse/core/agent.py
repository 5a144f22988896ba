"""Conversation session against a single Toolhouse agent."""

from __future__ import annotations

import codecs
import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, NamedTuple, Optional

import httpx

from .errors import RequestFailed
from .reply import AgentReply

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://agents.toolhouse.ai"
DEFAULT_TIMEOUT = 120.0

# Header the service uses to hand out the conversation (run) id.
RUN_ID_HEADER = "x-toolhouse-run-id"

JSON_HEADERS = {"Content-Type": "application/json"}


class RequestConfig(NamedTuple):
    """Target URL and HTTP method for the next request of a session."""

    url: str
    method: str


def _is_buffered(response: httpx.Response) -> bool:
    """Return True when the transport already loaded the whole body."""
    try:
        response.content
    except httpx.ResponseNotRead:
        return False
    return True


def _new_decoder() -> codecs.IncrementalDecoder:
    # Chunk boundaries may split multi-byte characters, so the decoder keeps
    # state between reads.
    return codecs.getincrementaldecoder("utf-8")(errors="replace")


class Toolhouse:
    """A conversation with one Toolhouse agent.

    The first message creates a run on the server (``POST``); the run id the
    server returns in the ``x-toolhouse-run-id`` header is remembered and
    every later message continues that run (``PUT``).

    Example::

        agent = Toolhouse("my-agent-id")
        text = await agent.send("Hello!")            # whole reply
        async for fragment in agent.send("More"):    # incremental reply
            print(fragment, end="")
    """

    def __init__(
        self,
        agent_id: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        env: Optional[str] = None,
        toolhouse_id: Optional[str] = None,
        bundle: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")

        # Accept a full agent URL as well as the bare id.
        if agent_id.startswith(self.base_url):
            agent_id = agent_id[len(self.base_url):].lstrip("/")
        self.agent_id = agent_id

        options = {"env": env, "toolhouse_id": toolhouse_id, "bundle": bundle}
        self.params = httpx.QueryParams(
            {key: value for key, value in options.items() if value is not None}
        )
        self.url = self._build_url(self.agent_id)

        self.run_id: Optional[str] = None
        self.timeout = timeout
        # Caller-owned client; never closed by the session.
        self._http_client = http_client

    def __repr__(self) -> str:
        return f"Toolhouse(agent_id={self.agent_id!r}, run_id={self.run_id!r})"

    # ------------------------------------------------------------------
    # Run id
    # ------------------------------------------------------------------

    def set_run_id(self, run_id: Optional[str]) -> None:
        """Continue the given run on the next message (``None`` starts over)."""
        self.run_id = run_id

    def get_run_id(self) -> Optional[str]:
        return self.run_id

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def send(self, message: Optional[str] = "") -> AgentReply:
        """Prepare a message for the agent.

        Nothing is sent yet. Awaiting the returned :class:`AgentReply` fetches
        the complete reply, iterating it with ``async for`` streams the reply.
        """
        body = json.dumps({"message": "" if message is None else message}, ensure_ascii=False)
        return AgentReply(self, body, self.request_config())

    def request_config(self) -> RequestConfig:
        """Return where and how the next message is sent."""
        if self.run_id:
            return RequestConfig(self._build_url(f"{self.agent_id}/{self.run_id}"), "PUT")
        return RequestConfig(self.url, "POST")

    async def fetch_complete(self, body: str, config: RequestConfig) -> str:
        """Send *body* and return the whole reply text."""
        try:
            async with self._open(body, config) as response:
                self._check_response(response)

                if _is_buffered(response):
                    return response.text

                decoder = _new_decoder()
                parts = []
                async for chunk in response.aiter_bytes():
                    parts.append(decoder.decode(chunk))
                parts.append(decoder.decode(b"", final=True))
                return "".join(parts)
        except (httpx.HTTPError, httpx.InvalidURL, RequestFailed) as exc:
            raise self._request_failed(exc, config) from exc

    async def fetch_stream(self, body: str, config: RequestConfig) -> AsyncGenerator[str, None]:
        """Send *body* and yield the reply text as it arrives.

        The request is only issued once the iterator is first advanced. Empty
        fragments are never yielded.
        """
        try:
            async with self._open(body, config) as response:
                self._check_response(response)

                if _is_buffered(response):
                    yield response.text
                    return

                decoder = _new_decoder()
                async for chunk in response.aiter_bytes():
                    text = decoder.decode(chunk)
                    if text:
                        yield text
                tail = decoder.decode(b"", final=True)
                if tail:
                    yield tail
        except (httpx.HTTPError, httpx.InvalidURL, RequestFailed) as exc:
            raise self._request_failed(exc, config) from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_url(self, path: str) -> str:
        url = f"{self.base_url}/{path}"
        if self.params:
            url = f"{url}?{self.params}"
        return url

    @asynccontextmanager
    async def _open(self, body: str, config: RequestConfig) -> AsyncIterator[httpx.Response]:
        """Issue the request and keep the response open for reading.

        The response stream is closed when the block exits, whichever way it
        exits.
        """
        logger.debug("%s %s", config.method, config.url)
        async with AsyncExitStack() as stack:
            client = self._http_client
            if client is None:
                client = await stack.enter_async_context(httpx.AsyncClient(timeout=self.timeout))
            response = await stack.enter_async_context(
                client.stream(
                    config.method,
                    config.url,
                    content=body.encode("utf-8"),
                    headers=JSON_HEADERS,
                )
            )
            yield response

    def _check_response(self, response: httpx.Response) -> None:
        if not response.is_success:
            raise RequestFailed(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        run_id = response.headers.get(RUN_ID_HEADER)
        if run_id and not self.run_id:
            self.run_id = run_id
            logger.info("Agent %s started run %s", self.agent_id, run_id)

    @staticmethod
    def _request_failed(exc: Exception, config: RequestConfig) -> RequestFailed:
        logger.warning("%s %s failed: %s", config.method, config.url, exc)
        return RequestFailed(
            f"Request failed: {exc}",
            status_code=getattr(exc, "status_code", None),
        )
