import json

import httpx

from toolhouse import RequestFailed
from .test_base import BaseAgentTest, RecordingStream, buffered, streamed


class TestCompleteResponse(BaseAgentTest):
    async def test_collects_streamed_chunks(self):
        """Awaiting a reply joins every streamed chunk"""
        self.service.queue(streamed(["Hello", ", ", "world", "!"]))

        text = await self.agent.send("Hi")

        self.assertEqual(text, "Hello, world!")
        request = self.service.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), "https://agents.toolhouse.ai/agent-123")
        self.assertEqual(request.headers["content-type"], "application/json")
        self.assertEqual(json.loads(request.content), {"message": "Hi"})

    async def test_buffered_body(self):
        self.service.queue(buffered("Full response"))
        self.assertEqual(await self.agent.send("Hi"), "Full response")

    async def test_stores_run_id(self):
        self.service.queue(buffered("ok", run_id="run-1"))
        await self.agent.send("Hi")
        self.assertEqual(self.agent.get_run_id(), "run-1")

    async def test_run_id_header_is_case_insensitive(self):
        response = httpx.Response(200, headers={"X-Toolhouse-Run-Id": "run-7"}, text="ok")
        self.service.queue(response)
        await self.agent.send("Hi")
        self.assertEqual(self.agent.get_run_id(), "run-7")

    async def test_does_not_overwrite_run_id(self):
        self.agent.set_run_id("existing")
        self.service.queue(buffered("ok", run_id="other"))
        await self.agent.send("Hi")
        self.assertEqual(self.agent.get_run_id(), "existing")

    async def test_multibyte_character_split_across_chunks(self):
        self.service.queue(streamed([b"caf\xc3", b"\xa9 \xe2\x82", b"\xac"]))
        self.assertEqual(await self.agent.send("Hi"), "café €")

    async def test_http_error(self):
        self.service.queue(buffered("Not found", status_code=404))

        with self.assertRaises(RequestFailed) as ctx:
            await self.agent.send("Hi")

        self.assertEqual(str(ctx.exception), "Request failed: HTTP error! status: 404")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_http_error_does_not_capture_run_id(self):
        self.service.queue(buffered("boom", status_code=500, run_id="run-1"))
        with self.assertRaises(RequestFailed):
            await self.agent.send("Hi")
        self.assertIsNone(self.agent.get_run_id())

    async def test_transport_error(self):
        self.service.queue(httpx.ConnectError("Connection refused"))

        with self.assertRaises(RequestFailed) as ctx:
            await self.agent.send("Hi")

        self.assertEqual(str(ctx.exception), "Request failed: Connection refused")
        self.assertIsNone(ctx.exception.status_code)
        self.assertIsInstance(ctx.exception.__cause__, httpx.ConnectError)

    async def test_releases_stream_on_success(self):
        body = RecordingStream(["a", "b"])
        self.service.queue(streamed(body=body))
        await self.agent.send("Hi")
        self.assertEqual(body.close_calls, 1)

    async def test_releases_stream_once_on_read_error(self):
        """A failure mid-stream still releases the body exactly once"""
        body = RecordingStream(["partial"], error=httpx.ReadError("connection reset"))
        self.service.queue(streamed(body=body))

        with self.assertRaises(RequestFailed) as ctx:
            await self.agent.send("Hi")

        self.assertEqual(str(ctx.exception), "Request failed: connection reset")
        self.assertEqual(body.close_calls, 1)

    async def test_failure_keeps_existing_run_id(self):
        self.agent.set_run_id("run-1")
        self.service.queue(httpx.ConnectError("Connection refused"))
        with self.assertRaises(RequestFailed):
            await self.agent.send("Hi")
        self.assertEqual(self.agent.get_run_id(), "run-1")
