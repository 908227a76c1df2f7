"""
Unit tests for HttpClient and its interceptor pipelines.
"""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import aiohttp
import pytest

from aiohttp_auth_refresh.errors.internal import HTTPStatusError, NetworkError
from aiohttp_auth_refresh.transport.client import HttpClient
from aiohttp_auth_refresh.transport.interceptors import InterceptorManager
from aiohttp_auth_refresh.transport.models import RequestConfig, Response


class TestInterceptorManager:
    def setup_method(self):
        self.manager = InterceptorManager("request")

    def test_use_returns_increasing_ids(self):
        first = self.manager.use(lambda v: v)
        second = self.manager.use(lambda v: v)

        assert second > first
        assert len(self.manager) == 2

    def test_eject_unknown_id_is_noop(self):
        interceptor_id = self.manager.use(lambda v: v)

        self.manager.eject(interceptor_id + 100)
        self.manager.eject(None)

        assert self.manager.has(interceptor_id)

    def test_ids_are_not_reused_after_eject(self):
        first = self.manager.use(lambda v: v)
        self.manager.eject(first)

        second = self.manager.use(lambda v: v)

        assert second != first
        assert not self.manager.has(first)

    def test_snapshot_is_independent_copy(self):
        interceptor_id = self.manager.use(lambda v: v)
        snapshot = self.manager.snapshot()

        self.manager.eject(interceptor_id)

        assert [i.id for i in snapshot] == [interceptor_id]
        assert self.manager.snapshot() == []


class TestHttpClientPipeline:
    def setup_method(self):
        self.adapter = AsyncMock(side_effect=self._respond)
        self.status = 200
        self.client = HttpClient(
            adapter=self.adapter,
            base_url="https://api.example.com/v1/",
            headers={"Authorization": "Bearer default"},
            name="unit",
        )

    async def _respond(self, config: RequestConfig) -> Response:
        return Response(self.status, {}, b'{"ok": true}', config)

    @pytest.mark.asyncio
    async def test_relative_url_joined_and_default_headers_merged(self):
        response = await self.client.get("/users", headers={"X-Trace": "1"})

        wire = self.adapter.call_args.args[0]
        assert wire.url == "https://api.example.com/v1/users"
        assert wire.headers == {"Authorization": "Bearer default", "X-Trace": "1"}
        # Captured config keeps only the request's own headers.
        assert response.config.headers == {"X-Trace": "1"}
        assert response.config.url == "https://api.example.com/v1/users"
        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_absolute_url_is_untouched(self):
        await self.client.get("https://other.example.com/x")

        assert self.adapter.call_args.args[0].url == "https://other.example.com/x"

    @pytest.mark.asyncio
    async def test_caller_config_is_not_mutated(self):
        config = RequestConfig(url="/a", headers={"A": "1"})

        def add_header(cfg):
            cfg.headers["B"] = "2"
            return cfg

        self.client.interceptors.request.use(add_header)
        await self.client.request(config)

        assert config.headers == {"A": "1"}
        assert self.adapter.call_args.args[0].headers["B"] == "2"

    @pytest.mark.asyncio
    async def test_request_interceptors_run_in_install_order(self):
        order = []
        self.client.interceptors.request.use(lambda cfg: order.append("first"))

        async def second(cfg):
            order.append("second")
            return cfg.copy(method="PUT")

        self.client.interceptors.request.use(second)
        await self.client.get("/a")

        assert order == ["first", "second"]
        assert self.adapter.call_args.args[0].method == "PUT"

    @pytest.mark.asyncio
    async def test_rejected_status_raises_http_status_error(self):
        self.status = 404

        with pytest.raises(HTTPStatusError) as exc_info:
            await self.client.get("/missing")

        assert exc_info.value.status == 404
        assert exc_info.value.config.url.endswith("/missing")
        assert exc_info.value.response.status == 404

    @pytest.mark.asyncio
    async def test_custom_validate_status(self):
        self.status = 404
        client = HttpClient(adapter=self.adapter, validate_status=lambda s: s < 500)

        assert (await client.get("/missing")).status == 404

    @pytest.mark.asyncio
    async def test_response_rejected_handler_can_recover(self):
        self.status = 401
        fallback = Response(200, {}, b"", RequestConfig(url="/fallback"))
        self.client.interceptors.response.use(None, lambda error: fallback)

        assert await self.client.get("/a") is fallback

    @pytest.mark.asyncio
    async def test_response_fulfilled_handler_can_fail(self):
        def reject(response):
            raise ValueError("unexpected payload")

        seen = []

        def record(error):
            seen.append(error)
            raise error

        self.client.interceptors.response.use(reject)
        self.client.interceptors.response.use(None, record)

        with pytest.raises(ValueError, match="unexpected payload"):
            await self.client.get("/a")
        assert isinstance(seen[0], ValueError)

    @pytest.mark.asyncio
    async def test_request_interceptor_failure_reaches_response_chain(self):
        def abort(cfg):
            raise RuntimeError("aborted")

        on_rejected = Mock(side_effect=lambda error: Response(204, {}, b"", RequestConfig()))
        self.client.interceptors.request.use(abort)
        self.client.interceptors.response.use(None, on_rejected)

        response = await self.client.get("/a")

        assert response.status == 204
        self.adapter.assert_not_called()
        assert isinstance(on_rejected.call_args.args[0], RuntimeError)

    @pytest.mark.asyncio
    async def test_chains_are_snapshotted_per_request(self):
        """Test ejecting an interceptor does not affect a request already in flight."""
        gate = asyncio.Event()
        calls = []

        async def slow_adapter(config):
            await gate.wait()
            return Response(200, {}, b"", config)

        client = HttpClient(adapter=slow_adapter)
        interceptor_id = client.interceptors.response.use(lambda r: calls.append(r.config.url))

        in_flight = asyncio.create_task(client.get("/early"))
        await asyncio.sleep(0)
        client.interceptors.response.eject(interceptor_id)
        gate.set()
        await in_flight
        await client.get("/late")

        assert calls == ["/early"]

    @pytest.mark.asyncio
    async def test_transport_errors_wrapped_as_network_error(self):
        self.adapter.side_effect = aiohttp.ClientConnectionError("reset by peer")

        with pytest.raises(NetworkError) as exc_info:
            await self.client.get("/a")

        assert exc_info.value.response is None
        assert exc_info.value.config.url.endswith("/a")
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)

    @pytest.mark.asyncio
    async def test_timeout_wrapped_as_network_error(self):
        self.adapter.side_effect = TimeoutError()

        with pytest.raises(NetworkError):
            await self.client.post("/a", json={"x": 1})


class TestHttpClientSession:
    @pytest.mark.asyncio
    async def test_session_created_lazily_and_closed(self):
        client = HttpClient()
        assert client._session is None

        session = await client.get_session()
        assert await client.get_session() is session

        await client.close()
        assert session.closed
        assert client._session is None

    @pytest.mark.asyncio
    async def test_external_session_is_not_closed(self):
        session = Mock(spec=aiohttp.ClientSession)
        session.closed = False
        session.close = AsyncMock()

        async with HttpClient(session) as client:
            assert await client.get_session() is session

        session.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_closed_session_is_recreated(self):
        client = HttpClient()
        first = await client.get_session()
        await first.close()

        with patch("aiohttp_auth_refresh.transport.client.logging.debug") as debug:
            second = await client.get_session()

        assert second is not first
        debug.assert_called()
        await client.close()


class TestRequestConfig:
    def test_copy_is_deep_for_mutable_fields(self):
        original = RequestConfig(url="/a", headers={"A": "1"}, params={"q": "x"}, extra={"k": 1})

        clone = original.copy(method="POST")
        clone.headers["B"] = "2"
        clone.params["p"] = "y"
        clone.extra["k"] = 2

        assert original.method == "GET"
        assert original.headers == {"A": "1"}
        assert original.params == {"q": "x"}
        assert original.extra == {"k": 1}

    def test_response_helpers(self):
        response = Response(204, {}, b"", RequestConfig())

        assert response.ok
        assert response.json() is None
        assert response.text() == ""
