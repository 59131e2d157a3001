import asyncio
import socket

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from lodestone.core import LoadTester, RequestExecutor
from lodestone.models import TRANSPORT_FAILURE, Options


async def ok(request):
    return web.Response(text="ok")


async def missing(request):
    return web.Response(status=404, text="nope")


async def broken(request):
    return web.Response(status=503)


async def slow_body(request):
    resp = web.StreamResponse(status=200)
    await resp.prepare(request)
    await asyncio.sleep(0.05)
    await resp.write(b"late body")
    await resp.write_eof()
    return resp


async def hang(request):
    await asyncio.sleep(0.5)
    return web.Response(text="too late")


async def large(request):
    return web.Response(body=b"x" * (1024 * 1024))


def make_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/hang", hang)
    app.router.add_get("/large", large)
    app.router.add_get("/ok", ok)
    app.router.add_get("/missing", missing)
    app.router.add_get("/broken", broken)
    app.router.add_get("/slow", slow_body)
    return app


def unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
@pytest.mark.parametrize("path, status", [("/ok", 200), ("/missing", 404), ("/broken", 503)])
async def test_records_http_status(path, status):
    server = test_utils.TestServer(make_app())
    await server.start_server()
    try:
        async with aiohttp.ClientSession() as session:
            url = str(server.make_url(path))
            outcome = await RequestExecutor(session).execute(url)
    finally:
        await server.close()

    assert outcome.url == url
    assert outcome.status_code == status
    assert outcome.elapsed >= 0


@pytest.mark.asyncio
async def test_elapsed_includes_reading_the_body():
    server = test_utils.TestServer(make_app())
    await server.start_server()
    try:
        async with aiohttp.ClientSession() as session:
            outcome = await RequestExecutor(session).execute(str(server.make_url("/slow")))
    finally:
        await server.close()

    assert outcome.status_code == 200
    assert outcome.elapsed >= 0.04


@pytest.mark.asyncio
async def test_connection_refused_is_a_transport_failure():
    url = f"http://127.0.0.1:{unused_port()}/"

    async with aiohttp.ClientSession() as session:
        outcome = await RequestExecutor(session).execute(url)

    assert outcome.status_code == TRANSPORT_FAILURE
    assert not outcome.success
    assert outcome.elapsed >= 0


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["", "not a url", "ftp://example.test/file"])
async def test_malformed_url_is_a_transport_failure(url):
    async with aiohttp.ClientSession() as session:
        outcome = await RequestExecutor(session).execute(url)

    assert outcome.url == url
    assert outcome.status_code == TRANSPORT_FAILURE


@pytest.mark.asyncio
async def test_run_against_live_server_uses_own_session():
    server = test_utils.TestServer(make_app())
    await server.start_server()
    try:
        url = str(server.make_url("/ok"))
        stats = await LoadTester(Options(url, requests=12, clients=3)).run()
    finally:
        await server.close()

    summary = stats[url]
    assert (summary.successes, summary.failures) == (12, 0)
    assert 0 < summary.min_latency <= summary.mean_latency <= summary.max_latency


@pytest.mark.asyncio
async def test_timeout_is_a_transport_failure():
    server = test_utils.TestServer(make_app())
    await server.start_server()
    try:
        timeout = aiohttp.ClientTimeout(total=0.1)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            outcome = await RequestExecutor(session).execute(str(server.make_url("/hang")))
    finally:
        await server.close()

    assert outcome.status_code == TRANSPORT_FAILURE
    assert 0.08 <= outcome.elapsed < 0.45


@pytest.mark.asyncio
async def test_large_body_is_drained():
    server = test_utils.TestServer(make_app())
    await server.start_server()
    try:
        async with aiohttp.ClientSession() as session:
            outcome = await RequestExecutor(session).execute(str(server.make_url("/large")))
    finally:
        await server.close()

    assert outcome.status_code == 200
    assert outcome.elapsed > 0
