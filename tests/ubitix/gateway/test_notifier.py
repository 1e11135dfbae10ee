import asyncio
import json
from ipaddress import IPv6Network
from typing import Any, Dict, List

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from pytest import raises

from ubitix.errors import NotifierError
from ubitix.gateway.notifier import DisabledNotifier, WorkflowNotifier, mapping_to_json

PREFIX = IPv6Network("2001:db8:1234::/60")
MAPPING = {
    IPv6Network("2001:db8:1234:f::/64"): IPv6Network("fd00:a::/64"),
    IPv6Network("2001:db8:1234:e::/64"): IPv6Network("fd00:b::/64"),
}
DISPATCH_PATH = "/repos/octo/infra/actions/workflows/prefix.yml/dispatches"


def _dispatch_app(requests: List[Dict[str, Any]], status: int) -> web.Application:
    async def dispatch(request: web.Request) -> web.Response:
        requests.append({"path": request.path, "headers": dict(request.headers), "body": await request.json()})
        if status == 204:
            return web.Response(status=204)
        return web.json_response({"message": "Bad credentials"}, status=status)

    app = web.Application()
    app.router.add_post(DISPATCH_PATH, dispatch)
    return app


def test_mapping_to_json():
    assert json.loads(mapping_to_json(MAPPING)) == {
        "2001:db8:1234:f::/64": "fd00:a::/64",
        "2001:db8:1234:e::/64": "fd00:b::/64",
    }
    assert mapping_to_json({}) == "{}"


def test_url():
    notifier = WorkflowNotifier("token", "octo", "infra", "prefix.yml")
    assert notifier.url == "https://api.github.com" + DISPATCH_PATH

    notifier = WorkflowNotifier("token", "octo", "infra", "prefix.yml", api_url="https://ghe.example.com/api/v3/")
    assert notifier.url == "https://ghe.example.com/api/v3" + DISPATCH_PATH


def test_payload():
    notifier = WorkflowNotifier("token", "octo", "infra", "prefix.yml", ref="production")
    payload = notifier.payload(PREFIX, MAPPING)

    assert payload["ref"] == "production"
    assert payload["inputs"]["prefix"] == "2001:db8:1234::/60"
    # workflow inputs are strings only
    assert isinstance(payload["inputs"]["mapping"], str)
    assert json.loads(payload["inputs"]["mapping"]) == {
        "2001:db8:1234:f::/64": "fd00:a::/64",
        "2001:db8:1234:e::/64": "fd00:b::/64",
    }


@pytest.mark.asyncio
async def test_dispatch():
    requests: List[Dict[str, Any]] = []
    async with TestServer(_dispatch_app(requests, 204)) as server:
        notifier = WorkflowNotifier("s3cr3t", "octo", "infra", "prefix.yml", api_url=str(server.make_url("/")))
        await notifier.notify(PREFIX, MAPPING)

    assert len(requests) == 1
    request = requests[0]
    assert request["path"] == DISPATCH_PATH
    assert request["headers"]["Authorization"] == "Bearer s3cr3t"
    assert request["headers"]["Accept"] == "application/vnd.github+json"
    assert request["headers"]["X-GitHub-Api-Version"] == "2022-11-28"
    assert request["body"] == notifier.payload(PREFIX, MAPPING)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 401, 404, 422, 500])
async def test_dispatch_rejected(status: int):
    requests: List[Dict[str, Any]] = []
    async with TestServer(_dispatch_app(requests, status)) as server:
        notifier = WorkflowNotifier("s3cr3t", "octo", "infra", "prefix.yml", api_url=str(server.make_url("/")))
        with raises(NotifierError, match=str(status)):
            await notifier.notify(PREFIX, MAPPING)

    assert len(requests) == 1


@pytest.mark.asyncio
async def test_dispatch_unreachable():
    async with TestServer(web.Application()) as server:
        api_url = str(server.make_url("/"))
    # the server is gone now

    notifier = WorkflowNotifier("s3cr3t", "octo", "infra", "prefix.yml", api_url=api_url)
    with raises(NotifierError):
        await notifier.notify(PREFIX, MAPPING)


@pytest.mark.asyncio
async def test_dispatch_timeout():
    release = asyncio.Event()

    async def dispatch(request: web.Request) -> web.Response:
        await release.wait()
        return web.Response(status=204)

    app = web.Application()
    app.router.add_post(DISPATCH_PATH, dispatch)
    async with TestServer(app) as server:
        notifier = WorkflowNotifier(
            "s3cr3t", "octo", "infra", "prefix.yml", api_url=str(server.make_url("/")), timeout=0.2
        )
        with raises(NotifierError, match="timed out"):
            await notifier.notify(PREFIX, MAPPING)
        release.set()


@pytest.mark.asyncio
async def test_disabled_notifier():
    await DisabledNotifier().notify(PREFIX, MAPPING)
