# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Module for test configurations for the unit test directory."""

from typing import Callable

import httpx
import pytest

from siteicons.utils.http_client import create_http_client
from tests.unit.utils import TEST_USER_AGENT, Handler, make_ico, make_image

RoutesFactory = Callable[[dict[str, Handler]], httpx.MockTransport]


@pytest.fixture(name="ico_16")
def fixture_ico_16() -> bytes:
    """Return an ICO file holding a single 16x16 icon."""
    return make_ico([(16, 16)])


@pytest.fixture(name="png_512")
def fixture_png_512() -> bytes:
    """Return a 512x512 PNG file."""
    return make_image("PNG", (512, 512))


@pytest.fixture(name="mock_transport")
def fixture_mock_transport() -> RoutesFactory:
    """Return a factory for a transport routing requests by exact URL.

    Unknown URLs get a 404. Every request is recorded on `transport.requests`.
    """

    def _create(routes: dict[str, Handler]) -> httpx.MockTransport:
        requests: list[httpx.Request] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            route = routes.get(str(request.url))
            if route is None:
                return httpx.Response(404, text="Not Found")
            response = route(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response

        transport = httpx.MockTransport(handler)
        transport.requests = requests  # type: ignore[attr-defined]
        return transport

    return _create


@pytest.fixture(name="mock_client")
def fixture_mock_client(mock_transport: RoutesFactory):
    """Return a factory for an `httpx.AsyncClient` backed by a mock transport.

    The transport is reachable as `client.mock_transport` for request assertions.
    """

    def _create(routes: dict[str, Handler]) -> httpx.AsyncClient:
        transport = mock_transport(routes)
        client = create_http_client(user_agent=TEST_USER_AGENT, transport=transport)
        client.mock_transport = transport  # type: ignore[attr-defined]
        return client

    return _create
