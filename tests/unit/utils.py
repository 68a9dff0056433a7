# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Image and HTTP helpers shared by the unit tests."""

import struct
from io import BytesIO
from typing import Awaitable, Callable

import httpx
from PIL import Image as PILImage

TEST_USER_AGENT = "siteicons-test/1.0"

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


def make_ico(sizes: list[tuple[int, int]]) -> bytes:
    """Build the header and directory of an ICO file; image data is not needed."""
    header = struct.pack("<HHH", 0, 1, len(sizes))
    offset = len(header) + 16 * len(sizes)
    entries = b"".join(
        struct.pack("<BBBBHHII", width % 256, height % 256, 0, 0, 1, 32, 1024, offset)
        for width, height in sizes
    )
    return header + entries + b"\x00" * 64


def make_image(image_format: str, size: tuple[int, int], **save_options) -> bytes:
    """Encode a solid colour image with Pillow."""
    buffer = BytesIO()
    PILImage.new("RGB", size, (200, 30, 60)).save(buffer, format=image_format, **save_options)
    return buffer.getvalue()


def html_response(body: str, content_type: str = "text/html; charset=utf-8") -> Handler:
    """Return a route serving `body` with the given content type."""
    return lambda request: httpx.Response(
        200, headers={"Content-Type": content_type}, content=body.encode("utf-8")
    )


def image_response(content: bytes, content_type: str = "image/png") -> Handler:
    """Return a route serving `content` in full, ignoring any Range header."""
    return lambda request: httpx.Response(
        200, headers={"Content-Type": content_type}, content=content
    )
