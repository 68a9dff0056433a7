"""Data models for site icon extraction"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from siteicons.constants import HTML_CONTENT_TYPE


class CandidateReference(BaseModel):
    """An unresolved icon reference as written in the page markup."""

    model_config = ConfigDict(frozen=True)

    value: str
    element: Literal["link", "meta", "fallback"]
    key: str = Field(description="Matched keyword, e.g. 'icon', 'og:image'")


class ImageType(str, Enum):
    """Image container formats recognised by the size sniffer."""

    ICO = "ico"
    PNG = "png"
    JPEG = "jpeg"
    GIF = "gif"
    BMP = "bmp"
    WEBP = "webp"

    @property
    def mime_type(self) -> str:
        """Return the registered MIME type of the format."""
        return _MIME_TYPES[self]


_MIME_TYPES: dict[ImageType, str] = {
    ImageType.ICO: "image/vnd.microsoft.icon",
    ImageType.PNG: "image/png",
    ImageType.JPEG: "image/jpeg",
    ImageType.GIF: "image/gif",
    ImageType.BMP: "image/bmp",
    ImageType.WEBP: "image/webp",
}


class ImageDescriptor(BaseModel):
    """A reachable image with its detected format and pixel dimensions."""

    model_config = ConfigDict(frozen=True)

    url: str
    image_type: ImageType
    width: int = Field(ge=0)
    height: int = Field(ge=0)


class PageResponse(BaseModel):
    """The page body fetched without a range restriction."""

    url: str = Field(description="Final URL after redirects")
    content_type: str
    content: bytes
    encoding: str | None = None

    def is_html(self) -> bool:
        """Return True if the content type marks the body as HTML."""
        return self.content_type.strip().lower().startswith(HTML_CONTENT_TYPE)


class PrefixResponse(BaseModel):
    """The leading bytes of a resource and the headers it was served with."""

    url: str
    status_code: int
    headers: dict[str, str]
    content: bytes
