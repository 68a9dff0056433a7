"""Image size sniffer reading pixel dimensions from truncated image data"""

import struct

from siteicons.exceptions import TruncatedDataError, UnsupportedFormatError
from siteicons.models import ImageType

ICO_SIGNATURE: bytes = b"\x00\x00\x01\x00"
PNG_SIGNATURE: bytes = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE: bytes = b"\xff\xd8\xff"
GIF_SIGNATURES: tuple[bytes, ...] = (b"GIF87a", b"GIF89a")
BMP_SIGNATURE: bytes = b"BM"
RIFF_SIGNATURE: bytes = b"RIFF"
WEBP_SIGNATURE: bytes = b"WEBP"

ICO_HEADER_SIZE: int = 6
ICO_ENTRY_SIZE: int = 16

# SOF markers carry the frame size; C4 (DHT), C8 (JPG) and CC (DAC) share the range.
JPEG_SOF_MARKERS: frozenset[int] = frozenset(range(0xC0, 0xD0)) - {0xC4, 0xC8, 0xCC}
# Markers without a length field
JPEG_STANDALONE_MARKERS: frozenset[int] = frozenset({0x01, *range(0xD0, 0xD9)})

SIGNATURES: tuple[bytes, ...] = (
    ICO_SIGNATURE,
    PNG_SIGNATURE,
    JPEG_SIGNATURE,
    *GIF_SIGNATURES,
    BMP_SIGNATURE,
    RIFF_SIGNATURE,
)


def _require(data: bytes, size: int, image_type: ImageType) -> None:
    if len(data) < size:
        raise TruncatedDataError(
            f"{image_type.name} header needs {size} bytes, only {len(data)} available"
        )


def _ico_size(data: bytes) -> tuple[int, int]:
    """Return the largest icon in the directory entries present in the prefix."""
    _require(data, ICO_HEADER_SIZE + ICO_ENTRY_SIZE, ImageType.ICO)
    (count,) = struct.unpack_from("<H", data, 4)
    if count == 0:
        raise UnsupportedFormatError("ICO directory has no entries")

    available = (len(data) - ICO_HEADER_SIZE) // ICO_ENTRY_SIZE
    sizes = []
    for index in range(min(count, available)):
        offset = ICO_HEADER_SIZE + index * ICO_ENTRY_SIZE
        width, height = data[offset], data[offset + 1]
        # 0 encodes 256 pixels
        sizes.append((width or 256, height or 256))
    return max(sizes, key=lambda size: size[0] * size[1])


def _png_size(data: bytes) -> tuple[int, int]:
    _require(data, 24, ImageType.PNG)
    if data[12:16] != b"IHDR":
        raise UnsupportedFormatError("PNG does not start with an IHDR chunk")
    width, height = struct.unpack_from(">II", data, 16)
    return width, height


def _gif_size(data: bytes) -> tuple[int, int]:
    _require(data, 10, ImageType.GIF)
    width, height = struct.unpack_from("<HH", data, 6)
    return width, height


def _bmp_size(data: bytes) -> tuple[int, int]:
    _require(data, 18, ImageType.BMP)
    (header_size,) = struct.unpack_from("<I", data, 14)
    if header_size == 12:
        # OS/2 BITMAPCOREHEADER
        _require(data, 22, ImageType.BMP)
        width, height = struct.unpack_from("<HH", data, 18)
        return width, height

    _require(data, 26, ImageType.BMP)
    width, height = struct.unpack_from("<ii", data, 18)
    # Negative height marks a top-down bitmap
    return abs(width), abs(height)


def _jpeg_size(data: bytes) -> tuple[int, int]:
    """Walk the marker segments up to the first start-of-frame."""
    offset = 2
    while True:
        _require(data, offset + 2, ImageType.JPEG)
        if data[offset] != 0xFF:
            raise UnsupportedFormatError(f"Invalid JPEG marker at offset {offset}")
        marker = data[offset + 1]
        if marker == 0xFF:
            # Fill byte
            offset += 1
            continue
        if marker in JPEG_STANDALONE_MARKERS:
            offset += 2
            continue
        if marker == 0xD9:
            raise UnsupportedFormatError("JPEG ended before a frame header")

        _require(data, offset + 4, ImageType.JPEG)
        (length,) = struct.unpack_from(">H", data, offset + 2)
        if marker in JPEG_SOF_MARKERS:
            _require(data, offset + 9, ImageType.JPEG)
            height, width = struct.unpack_from(">HH", data, offset + 5)
            return width, height
        if length < 2:
            raise UnsupportedFormatError(f"Invalid JPEG segment length at offset {offset}")
        offset += 2 + length


def _webp_size(data: bytes) -> tuple[int, int]:
    _require(data, 16, ImageType.WEBP)
    chunk = data[12:16]
    if chunk == b"VP8 ":
        _require(data, 30, ImageType.WEBP)
        if data[23:26] != b"\x9d\x01\x2a":
            raise UnsupportedFormatError("Invalid VP8 frame start code")
        width, height = struct.unpack_from("<HH", data, 26)
        return width & 0x3FFF, height & 0x3FFF
    if chunk == b"VP8L":
        _require(data, 25, ImageType.WEBP)
        if data[20] != 0x2F:
            raise UnsupportedFormatError("Invalid VP8L signature")
        b0, b1, b2, b3 = data[21:25]
        width = 1 + (((b1 & 0x3F) << 8) | b0)
        height = 1 + (((b3 & 0x0F) << 10) | (b2 << 2) | ((b1 & 0xC0) >> 6))
        return width, height
    if chunk == b"VP8X":
        _require(data, 30, ImageType.WEBP)
        width = 1 + int.from_bytes(data[24:27], "little")
        height = 1 + int.from_bytes(data[27:30], "little")
        return width, height
    raise UnsupportedFormatError(f"Unknown WEBP chunk {chunk!r}")


def detect_image_type(data: bytes) -> ImageType:
    """Detect the image container format from its magic bytes.

    Raises:
        TruncatedDataError: if the data is empty or a proper prefix of a signature.
        UnsupportedFormatError: if no signature matches.
    """
    if data.startswith(ICO_SIGNATURE):
        return ImageType.ICO
    if data.startswith(PNG_SIGNATURE):
        return ImageType.PNG
    if data.startswith(JPEG_SIGNATURE):
        return ImageType.JPEG
    if data.startswith(GIF_SIGNATURES):
        return ImageType.GIF
    if data.startswith(BMP_SIGNATURE):
        return ImageType.BMP
    if data.startswith(RIFF_SIGNATURE) and len(data) >= 12:
        if data[8:12] == WEBP_SIGNATURE:
            return ImageType.WEBP
        raise UnsupportedFormatError(f"Unsupported RIFF container {data[8:12]!r}")

    if any(signature.startswith(data) for signature in SIGNATURES) or (
        data.startswith(RIFF_SIGNATURE)
    ):
        raise TruncatedDataError(f"{len(data)} bytes are not enough to detect the format")
    raise UnsupportedFormatError("No known image signature matches")


_SIZE_READERS = {
    ImageType.ICO: _ico_size,
    ImageType.PNG: _png_size,
    ImageType.JPEG: _jpeg_size,
    ImageType.GIF: _gif_size,
    ImageType.BMP: _bmp_size,
    ImageType.WEBP: _webp_size,
}


def sniff(data: bytes) -> tuple[ImageType, int, int]:
    """Return the image type and pixel width and height read from a byte prefix.

    Only the container header is parsed, nothing is decoded.

    Raises:
        UnsupportedFormatError: if the format is not recognised.
        TruncatedDataError: if the prefix ends before the needed header fields.
    """
    image_type = detect_image_type(data)
    width, height = _SIZE_READERS[image_type](data)
    return image_type, width, height
