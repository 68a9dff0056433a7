"""Discover and validate the icons a webpage references."""

from siteicons.exceptions import (
    FetchError,
    InvalidUrlError,
    SiteIconsError,
    SniffError,
    TruncatedDataError,
    UnsupportedFormatError,
)
from siteicons.models import CandidateReference, ImageDescriptor, ImageType
from siteicons.pipeline import IconExtractor, extract_icons, extract_icons_sync, probe_image

__all__ = [
    "CandidateReference",
    "FetchError",
    "IconExtractor",
    "ImageDescriptor",
    "ImageType",
    "InvalidUrlError",
    "SiteIconsError",
    "SniffError",
    "TruncatedDataError",
    "UnsupportedFormatError",
    "extract_icons",
    "extract_icons_sync",
    "probe_image",
]
