"""siteicons specific exceptions."""


class SiteIconsError(Exception):
    """Base class for errors raised while extracting site icons."""


class InvalidUrlError(SiteIconsError):
    """Raised for a malformed input URL or a candidate that cannot be resolved."""

    pass


class FetchError(SiteIconsError):
    """Raised when a request fails, times out or returns a non-2xx status."""

    pass


class SniffError(SiteIconsError):
    """Raised when image dimensions cannot be read from a byte prefix."""


class UnsupportedFormatError(SniffError):
    """Raised when no known image signature matches the data."""

    pass


class TruncatedDataError(SniffError):
    """Raised when the data stops before the header fields that are needed."""

    pass
