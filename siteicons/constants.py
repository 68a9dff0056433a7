"""Constants for site icon extraction"""

from dataclasses import dataclass


@dataclass(frozen=True)
class IconRule:
    """Emit `value_attribute` when `match_attribute` equals one of `keywords`.

    Keywords are stored lowercased and matched case-insensitively.
    """

    match_attribute: str
    keywords: frozenset[str]
    value_attribute: str


# Windows 8 tile images, compared lowercased
META_NAME_KEYWORDS: frozenset[str] = frozenset(
    {
        "msapplication-tileimage",
        "msapplication-square70x70logo",
        "msapplication-square150x150logo",
        "msapplication-square310x310logo",
        "msapplication-wide310x150logo",
    }
)

# Open Graph image
META_PROPERTY_KEYWORDS: frozenset[str] = frozenset({"og:image"})

LINK_REL_KEYWORDS: frozenset[str] = frozenset({"icon", "shortcut icon", "apple-touch-icon"})

# Element name -> rules checked independently against the element's attributes
ELEMENT_RULES: dict[str, tuple[IconRule, ...]] = {
    "meta": (
        IconRule(match_attribute="name", keywords=META_NAME_KEYWORDS, value_attribute="content"),
        IconRule(
            match_attribute="property",
            keywords=META_PROPERTY_KEYWORDS,
            value_attribute="content",
        ),
    ),
    "link": (
        IconRule(match_attribute="rel", keywords=LINK_REL_KEYWORDS, value_attribute="href"),
    ),
}

DEFAULT_FAVICON_PATH: str = "/favicon.ico"

HTML_CONTENT_TYPE: str = "text/html"

ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})

ALLOW_REDIRECTS: bool = True

# Probes only need enough of the resource to read the image header
PREFIX_BYTES: int = 100

MAX_PAGE_BYTES: int = 2 * 1024 * 1024

MAX_CONCURRENCY: int = 8

TIMEOUT: float = 10.0
