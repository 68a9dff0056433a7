# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Unit tests for the scanner.py module."""

import types
from typing import Any

import pytest

from siteicons.models import CandidateReference
from siteicons.scanner import (
    TagEvent,
    build_attribute_map,
    decode_markup,
    inspect_element,
    iter_tag_events,
    scan_markup,
)


def _values(markup) -> list[str]:
    return [candidate.value for candidate in scan_markup(markup)]


class TestLinkElements:
    """Tests for icon references in <link> elements."""

    @pytest.mark.parametrize(
        "markup",
        [
            '<link rel="icon" href="/a.png">',
            '<link href="/a.png" rel="icon">',
            '<link\n    rel = "icon"\n\thref="/a.png"  />',
            "<link rel=icon href=/a.png>",
        ],
        ids=["plain", "reordered", "whitespace", "unquoted"],
    )
    def test_link_icon_emitted(self, markup):
        """Test that a link icon is found regardless of whitespace and attribute order."""
        assert _values(markup) == ["/a.png"]

    def test_case_insensitive_names_and_keywords(self):
        """Test that upper case markup yields the same candidate."""
        upper = list(scan_markup('<LINK REL="ICON" HREF="/a.png">'))
        lower = list(scan_markup('<link rel="icon" href="/a.png">'))

        assert upper == lower
        assert upper == [CandidateReference(value="/a.png", element="link", key="icon")]

    @pytest.mark.parametrize("rel", ["shortcut icon", "Shortcut Icon", " shortcut   icon "])
    def test_shortcut_icon(self, rel):
        """Test that 'shortcut icon' matches with any casing and spacing."""
        candidates = list(scan_markup(f'<link rel="{rel}" href="/favicon.ico">'))

        assert candidates == [
            CandidateReference(value="/favicon.ico", element="link", key="shortcut icon")
        ]

    def test_apple_touch_icon(self):
        """Test that apple touch icons are found."""
        assert _values('<link rel="apple-touch-icon" href="/apple.png">') == ["/apple.png"]

    def test_value_casing_preserved(self):
        """Test that the emitted URL keeps its original casing."""
        assert _values('<link rel="ICON" href="/Static/Icon.PNG">') == ["/Static/Icon.PNG"]

    @pytest.mark.parametrize(
        "markup",
        [
            '<link rel="stylesheet" href="/style.css">',
            '<link rel="manifest" href="/manifest.json">',
            '<link rel="icon">',
            '<link rel="icon" href="   ">',
            '<link href="/a.png">',
            '<a rel="icon" href="/a.png">link</a>',
        ],
    )
    def test_not_emitted(self, markup):
        """Test elements that do not reference an icon."""
        assert _values(markup) == []


class TestMetaElements:
    """Tests for icon references in <meta> elements."""

    @pytest.mark.parametrize(
        "name",
        [
            "msapplication-TileImage",
            "msapplication-square70x70logo",
            "msapplication-square150x150logo",
            "msapplication-square310x310logo",
            "msapplication-wide310x150logo",
            "MSAPPLICATION-TILEIMAGE",
        ],
    )
    def test_tile_images(self, name):
        """Test that every Windows tile image name is recognised."""
        assert _values(f'<meta name="{name}" content="/tile.png">') == ["/tile.png"]

    def test_og_image(self):
        """Test that Open Graph images are found."""
        candidates = list(
            scan_markup('<meta property="og:image" content="https://cdn.example.com/og.png">')
        )

        assert candidates == [
            CandidateReference(
                value="https://cdn.example.com/og.png", element="meta", key="og:image"
            )
        ]

    def test_name_and_property_both_fire(self):
        """Test that the name and property rules are independent."""
        markup = (
            '<meta name="msapplication-TileImage" property="og:image" content="/both.png">'
        )
        candidates = list(scan_markup(markup))

        assert [candidate.key for candidate in candidates] == [
            "msapplication-tileimage",
            "og:image",
        ]
        assert {candidate.value for candidate in candidates} == {"/both.png"}

    @pytest.mark.parametrize(
        "markup",
        [
            '<meta name="description" content="A page">',
            '<meta property="og:title" content="Title">',
            '<meta name="msapplication-TileImage">',
            '<meta charset="utf-8">',
        ],
    )
    def test_not_emitted(self, markup):
        """Test meta elements that do not reference an icon."""
        assert _values(markup) == []


class TestScanMarkup:
    """Tests for scanning whole documents."""

    def test_full_document(self):
        """Test a realistic page head."""
        html = """
        <!DOCTYPE html>
        <html>
          <head>
            <meta charset="utf-8">
            <title>Example</title>
            <link rel="stylesheet" href="/style.css">
            <link rel="icon" type="image/png" sizes="32x32" href="/favicon-32x32.png">
            <link rel="apple-touch-icon" sizes="180x180" href="/apple-touch-icon.png" />
            <meta name="msapplication-TileImage" content="/mstile-144x144.png">
            <meta property="og:image" content="https://cdn.example.com/og.png">
            <script>var s = '<link rel="icon" href="/in-script.png">';</script>
          </head>
          <body><p>Hello</p></body>
        </html>
        """

        assert _values(html) == [
            "/favicon-32x32.png",
            "/apple-touch-icon.png",
            "/mstile-144x144.png",
            "https://cdn.example.com/og.png",
        ]

    def test_malformed_markup_does_not_abort(self):
        """Test that broken markup around an icon reference does not end the scan."""
        html = (
            "<html><head><div <<>> </foo></bar>< p>&bogus;"
            '<link rel="apple-touch-icon" href="/apple.png"><!-- never closed'
        )

        assert _values(html) == ["/apple.png"]

    @pytest.mark.parametrize(
        "section",
        ["<![foo[ x ]]>", "<![ 1 ]>", "<![if !IE]><p>old</p><![endif]>", "<![CDATA[ x ]]>"],
        ids=["unknown-keyword", "missing-keyword", "conditional", "cdata"],
    )
    def test_marked_sections_do_not_abort(self, section):
        """Test that icon references on both sides of a marked section are found."""
        html = f'<link rel="icon" href="/a.png">{section}<link rel="icon" href="/b.png">'

        assert _values(html) == ["/a.png", "/b.png"]

    def test_unknown_marked_section_is_logged(self, caplog):
        """Test that a rejected marked section is reported at warning level."""
        list(scan_markup('<![foo[ x ]]><link rel="icon" href="/a.png">'))

        assert "Skipping malformed marked section" in caplog.text

    def test_entities_are_unescaped(self):
        """Test that character references in attribute values are decoded."""
        assert _values('<link rel="icon" href="/icon.png?a=1&amp;b=2">') == [
            "/icon.png?a=1&b=2"
        ]

    def test_bytes_are_decoded(self):
        """Test that raw bytes are decoded before scanning."""
        html = '<meta charset="latin-1"><link rel="icon" href="/caf\xe9.png">'.encode("latin-1")

        assert _values(html) == ["/caf\xe9.png"]

    def test_chunks_are_scanned_lazily(self):
        """Test that candidates are yielded before later chunks are read."""
        consumed = []

        def chunks():
            for chunk in [
                '<link rel="icon" ',
                'href="/a.png">',
                '<link rel="icon" href="/b.png">',
            ]:
                consumed.append(chunk)
                yield chunk

        scan = scan_markup(chunks())
        assert isinstance(scan, types.GeneratorType)
        assert consumed == []

        assert next(scan).value == "/a.png"
        assert len(consumed) == 2
        assert [candidate.value for candidate in scan] == ["/b.png"]

    def test_empty_markup(self):
        """Test that empty input yields no candidates."""
        assert _values("") == []

    def test_failing_element_is_logged_and_skipped(self, mocker, caplog):
        """Test that an error while inspecting one element does not stop the scan."""
        original = inspect_element

        def flaky(event):
            if event.name == "link" and ("href", "/bad.png") in event.attrs:
                raise ValueError("boom")
            return original(event)

        mocker.patch("siteicons.scanner.inspect_element", side_effect=flaky)
        html = '<link rel="icon" href="/bad.png"><link rel="icon" href="/good.png">'

        assert _values(html) == ["/good.png"]
        assert "Skipping malformed <link> element" in caplog.text


class TestHelpers:
    """Tests for the scanner building blocks."""

    def test_iter_tag_events_self_closing(self):
        """Test that self-closing and opening tags are both reported."""
        events = list(iter_tag_events(['<link rel="icon"/><meta name="x"></meta>']))

        assert events == [
            TagEvent("link", [("rel", "icon")], self_closing=True),
            TagEvent("meta", [("name", "x")], self_closing=False),
        ]

    def test_build_attribute_map_lowercases_names(self):
        """Test that attribute names are lowercased and values kept as-is."""
        assert build_attribute_map([("REL", "ICON"), ("Href", "/A.png")]) == {
            "rel": "ICON",
            "href": "/A.png",
        }

    def test_build_attribute_map_skips_bad_attributes(self):
        """Test that unusable attributes are skipped individually."""
        attrs: Any = [("async", None), ("rel", "icon"), ("broken",), ("href", "/a.png")]

        assert build_attribute_map(attrs) == {"rel": "icon", "href": "/a.png"}

    def test_inspect_element_ignores_other_elements(self):
        """Test that only link and meta elements are inspected."""
        assert inspect_element(TagEvent("img", [("rel", "icon"), ("href", "/a")], False)) == []

    def test_decode_markup_prefers_declared_encoding(self):
        """Test that the declared charset is used to decode the page."""
        content = "<title>über</title>".encode("utf-8")

        assert decode_markup(content, "utf-8") == "<title>über</title>"
