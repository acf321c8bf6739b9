"""Tests for page text and metadata extraction."""

import json

from fair_importer.fetchers.html_parser import (
    MAX_CONTENT_LENGTH,
    TRUNCATION_MARKER,
    extract_links,
    extract_metadata,
    extract_text_from_html,
    looks_like_html,
)

PAGE = """
<html>
<head>
  <title>  Lake County Fair 2025 </title>
  <meta name="description" content="Five days of rides, livestock and music.">
  <meta property="og:image" content="https://fair.org/og.jpg">
  <script type="application/ld+json">{"@type": "Organization", "name": "Fair Board"}</script>
  <script type="application/ld+json">{not valid json</script>
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@graph": [{"@type": "Festival", "name": "Lake County Fair"}]}
  </script>
  <style>body { color: red; }</style>
</head>
<body>
  <!-- navigation -->
  <h1>Lake County Fair</h1>
  <p>July 15 - 20, 2025<br>Gates open 10am</p>
  <ul><li>Rides</li><li>Livestock</li></ul>
  <noscript>Enable JavaScript</noscript>
  <script>var tracking = true;</script>
  <a href="/tickets">Tickets</a>
  <a href="https://fair.org/tickets">Tickets again</a>
  <a href="mailto:info@fair.org">Email</a>
  <a href="vendors.html">Vendors</a>
</body>
</html>
"""


class TestExtractText:
    """Tests for extract_text_from_html."""

    def test_strips_scripts_styles_and_comments(self) -> None:
        text = extract_text_from_html(PAGE)
        assert "tracking" not in text
        assert "color: red" not in text
        assert "navigation" not in text
        assert "Enable JavaScript" not in text

    def test_keeps_block_boundaries(self) -> None:
        """Test that block tags and <br> become line breaks."""
        lines = extract_text_from_html(PAGE).split("\n")
        assert "Lake County Fair" in lines
        assert "July 15 - 20, 2025" in lines
        assert "Gates open 10am" in lines
        assert "Rides" in lines

    def test_collapses_whitespace(self) -> None:
        text = extract_text_from_html("<div>  many\t\tspaces&nbsp;here  </div>")
        assert text == "many spaces here"

    def test_truncates_long_pages(self) -> None:
        html = "<p>" + "word " * 20000 + "</p>"
        text = extract_text_from_html(html)
        assert text.endswith(TRUNCATION_MARKER)
        assert len(text) == MAX_CONTENT_LENGTH + len(TRUNCATION_MARKER)


class TestExtractMetadata:
    """Tests for extract_metadata."""

    def test_title_description_and_image(self) -> None:
        metadata = extract_metadata(PAGE)
        assert metadata.title == "Lake County Fair 2025"
        assert metadata.description == "Five days of rides, livestock and music."
        assert metadata.og_image == "https://fair.org/og.jpg"

    def test_first_event_json_ld_block(self) -> None:
        """Test that non-event and malformed blocks are skipped."""
        metadata = extract_metadata(PAGE)
        assert metadata.json_ld == {"@type": "Festival", "name": "Lake County Fair"}

    def test_og_fallbacks(self) -> None:
        html = (
            '<html><head>'
            '<meta property="og:title" content="Harvest Fest">'
            '<meta property="og:description" content="Pumpkins and pie.">'
            '</head><body></body></html>'
        )
        metadata = extract_metadata(html)
        assert metadata.title == "Harvest Fest"
        assert metadata.description == "Pumpkins and pie."
        assert metadata.og_image is None
        assert metadata.json_ld is None

    def test_json_ld_list(self) -> None:
        block = json.dumps([{"@type": "Event", "name": "Rodeo"}])
        html = f'<script type="application/ld+json">{block}</script>'
        assert extract_metadata(html).json_ld["name"] == "Rodeo"


def test_extract_links() -> None:
    links = extract_links(PAGE, "https://fair.org/events/")
    assert links == [
        "https://fair.org/tickets",
        "https://fair.org/events/vendors.html",
    ]


def test_looks_like_html() -> None:
    assert looks_like_html(PAGE)
    assert looks_like_html("<div>Fair</div>")
    assert not looks_like_html("Lake County Fair\nJuly 15 - 20, 2025")
    assert not looks_like_html("")
