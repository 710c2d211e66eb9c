"""Tests for :mod:`newswire.services.extractor`."""

from __future__ import annotations

from datetime import UTC, datetime

from newswire.config import SourceConfig
from newswire.services.extractor import (
    extract_image,
    extract_items,
    parse_published,
    strip_markup,
)

SOURCE = SourceConfig(label="Example", endpoint="https://example.com/rss")


def _item(
    title: str | None = "Story",
    link: str | None = "https://example.com/story",
    description: str | None = None,
    pub_date: str | None = None,
    extra: str = "",
) -> str:
    parts = ["<item>"]
    if title is not None:
        parts.append(f"<title>{title}</title>")
    if link is not None:
        parts.append(f"<link>{link}</link>")
    if description is not None:
        parts.append(f"<description>{description}</description>")
    if pub_date is not None:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    parts.append(extra)
    parts.append("</item>")
    return "".join(parts)


def _rss(*items: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/"><channel>'
        "<title>Example feed</title><link>https://example.com/</link>"
        + "".join(items)
        + "</channel></rss>"
    )


def test_extracts_fields_from_inline_elements() -> None:
    payload = _rss(
        _item(
            title="Tom &amp; Jerry",
            description="A short description",
            pub_date="Tue, 10 Jun 2025 14:30:00 GMT",
        )
    )

    items = extract_items(payload, SOURCE)

    assert len(items) == 1
    item = items[0]
    assert item.title == "Tom & Jerry"
    assert item.link == "https://example.com/story"
    assert item.summary == "A short description"
    assert item.published_at == datetime(2025, 6, 10, 14, 30, tzinfo=UTC)
    assert item.source_label == "Example"
    assert item.image_url is None


def test_prefers_cdata_blocks_for_title_and_description() -> None:
    payload = _rss(
        _item(
            title="<![CDATA[Markets <em>rally</em>]]>",
            description="<![CDATA[<p>Stocks rose <b>sharply</b>.</p>]]>",
        )
    )

    items = extract_items(payload, SOURCE)

    assert items[0].title == "Markets rally"
    assert items[0].summary == "Stocks rose sharply."


def test_entities_encoded_markup_is_stripped_from_description() -> None:
    payload = _rss(_item(description="&lt;p&gt;Hello &lt;b&gt;world&lt;/b&gt;&lt;/p&gt;"))

    assert extract_items(payload, SOURCE)[0].summary == "Hello world"


def test_entries_without_title_or_link_are_skipped() -> None:
    payload = _rss(
        _item(title=None, link="https://example.com/no-title"),
        _item(title="No link", link=None),
        _item(title="   ", link="https://example.com/blank-title"),
        _item(title="Valid", link="https://example.com/valid"),
    )

    items = extract_items(payload, SOURCE)

    assert [item.title for item in items] == ["Valid"]


def test_summary_is_cut_to_150_characters_after_markup_removal() -> None:
    description = "<![CDATA[<p>" + "a" * 250 + "<br/>" + "a" * 250 + "</p>]]>"
    payload = _rss(_item(description=description))

    summary = extract_items(payload, SOURCE)[0].summary

    assert summary == "a" * 150


def test_strip_markup_removes_tags_before_measuring() -> None:
    text = "<span>" * 40 + "x" * 10 + "</span>" * 40

    assert strip_markup(text) == "x" * 10
    assert strip_markup("plain " * 100, max_length=11) == "plain plain"
    assert strip_markup(None) == ""


def test_missing_or_invalid_date_falls_back_to_now() -> None:
    started = datetime.now(UTC)
    payload = _rss(
        _item(title="Undated", link="https://example.com/undated"),
        _item(title="Garbled", link="https://example.com/garbled", pub_date="sometime last week"),
    )

    items = extract_items(payload, SOURCE)

    assert [item.title for item in items] == ["Undated", "Garbled"]
    assert all(item.published_at >= started for item in items)


def test_parse_published_accepts_rfc822_and_iso8601() -> None:
    expected = datetime(2025, 6, 10, 14, 30, tzinfo=UTC)

    assert parse_published("Tue, 10 Jun 2025 14:30:00 GMT") == expected
    assert parse_published("Tue, 10 Jun 2025 16:30:00 +0200") == expected
    assert parse_published("2025-06-10T14:30:00Z") == expected
    assert parse_published("2025-06-10T16:30:00+02:00") == expected
    assert parse_published("2025-06-10T14:30:00") == expected
    assert parse_published("") is None
    assert parse_published("yesterday") is None


def test_out_of_range_dates_fall_back_to_now() -> None:
    started = datetime.now(UTC)
    payload = _rss(
        _item(title="Year one", link="https://example.com/1", pub_date="0001-01-01T00:00:00+05:00"),
        _item(title="Year end", link="https://example.com/2", pub_date="9999-12-31T23:00:00-02:00"),
    )

    items = extract_items(payload, SOURCE)

    assert [item.title for item in items] == ["Year one", "Year end"]
    assert all(item.published_at >= started for item in items)
    assert parse_published("0001-01-01T00:00:00+05:00") is None


def test_entities_are_decoded_only_once() -> None:
    payload = _rss(
        _item(title="AT&amp;amp;T earnings", description="Q&amp;amp;A &lt;b&gt;today&lt;/b&gt;"),
        _item(title="<![CDATA[Stocks &amp; <em>bonds</em>]]>", link="https://example.com/cdata"),
    )

    items = extract_items(payload, SOURCE)

    assert items[0].title == "AT&amp;T earnings"
    assert items[0].summary == "Q&amp;A today"
    assert items[1].title == "Stocks & bonds"


def test_per_source_cap_keeps_first_five_in_document_order() -> None:
    payload = _rss(
        *(_item(title=f"Story {index}", link=f"https://example.com/{index}") for index in range(12))
    )

    items = extract_items(payload, SOURCE)

    assert [item.title for item in items] == [f"Story {index}" for index in range(5)]


def test_atom_entries_are_supported() -> None:
    payload = (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<feed xmlns="http://www.w3.org/2005/Atom">'
        "<title>Atom feed</title>"
        '<link rel="self" href="https://example.com/atom.xml"/>'
        "<entry>"
        '<title type="html">Atom story</title>'
        '<link rel="self" href="https://example.com/api/1"/>'
        '<link rel="alternate" href="https://example.com/atom-story"/>'
        "<updated>2025-06-10T14:30:00Z</updated>"
        '<summary type="html">&lt;p&gt;Atom summary&lt;/p&gt;</summary>'
        "</entry>"
        "</feed>"
    )

    items = extract_items(payload, SOURCE)

    assert len(items) == 1
    assert items[0].title == "Atom story"
    assert items[0].link == "https://example.com/atom-story"
    assert items[0].summary == "Atom summary"
    assert items[0].published_at == datetime(2025, 6, 10, 14, 30, tzinfo=UTC)


def test_image_prefers_first_image_reference() -> None:
    thumbnail = '<media:thumbnail width="240" url="https://img.example.com/thumb.jpg"/>'
    audio = '<enclosure url="https://cdn.example.com/episode.mp3" type="audio/mpeg" length="1"/>'
    picture = "<enclosure url='https://img.example.com/photo.png' type='image/png'/>"

    assert extract_image(thumbnail + picture) == "https://img.example.com/thumb.jpg"
    assert extract_image(audio + picture) == "https://img.example.com/photo.png"
    assert extract_image(audio) is None

    items = extract_items(_rss(_item(extra=picture)), SOURCE)
    assert items[0].image_url == "https://img.example.com/photo.png"


def test_multiline_fields_are_collapsed() -> None:
    payload = _rss(
        _item(
            title="\n  A title\n  over lines\n",
            link="\n https://example.com/multi \n",
        )
    )

    items = extract_items(payload, SOURCE)

    assert items[0].title == "A title over lines"
    assert items[0].link == "https://example.com/multi"


def test_malformed_documents_do_not_raise() -> None:
    truncated = _rss(_item(title="Complete", link="https://example.com/ok"))[:-len("</channel></rss>")]
    truncated += "<item><title>Broken"

    assert [item.title for item in extract_items(truncated, SOURCE)] == ["Complete"]
    assert extract_items("this is not a feed at all", SOURCE) == []
    assert extract_items("", SOURCE) == []
