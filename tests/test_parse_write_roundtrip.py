from datetime import datetime, timezone

import pytest

from marktree.model import BookmarkFolder, BookmarkLink
from marktree.parse_netscape import parse_netscape
from marktree.writer_netscape import render_netscape, write_netscape


def _roundtrip(root: BookmarkFolder) -> BookmarkFolder:
    return parse_netscape(write_netscape(root))


def test_empty_document_roundtrip():
    root = _roundtrip(BookmarkFolder())
    assert len(root) == 0
    assert root.attributes == {}
    assert root.title is None


def test_sample_export_is_stable_after_one_cycle(sample_bookmarks_bytes):
    first = write_netscape(parse_netscape(sample_bookmarks_bytes))
    second = write_netscape(parse_netscape(first))
    assert first == second


def test_custom_attributes_roundtrip():
    link = BookmarkLink(url="http://example.com", title="Example", attributes={"custom": "1", "add_date": "5"})
    folder = BookmarkFolder(title="Folder", attributes={"personal_toolbar_folder": "true"})
    folder.add(link)
    root = BookmarkFolder()
    root.add(folder)

    parsed = _roundtrip(root)
    parsed_folder = parsed[0]
    parsed_link = parsed_folder[0]
    assert parsed_folder.attributes == {"personal_toolbar_folder": "true"}
    assert parsed_link.attributes["custom"] == "1"
    # add_date lives only in the typed field, which was empty.
    assert "add_date" not in parsed_link.attributes
    assert parsed_link.added is None


def test_typed_fields_roundtrip():
    when = datetime(2022, 1, 1, 8, 30, tzinfo=timezone.utc)
    link = BookmarkLink(
        url="http://example.com/?a=1&b=2",
        title='Quote " and ampersand &',
        added=when,
        last_modified=when,
        last_visit=when,
        icon_url="http://example.com/favicon.ico",
        icon_data=b"\x89PNG",
        icon_content_type="image/png",
        feed_url="http://example.com/rss",
        description="<br>",
    )
    root = BookmarkFolder()
    root.add(link)

    (parsed,) = _roundtrip(root)
    assert parsed.url == link.url
    assert parsed.title == link.title
    assert parsed.added == when
    assert parsed.last_modified == when
    assert parsed.last_visit == when
    assert parsed.icon_url == link.icon_url
    assert parsed.icon_data == link.icon_data
    assert parsed.icon_content_type == "image/png"
    assert parsed.feed_url == link.feed_url
    assert parsed.description == "<br>"


def test_child_order_survives():
    root = BookmarkFolder()
    titles = ["zeta", "alpha", "mid", "beta"]
    for t in titles:
        root.add(BookmarkLink(url=f"http://{t}.example/", title=t))
    root.add(BookmarkFolder(title="last"))
    parsed = _roundtrip(root)
    assert [i.title for i in parsed] == titles + ["last"]


def test_non_utf8_roundtrip_keeps_text():
    root = BookmarkFolder()
    root.add(BookmarkLink(url="http://example.lt/", title="ĄČĘĖįšųū"))
    for encoding in ("utf-16", "utf-32", "windows-1257"):
        data = write_netscape(root, encoding=encoding)
        assert parse_netscape(data)[0].title == "ĄČĘĖįšųū"


def test_write_parse_write_is_identical_for_built_tree():
    root = BookmarkFolder()
    folder = BookmarkFolder(title="f", added=datetime(2020, 5, 5, tzinfo=timezone.utc))
    folder.add(BookmarkLink(url="u", title=None, description="line one"))
    root.add(folder)
    first = render_netscape(root)
    assert render_netscape(parse_netscape(first)) == first


_DOC = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
<DL><p>
{body}
</DL><p>
"""


@pytest.mark.parametrize(
    "body",
    [
        '<DT><A HREF="javascript:if(a>b)alert(1)">bm</A>',
        '<DT><A HREF="x">A&nbsp; B</A>',
        '<DT><A HREF="x">line&#10;two</A>',
        '<DT><A HREF="x" =odd ==>t</A>',
        "<DT><A HREF=\"x\" NOTE='it\"s &amp; <ok>'>t</A>",
        '<DT><A HREF="x">t</A>\n<DD>a&#9;&#9;b&nbsp;',
        '<DT><H3 FOLDED>Folder &amp; co</H3>\n<DL><p><DT><A HREF=u>x</A></DL><p>',
    ],
)
def test_write_parse_write_is_stable(body):
    first = write_netscape(parse_netscape(_DOC.format(body=body)))
    second = write_netscape(parse_netscape(first))
    assert first == second


def test_raw_greater_than_in_url_survives_two_cycles():
    doc = _DOC.format(body='<DT><A HREF="javascript:if(a>b)alert(1)">bm</A>')
    (link,) = parse_netscape(write_netscape(parse_netscape(doc)))
    assert link.url == "javascript:if(a>b)alert(1)"
