import pytest

from marktree.errors import InvalidArgumentError
from marktree.tokenizer import ChunkKind, Tokenizer, tokenize


def _kinds(chunks):
    return [(c.kind, c.tag) for c in chunks]


def test_text_whitespace_collapses_to_single_spaces():
    chunks = tokenize(b"  hello \n\t world  <b>")
    assert chunks[0].is_text
    assert chunks[0].text == " hello world "
    assert chunks[1].is_open_tag and chunks[1].tag == "b"


def test_whitespace_between_tags_is_a_single_space_chunk():
    chunks = tokenize(b"<a>\r\n   <b>")
    assert _kinds(chunks) == [
        (ChunkKind.OPEN_TAG, "a"),
        (ChunkKind.TEXT, ""),
        (ChunkKind.OPEN_TAG, "b"),
    ]
    assert chunks[1].text == " "


def test_attributes_are_lowercased_unquoted_and_ordered():
    (chunk,) = tokenize(b'<A HREF="x y" add_date=5 Checked>')
    assert chunk.tag == "a"
    assert chunk.params == (("href", "x y"), ("add_date", "5"), ("checked", ""))


def test_single_quotes_and_gt_inside_quotes():
    (chunk,) = tokenize(b"<a title='a > b'>")
    assert chunk.attributes == {"title": "a > b"}


def test_attribute_value_keeps_case():
    (chunk,) = tokenize(b'<DT Data="MiXeD">')
    assert chunk.tag == "dt"
    assert chunk.attributes["data"] == "MiXeD"


def test_first_attribute_occurrence_wins():
    (chunk,) = tokenize(b"<a x=1 x=2>")
    assert chunk.params == (("x", "1"), ("x", "2"))
    assert chunk.attributes == {"x": "1"}


def test_closing_tag():
    (chunk,) = tokenize(b"</DL>")
    assert chunk.is_close_tag
    assert chunk.tag == "dl"


def test_self_closing_slash_is_not_part_of_value():
    (chunk,) = tokenize(b"<a href=x/>")
    assert chunk.is_open_tag
    assert chunk.self_closing
    assert chunk.attributes == {"href": "x"}


def test_slash_inside_unquoted_value_is_kept():
    (chunk,) = tokenize(b"<a href=http://example.com/x>")
    assert chunk.attributes == {"href": "http://example.com/x"}
    assert not chunk.self_closing


def test_comment_ignores_gt_until_double_dash():
    chunks = tokenize(b"<!-- a > b -->text")
    assert chunks[0].is_comment
    assert chunks[0].text == " a > b "
    assert chunks[1].is_text and chunks[1].text == "text"


def test_empty_comment():
    chunks = tokenize(b"<!---->x")
    assert chunks[0].is_comment
    assert chunks[0].text == ""
    assert chunks[1].text == "x"


def test_comment_does_not_decode_entities():
    (chunk,) = tokenize(b"<!--&amp;-->")
    assert chunk.text == "&amp;"


def test_named_entities_and_nbsp():
    (chunk,) = tokenize(b"&lt;&nbsp;&gt;")
    assert chunk.text == "< >"


@pytest.mark.parametrize(
    "raw, text",
    [
        (b"A&nbsp; B", "A B"),
        (b"A &nbsp;&nbsp;B", "A B"),
        (b"line&#10;two", "line two"),
        (b"a&#9;&#x9;\tb", "a b"),
    ],
)
def test_whitespace_entities_collapse_like_whitespace(raw, text):
    (chunk,) = tokenize(raw)
    assert chunk.text == text


def test_whitespace_entity_before_tag():
    chunks = tokenize(b"x&nbsp;<b>")
    assert chunks[0].text == "x "
    assert chunks[1].tag == "b"


def test_attribute_run_starting_with_equals():
    (chunk,) = tokenize(b"<a =odd ==b=c == href=x>")
    assert chunk.params == (("odd", ""), ("b", ""), ("href", "x"))


def test_numeric_entities():
    (chunk,) = tokenize(b"&#65;&#x42;&#67")
    assert chunk.text == "ABC"


@pytest.mark.parametrize(
    "raw",
    [
        b"&foo;",  # unknown name
        b"&amp",  # no terminating ';'
        b"&#x41",  # hex needs ';'
        b"&#0;",  # not a character
        b"&AMP;",  # names are case sensitive
    ],
)
def test_failed_entities_are_kept_literally(raw):
    (chunk,) = tokenize(raw)
    assert chunk.text == raw.decode("ascii")


def test_decoded_gt_is_dropped_inside_quotes():
    (chunk,) = tokenize(b"<a href='&gt;12c%233'>")
    assert chunk.attributes == {"href": "12c%233"}


def test_decoded_gt_ends_unquoted_tag():
    chunks = tokenize(b"<a b=1&gt;rest")
    assert chunks[0].attributes == {"b": "1"}
    assert chunks[1].text == "rest"


def test_decoded_quote_is_literal():
    (chunk,) = tokenize(b'<a title=say&quot;hi&quot;>')
    assert chunk.attributes == {"title": 'say"hi"'}


def test_utf8_text_survives():
    (chunk,) = tokenize("Żółw – ok".encode("utf-8"))
    assert chunk.text == "Żółw – ok"


def test_unterminated_tag_is_returned_best_effort():
    (chunk,) = tokenize(b'<a href="x')
    assert chunk.is_open_tag
    assert chunk.attributes == {"href": "x"}


def test_unterminated_closing_tag():
    (chunk,) = tokenize(b"</dl")
    assert chunk.is_close_tag
    assert chunk.tag == "dl"


def test_peek_and_step_back():
    tok = Tokenizer(b"<a>x</a>")
    first = tok.next_chunk()
    peeked = tok.peek_next()
    assert peeked is not None and peeked.text == "x"
    assert tok.next_chunk() == peeked

    tok.step_back(first)
    assert tok.next_chunk() == first
    assert tok.next_chunk().text == "x"
    assert tok.next_chunk().is_close_tag
    assert tok.next_chunk() is None
    assert tok.peek_next() is None


def test_chunks_stay_valid_after_later_calls():
    tok = Tokenizer(b"<a href=1><b>")
    first = tok.next_chunk()
    tok.next_chunk()
    assert first.tag == "a"
    assert first.attributes == {"href": "1"}


def test_iteration_and_positions():
    chunks = list(Tokenizer(b"ab<c>"))
    assert [c.position for c in chunks] == [0, 2]


def test_empty_input():
    assert tokenize(b"") == []
    assert tokenize(b"   ") == []


def test_none_input_raises():
    with pytest.raises(InvalidArgumentError):
        Tokenizer(None)
