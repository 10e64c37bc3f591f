"""Tests for description cleanup."""

from newsdigest.ingestion.text import MAX_DESCRIPTION_LENGTH, strip_markup, truncate


def test_empty_input():
    assert strip_markup(None) == ""
    assert strip_markup("") == ""


def test_script_and_style_blocks_are_removed_with_content():
    html = (
        "<p>Before</p><script type='text/javascript'>alert('x');</script>"
        "<STYLE>p { color: red; }</STYLE><p>After</p>"
    )

    assert strip_markup(html) == "Before After"


def test_tags_become_spaces_and_whitespace_collapses():
    html = "<div>\n  Hello<br/>world\t<b>again</b>  </div>"

    assert strip_markup(html) == "Hello world again"


def test_known_entities_are_decoded():
    html = "Tom&nbsp;&amp;&nbsp;Jerry &lt;3 &quot;cheese&quot; &#39;n&#39; &gt; all"

    assert strip_markup(html) == "Tom & Jerry <3 \"cheese\" 'n' > all"


def test_unknown_entities_are_left_alone():
    assert strip_markup("caf&eacute;") == "caf&eacute;"


def test_text_at_limit_is_kept_whole():
    text = "x" * MAX_DESCRIPTION_LENGTH

    assert strip_markup(text) == text


def test_long_text_is_truncated_with_ellipsis():
    result = strip_markup("word " * 100)

    assert len(result) == MAX_DESCRIPTION_LENGTH
    assert result.endswith("...")
    assert result[:-3] == ("word " * 100)[:297]


def test_truncate_custom_length():
    assert truncate("abcdefghij", 8) == "abcde..."
    assert truncate("abc", 8) == "abc"
