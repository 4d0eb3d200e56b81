"""Tests for argument quoting, unquoting, and command-line tokenizing."""

import pytest

from mpdline.errors import MPDProtocolError
from mpdline.quoting import quote, render_arg, split_args, unquote


class TestQuote:
    def test_bare_word(self):
        assert quote("status") == "status"

    def test_path_without_spaces_is_bare(self):
        assert quote("Artist/Album/01.flac") == "Artist/Album/01.flac"

    def test_space_is_quoted(self):
        assert quote("a b") == '"a b"'

    def test_tab_is_quoted(self):
        assert quote("a\tb") == '"a\tb"'

    def test_quote_is_escaped(self):
        assert quote('say "hi"') == '"say \\"hi\\""'

    def test_backslash_is_escaped(self):
        assert quote("a\\b") == '"a\\\\b"'

    def test_empty_string(self):
        assert quote("") == '""'

    def test_unicode_bare(self):
        assert quote("Motörhead") == "Motörhead"


class TestUnquote:
    def test_bare_passthrough(self):
        assert unquote("plain") == "plain"

    def test_quoted(self):
        assert unquote('"a b"') == "a b"

    def test_escapes_removed(self):
        assert unquote('"say \\"hi\\" \\\\o/"') == 'say "hi" \\o/'

    def test_unterminated_raises(self):
        with pytest.raises(MPDProtocolError, match="Unterminated"):
            unquote('"abc')

    def test_dangling_backslash_raises(self):
        with pytest.raises(MPDProtocolError):
            unquote('"abc\\')

    def test_trailing_characters_raise(self):
        with pytest.raises(MPDProtocolError, match="Trailing"):
            unquote('"abc"def')


class TestRoundTrip:
    @pytest.mark.parametrize(
        "value",
        [
            "",
            "simple",
            "with space",
            '"',
            "\\",
            '\\"',
            'mixed "quotes" and \\slashes\\',
            "control\x00\x01\x1f bytes",
            "new\nline",
            "  leading and trailing  ",
            "ünïcödé ♫",
        ],
    )
    def test_unquote_reverses_quote(self, value):
        assert unquote(quote(value)) == value

    def test_split_args_reverses_quote_per_word(self):
        words = ["add", "My Music/a b.flac", 'x"y', "", "z\\"]
        line = " ".join(quote(w) for w in words)
        assert split_args(line) == words


class TestSplitArgs:
    def test_bare_words(self):
        assert split_args("play 3") == ["play", "3"]

    def test_quoted_word(self):
        assert split_args('add "My Music/a b.flac"') == ["add", "My Music/a b.flac"]

    def test_extra_whitespace(self):
        assert split_args("  seek   1   20  ") == ["seek", "1", "20"]

    def test_empty_line(self):
        assert split_args("") == []

    def test_missing_space_after_quote_raises(self):
        with pytest.raises(MPDProtocolError, match="Missing space"):
            split_args('find "a"b')


class TestRenderArg:
    def test_true(self):
        assert render_arg(True) == "1"

    def test_false(self):
        assert render_arg(False) == "0"

    def test_int(self):
        assert render_arg(42) == "42"

    def test_negative_int(self):
        assert render_arg(-5) == "-5"

    def test_float(self):
        assert render_arg(1.5) == "1.5"

    def test_whole_float(self):
        assert render_arg(20.0) == "20"

    def test_range(self):
        assert render_arg((3, 7)) == "3:7"

    def test_open_range(self):
        assert render_arg((3, None)) == "3:"

    def test_bad_range_raises(self):
        with pytest.raises(TypeError):
            render_arg((1, 2, 3))

    def test_string_is_quoted(self):
        assert render_arg("a b") == '"a b"'

    def test_bytes_decoded(self):
        assert render_arg(b"x y") == '"x y"'

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError, match="Unsupported"):
            render_arg(object())
