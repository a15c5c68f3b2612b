"""Unit tests for resource name validation and markup stripping."""
import pytest

from thing_api.kinds import THING, TOKEN
from thing_api.sanitize import strip_markup, validate_name


class TestValidateName:

    @pytest.mark.parametrize('name', ['abcde', 'my new thing', '~!@#$%^&*()', 'x' * 500])
    def test_valid_thing_names(self, name):
        assert validate_name(name, THING) == name

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match='required'):
            validate_name('', THING)

    @pytest.mark.parametrize('name', ['a', 'ab', 'abcd'])
    def test_too_short(self, name):
        with pytest.raises(ValueError, match='at least 5'):
            validate_name(name, THING)

    @pytest.mark.parametrize('name', ['café latte', 'tab\there', 'line\nbreak', 'nul\x00byte', 'del\x7fchar'])
    def test_non_printable_ascii(self, name):
        with pytest.raises(ValueError, match='non-printable-ASCII'):
            validate_name(name, THING)

    def test_thing_allows_semicolon(self):
        assert validate_name('a;b;c;d', THING) == 'a;b;c;d'

    def test_token_forbids_semicolon(self):
        with pytest.raises(ValueError, match='disallowed'):
            validate_name('a;b;c;d', TOKEN)

    def test_token_max_length(self):
        assert validate_name('x' * 64, TOKEN)
        with pytest.raises(ValueError, match='exceeds 64'):
            validate_name('x' * 65, TOKEN)


class TestStripMarkup:

    def test_plain_text_unchanged(self):
        assert strip_markup('my new thing') == 'my new thing'

    def test_tags_removed(self):
        assert strip_markup('<b>bold</b> and <i>italic</i>') == 'bold and italic'

    def test_attributes_removed(self):
        assert strip_markup('<a href="javascript:alert(1)" onclick="x()">link</a>') == 'link'

    def test_script_content_dropped(self):
        assert strip_markup('safe<script>alert("x")</script> name') == 'safe name'

    def test_style_content_dropped(self):
        assert strip_markup('<style>body { color: red }</style>styled') == 'styled'

    def test_comments_removed(self):
        assert strip_markup('before<!-- hidden -->after') == 'beforeafter'

    def test_self_closing(self):
        assert strip_markup('one<br/>two<img src=x onerror=y>') == 'onetwo'

    def test_text_is_escaped(self):
        assert strip_markup('Tom &amp; Jerry') == 'Tom &amp; Jerry'
        assert strip_markup('Tom & Jerry') == 'Tom &amp; Jerry'
        assert strip_markup('a < b > c') == 'a &lt; b &gt; c'

    def test_escaped_markup_stays_escaped(self):
        name = '&lt;script&gt;alert(1)&lt;/script&gt;'
        assert strip_markup(name) == '&lt;script&gt;alert(1)&lt;/script&gt;'

    def test_unterminated_trailing_tag_dropped(self):
        assert strip_markup('hello<img src=x onerror=alert(1)') == 'hello'
        assert strip_markup('hello<') == 'hello'

    def test_output_never_contains_tag_brackets(self):
        for name in (
            '&lt;b&gt;bold&lt;/b&gt;',
            '&#60;img src=x&#62;',
            'x<b>y</b><i',
            '<scr<script>ipt>alert(1)</script>',
        ):
            out = strip_markup(name)
            assert '<' not in out and '>' not in out, out

    def test_only_markup_becomes_empty(self):
        assert strip_markup('<div><span></span></div>') == ''
