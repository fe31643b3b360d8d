from logging import WARNING

import pytest

from email_rfc2047 import decode_text, decode_phrase, ParsePosition
from email_rfc2047.decoder import Decoder, DecodeMode, scan_encoded_word, scan_quoted_string


class TestScanner:
    def test_encoded_word_q(self):
        encoded_word = scan_encoded_word(text='=?ISO-8859-1?q?J=F8rn?=', offset=0, mode=DecodeMode.TEXT)
        assert encoded_word.charset == 'ISO-8859-1'
        assert encoded_word.method == 'Q'
        assert encoded_word.payload == b'J\xf8rn'
        assert encoded_word.end == 23

    def test_encoded_word_requires_boundary(self):
        assert scan_encoded_word(text='x=?utf-8?Q?a?=', offset=1, mode=DecodeMode.TEXT) is None
        assert scan_encoded_word(text='(=?utf-8?Q?a?=)', offset=1, mode=DecodeMode.TEXT) is None
        assert scan_encoded_word(text='(=?utf-8?Q?a?=)', offset=1, mode=DecodeMode.PHRASE) is not None

    def test_q_payload_excludes_specials_in_phrase(self):
        assert scan_encoded_word(text='=?utf-8?Q?a.b?=', offset=0, mode=DecodeMode.TEXT) is not None
        assert scan_encoded_word(text='=?utf-8?Q?a.b?=', offset=0, mode=DecodeMode.PHRASE) is None

    @pytest.mark.parametrize(
        'payload',
        ['', 'QUJ', 'QQ==QQ==', 'QU=D', 'QUJD*', 'QUJD!A=='],
    )
    def test_base64_payload_must_be_full_groups(self, payload: str):
        assert scan_encoded_word(text=f'=?utf-8?B?{payload}?=', offset=0, mode=DecodeMode.TEXT) is None

    def test_oversized_encoded_word_payload_is_not_decoded(self):
        at_limit = scan_encoded_word(text=f'=?utf-8?Q?{"a" * 243}?=', offset=0, mode=DecodeMode.TEXT)
        assert at_limit.end == 255
        assert at_limit.payload == b'a' * 243

        oversized = scan_encoded_word(text=f'=?utf-8?B?{"QUJD" * 62}?=', offset=0, mode=DecodeMode.TEXT)
        assert oversized.end == 260
        assert oversized.payload is None

    def test_separator_controls_are_not_boundaries(self):
        assert scan_encoded_word(text='=?utf-8?Q?a?=\x1f', offset=0, mode=DecodeMode.TEXT) is None
        assert scan_encoded_word(text='\x1c=?utf-8?Q?a?=', offset=1, mode=DecodeMode.TEXT) is None

    def test_quoted_string(self):
        quoted_string = scan_quoted_string(text='"a \\"b\\"" rest', offset=0)
        assert quoted_string.content == 'a "b"'
        assert quoted_string.end == 9

    def test_unterminated_quoted_string(self):
        assert scan_quoted_string(text='"abc', offset=0) is None
        assert scan_quoted_string(text='"abc\\"', offset=0) is None


class TestDecodeText:
    def test_q(self):
        assert decode_text('=?ISO-8859-1?Q?Keld_J=F8rn_Simonsen?=') == 'Keld Jørn Simonsen'

    def test_b_adjacent_words_are_joined(self):
        assert decode_text(
            '=?ISO-8859-1?B?SWYgeW91IGNhbiByZWFkIHRoaXMgeW8=?= =?ISO-8859-2?B?dSB1bmRlcnN0YW5kIHRoZSBleGFtcGxlLg==?='
        ) == 'If you can read this you understand the example.'

    @pytest.mark.parametrize(
        'text, expected',
        [
            ('=?ISO-8859-1?Q?a?=', 'a'),
            ('=?ISO-8859-1?Q?a?= b', 'a b'),
            ('a =?ISO-8859-1?Q?b?=', 'a b'),
            ('=?ISO-8859-1?Q?a?= =?ISO-8859-1?Q?b?=', 'ab'),
            ('=?ISO-8859-1?Q?a?=  \t  =?ISO-8859-1?Q?b?=', 'ab'),
            ('=?ISO-8859-1?Q?a_b?=', 'a b'),
            ('=?ISO-8859-1?Q?a?= =?ISO-8859-2?Q?_b?=', 'a b'),
            ('(=?ISO-8859-1?Q?a?= b)', '(=?ISO-8859-1?Q?a?= b)'),
        ]
    )
    def test_whitespace_between_encoded_words(self, text: str, expected: str):
        assert decode_text(text) == expected

    def test_normalizes_whitespace_and_control_characters(self):
        assert decode_text('  a\x01b\t\r\n c  ') == 'ab c'
        assert decode_text('=?utf-8?Q?a=07b?=') == 'ab'

    def test_quoted_strings_are_not_unquoted(self):
        assert decode_text('"a b"') == '"a b"'

    def test_invalid_base64_is_literal(self, caplog):
        with caplog.at_level(WARNING, logger='email_rfc2047'):
            assert decode_text('=?utf-8?B?QQ==QQ==?=') == '=?utf-8?B?QQ==QQ==?='
        assert not caplog.records

    def test_unknown_charset_keeps_remainder_literal(self, caplog):
        with caplog.at_level(WARNING, logger='email_rfc2047'):
            assert decode_text('=?x-unknown?Q?abc?= =?utf-8?Q?d?=') == '=?x-unknown?Q?abc?= =?utf-8?Q?d?='

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == WARNING
        assert caplog.records[0].error == dict(input='=?x-unknown?Q?abc?=')

    def test_invalid_bytes_keep_preceding_words(self, caplog):
        with caplog.at_level(WARNING, logger='email_rfc2047'):
            decoded = decode_text('a =?utf-8?Q?b?= =?utf-8?B?/w==?= =?utf-8?Q?c?=')

        assert decoded == 'a b =?utf-8?B?/w==?= =?utf-8?Q?c?='
        assert caplog.records[0].exc_info is not None

    def test_oversized_encoded_word_is_literal(self, caplog):
        encoded_word = f'=?utf-8?Q?{"a" * 250}?='

        with caplog.at_level(WARNING, logger='email_rfc2047'):
            assert decode_text(encoded_word) == encoded_word

        assert len(caplog.records) == 1

    def test_encoded_word_length_limit(self, caplog):
        at_limit = f'=?utf-8?Q?{"a" * 243}?='
        oversized = f'=?utf-8?Q?{"a" * 244}?='
        assert len(at_limit) == 255

        with caplog.at_level(WARNING, logger='email_rfc2047'):
            assert decode_text(at_limit) == 'a' * 243
            assert not caplog.records

            assert decode_text(f'x {oversized} =?utf-8?Q?b?=') == f'x {oversized} =?utf-8?Q?b?='

        assert len(caplog.records) == 1
        assert caplog.records[0].error == dict(input=oversized)

    @pytest.mark.parametrize(
        'text, raw_encoded_word',
        [
            ('=?undefined?Q?abc?= =?utf-8?Q?d?=', '=?undefined?Q?abc?='),
            ('=?punycode?Q?a-9999999?= =?utf-8?Q?d?=', '=?punycode?Q?a-9999999?='),
        ]
    )
    def test_codec_failure_keeps_remainder_literal(self, caplog, text: str, raw_encoded_word: str):
        with caplog.at_level(WARNING, logger='email_rfc2047'):
            assert decode_text(text) == text

        assert len(caplog.records) == 1
        assert caplog.records[0].error == dict(input=raw_encoded_word)

    @pytest.mark.parametrize(
        'text, expected',
        [
            ('a\x1cb\x1fc', 'abc'),
            ('a \x1d b', 'a  b'),
            ('=?utf-8?Q?a?=\x1e', '=?utf-8?Q?a?='),
            ('\x1f=?utf-8?Q?a?=', '=?utf-8?Q?a?='),
        ]
    )
    def test_separator_controls_are_removed(self, text: str, expected: str):
        assert decode_text(text) == expected

    def test_position(self):
        text = 'Subject: =?utf-8?Q?caf=c3=a9?='
        position = ParsePosition(offset=9)

        assert decode_text(text, position=position) == 'café'
        assert position.at_end(text)


class TestDecodePhrase:
    def test_quoted_string(self):
        assert decode_phrase('"te-xt te;xt"') == 'te-xt te;xt'

    def test_quoted_string_escapes(self):
        assert decode_phrase('"a \\"b\\" c"') == 'a "b" c'

    def test_quoted_string_is_separated_from_neighbours(self):
        assert decode_phrase('x"y"z') == 'x y z'

    def test_quoted_string_and_encoded_word(self):
        assert decode_phrase('"Doe, John" =?utf-8?Q?J=c3=b6rg?=') == 'Doe, John Jörg'

    def test_stops_at_special(self):
        text = '=?utf-8?Q?J=c3=b6rg?= <joerg@example.com>'
        position = ParsePosition()

        assert decode_phrase(text, position=position) == 'Jörg'
        assert position.offset == text.index('<')

    def test_separator_controls_are_removed(self):
        assert decode_phrase('Jo\x1ehn') == 'John'
        assert decode_phrase('"Jo\x1fhn" Doe') == 'John Doe'

    def test_encoded_word_next_to_special(self):
        position = ParsePosition()

        assert decode_phrase('=?utf-8?Q?a?=,x', position=position) == 'a'
        assert position.offset == 13

    def test_unterminated_quote_stops_decoding(self):
        position = ParsePosition()

        assert decode_phrase('abc "def', position=position) == 'abc'
        assert position.offset == 4

    def test_failure_stops_at_special(self, caplog):
        text = '=?x-unknown?Q?abc?= foo <a@example.com>'
        position = ParsePosition()

        with caplog.at_level(WARNING, logger='email_rfc2047'):
            assert Decoder().decode_phrase(text, position=position) == '=?x-unknown?Q?abc?= foo'

        assert position.offset == text.index('<')
