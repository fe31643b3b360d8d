from dataclasses import dataclass
from enum import Enum
from base64 import b64decode
from re import compile as re_compile, Pattern as RePattern
from sys import exc_info
from typing import Final

from email_rfc2047 import LOG
from email_rfc2047.charset_codec import CharsetCodec, DEFAULT_CHARSET_CODEC
from email_rfc2047.errors import CharsetError, EncodedWordError
from email_rfc2047.position import ParsePosition
from email_rfc2047.syntax import (
    RFC822_SPECIALS, RFC822_SPECIALS_NO_QUOTE, ENCODED_WORD_MAX_DECODE_LENGTH, WHITESPACE_PATTERN,
    CONTROL_CHARACTERS_PATTERN, is_whitespace
)

_BASE64_PAYLOAD_PATTERN: Final[RePattern] = re_compile(
    pattern=r'(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{4}|[A-Za-z0-9+/]{3}=|[A-Za-z0-9+/]{2}==)'
)
_Q_ESCAPE_PATTERN: Final[RePattern] = re_compile(pattern=rb'=([0-9A-Fa-f]{2})')
_CHARSET_CHARACTERS: Final[frozenset[str]] = frozenset(
    'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-'
)


class DecodeMode(Enum):
    TEXT = 'text'
    PHRASE = 'phrase'


@dataclass(frozen=True)
class EncodedWord:
    charset: str
    method: str
    payload: bytes | None
    start: int
    end: int


@dataclass(frozen=True)
class QuotedString:
    content: str
    start: int
    end: int


def _is_boundary(character: str, mode: DecodeMode) -> bool:
    return is_whitespace(character=character) or (mode is DecodeMode.PHRASE and character in RFC822_SPECIALS_NO_QUOTE)


def _decode_q_payload(payload: str) -> bytes:
    return _Q_ESCAPE_PATTERN.sub(
        repl=lambda match: bytes([int(match.group(1), base=16)]),
        string=payload.replace('_', ' ').encode(encoding='ascii')
    )


def _is_q_payload_character(character: str, mode: DecodeMode) -> bool:
    if not ('\x21' <= character <= '\x7e') or character == '?':
        return False
    return mode is DecodeMode.TEXT or character not in RFC822_SPECIALS


def scan_encoded_word(text: str, offset: int, mode: DecodeMode) -> EncodedWord | None:
    """
    Recognize an encoded-word starting exactly at `offset`.

    :param text: The header text being scanned.
    :param offset: The offset at which the encoded-word must start.
    :param mode: Whether the text is scanned as `*text` or as a phrase; phrases also accept RFC 822 special
        characters as delimiters and exclude them from Q payloads.
    :return: The encoded-word with its payload transfer-decoded, or `None` if there is no encoded-word at `offset`.
        The payload of an encoded-word longer than 255 characters is left as `None`.
    """

    if not text.startswith('=?', offset):
        return None

    if offset > 0 and not _is_boundary(character=text[offset - 1], mode=mode):
        return None

    charset_end = offset + 2
    while charset_end < len(text) and text[charset_end] in _CHARSET_CHARACTERS:
        charset_end += 1

    if charset_end == offset + 2 or not text.startswith('?', charset_end):
        return None

    method_offset = charset_end + 1
    method = text[method_offset:method_offset + 1].upper()
    if method not in {'B', 'Q'} or not text.startswith('?', method_offset + 1):
        return None

    payload_start = method_offset + 2
    payload_end = text.find('?', payload_start)
    if payload_end == -1 or not text.startswith('?=', payload_end):
        return None

    end = payload_end + 2
    if end < len(text) and not _is_boundary(character=text[end], mode=mode):
        return None

    payload_text = text[payload_start:payload_end]

    match method:
        case 'B':
            if not _BASE64_PAYLOAD_PATTERN.fullmatch(string=payload_text):
                return None
        case _:
            if not payload_text or not all(_is_q_payload_character(character=c, mode=mode) for c in payload_text):
                return None

    # An oversized encoded-word is still recognized, but its payload is not transfer-decoded.
    payload: bytes | None = None
    if end - offset <= ENCODED_WORD_MAX_DECODE_LENGTH:
        payload = (
            b64decode(payload_text, validate=True) if method == 'B' else _decode_q_payload(payload=payload_text)
        )

    return EncodedWord(
        charset=text[offset + 2:charset_end],
        method=method,
        payload=payload,
        start=offset,
        end=end
    )


def scan_quoted_string(text: str, offset: int) -> QuotedString | None:
    if not text.startswith('"', offset):
        return None

    characters: list[str] = []
    index = offset + 1
    while index < len(text):
        match text[index]:
            case '\\':
                if index + 1 >= len(text):
                    return None
                characters.append(text[index + 1])
                index += 2
            case '"':
                return QuotedString(content=''.join(characters), start=offset, end=index + 1)
            case character:
                characters.append(character)
                index += 1

    return None


def scan_token(text: str, offset: int, mode: DecodeMode) -> EncodedWord | QuotedString | None:
    """Find the leftmost encoded-word or quoted-string at or after `offset`."""

    for index in range(offset, len(text)):
        if encoded_word := scan_encoded_word(text=text, offset=index, mode=mode):
            return encoded_word

        if mode is DecodeMode.PHRASE:
            if quoted_string := scan_quoted_string(text=text, offset=index):
                return quoted_string
            if text[index] in RFC822_SPECIALS:
                return None

    return None


def _literal_end(text: str, offset: int, mode: DecodeMode) -> int:
    if mode is DecodeMode.TEXT:
        return len(text)

    end = offset
    while end < len(text) and text[end] not in RFC822_SPECIALS:
        end += 1
    return end


def normalize(value: str) -> str:
    return CONTROL_CHARACTERS_PATTERN.sub(
        repl='',
        string=WHITESPACE_PATTERN.sub(repl=' ', string=value).strip(' ')
    )


class Decoder:
    """
    Decodes header text containing RFC 2047 encoded-words.

    A decoder holds no per-call state and may be shared.
    """

    def __init__(self, charset_codec: CharsetCodec | None = None):
        self._charset_codec: Final[CharsetCodec] = charset_codec or DEFAULT_CHARSET_CODEC

    def decode_text(self, text: str, position: ParsePosition | None = None) -> str:
        """
        Decode a `*text` header value, such as the body of a Subject or Comments field.

        The result is trimmed, whitespace is collapsed and ASCII control characters are removed.

        :param text: The encoded header text.
        :param position: A cursor from which to start decoding; it is advanced to the end of the input.
        :return: The decoded text.
        """

        return self._decode_at_position(text=text, position=position, mode=DecodeMode.TEXT)

    def decode_phrase(self, text: str, position: ParsePosition | None = None) -> str:
        """
        Decode an RFC 822 phrase, such as the display name preceding an address.

        Works like `decode_text`, but also unquotes quoted-strings and stops at the first RFC 822 special character
        outside of a quoted-string. When `position` is given it is left on that special character.

        :param text: The encoded header text.
        :param position: A cursor from which to start decoding.
        :return: The decoded phrase.
        """

        return self._decode_at_position(text=text, position=position, mode=DecodeMode.PHRASE)

    def _decode_at_position(self, text: str, position: ParsePosition | None, mode: DecodeMode) -> str:
        value, end = self.decode(text=text, offset=position.offset if position is not None else 0, mode=mode)
        if position is not None:
            position.offset = end
        return value

    def _decode_encoded_word(self, text: str, encoded_word: EncodedWord) -> str:
        if encoded_word.payload is None:
            raise EncodedWordError(
                f'The encoded-word is longer than {ENCODED_WORD_MAX_DECODE_LENGTH} characters.',
                encoded_word=text[encoded_word.start:encoded_word.end]
            )

        return self._charset_codec.decode(data=encoded_word.payload, charset=encoded_word.charset)

    def decode(self, text: str, offset: int, mode: DecodeMode) -> tuple[str, int]:
        """
        Decode `text` starting at `offset`.

        :return: The decoded value and the offset at which decoding stopped.
        """

        pieces: list[str] = []
        previous_decoded = False

        while token := scan_token(text=text, offset=offset, mode=mode):
            literal = text[offset:token.start]
            offset = token.end

            if isinstance(token, QuotedString):
                pieces.extend((literal, ' ', token.content, ' '))
                previous_decoded = False
                continue

            try:
                decoded = self._decode_encoded_word(text=text, encoded_word=token)
            except (CharsetError, EncodedWordError):
                raw_encoded_word = text[token.start:token.end]
                LOG.warning(
                    msg='An encoded-word could not be decoded; keeping the remainder as literal text.',
                    extra=dict(
                        error=dict(input=raw_encoded_word),
                        _ecs_logger_handler_options=dict(merge_extra=True)
                    ),
                    exc_info=exc_info()
                )
                pieces.extend((literal, raw_encoded_word))
                break

            # Whitespace between adjacent encoded-words is not displayed.
            if not previous_decoded or WHITESPACE_PATTERN.fullmatch(string=literal) is None:
                pieces.append(literal)

            pieces.append(decoded)
            previous_decoded = True

        end = _literal_end(text=text, offset=offset, mode=mode)
        pieces.append(text[offset:end])

        return normalize(value=''.join(pieces)), end


DEFAULT_DECODER: Final[Decoder] = Decoder()
