from base64 import b64encode
from enum import Enum
from typing import Final

from email_rfc2047.charset_codec import CharsetCodec, DEFAULT_CHARSET_CODEC
from email_rfc2047.syntax import (
    RFC822_SPECIALS, ENCODED_WORD_MAX_LENGTH, WHITESPACE_PATTERN, CONTROL_CHARACTERS_PATTERN
)

DEFAULT_ENCODING: Final[str] = 'utf-8'

# The `=?`, `?`, `?` and `?=` delimiters of an encoded-word.
_ENCODED_WORD_OVERHEAD: Final[int] = 7
_Q_SPECIALS: Final[frozenset[str]] = RFC822_SPECIALS | {'=', '?', '_'}


class WordType(Enum):
    MIME = 'mime'
    QUOTED = 'quoted'
    TEXT = 'text'


def _looks_like_encoded_word(word: str) -> bool:
    return len(word) >= 4 and word.startswith('=?') and word.endswith('?=')


class Encoder:
    """
    Encodes text for use in message headers, using RFC 2047 encoded-words only for the words that need them.

    Words are separated by single spaces in the result; long lines are not folded.
    """

    def __init__(
        self,
        encoding: str | None = None,
        method: str | None = None,
        charset_codec: CharsetCodec | None = None
    ):
        if encoding is None:
            encoding = DEFAULT_ENCODING
            method = method or 'Q'
        else:
            method = method or 'B'

        method = method.upper()
        if method not in {'B', 'Q'}:
            raise ValueError(f'Unsupported encoded-word method: {method!r}')

        self._charset_codec: Final[CharsetCodec] = charset_codec or DEFAULT_CHARSET_CODEC
        self._charset_codec.lookup(charset=encoding)

        self._encoding: Final[str] = encoding
        self._method: Final[str] = method

        max_payload_length = ENCODED_WORD_MAX_LENGTH - _ENCODED_WORD_OVERHEAD - len(encoding)
        if method == 'B':
            # Raw bytes that still fit after Base64 expansion.
            max_payload_length = 3 * (max_payload_length // 4)
        self._max_payload_length: Final[int] = max_payload_length

    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def method(self) -> str:
        return self._method

    def encode_text(self, string: str) -> str:
        """
        Encode a string that replaces `*text` in a header field, such as a Subject.

        :param string: The unencoded text.
        :return: A mix of ASCII words and encoded-words separated by single spaces.
        """

        return self._encode(string=string, phrase=False)

    def encode_phrase(self, string: str) -> str:
        """
        Encode a string that replaces a phrase, such as the display name preceding an address.

        Works like `encode_text`, but ASCII runs containing RFC 822 special characters become quoted-strings.
        """

        return self._encode(string=string, phrase=True)

    def _encode_character(self, character: str) -> bytes:
        if self._method == 'B':
            return self._charset_codec.encode(text=character, charset=self._encoding)

        if character in _Q_SPECIALS:
            return f'={ord(character):02x}'.encode(encoding='ascii')

        if ord(character) > 0x7f:
            return ''.join(
                f'={byte:02x}'
                for byte in self._charset_codec.encode(text=character, charset=self._encoding)
            ).encode(encoding='ascii')

        if character == ' ':
            return b'_'

        return character.encode(encoding='ascii')

    def _format_encoded_word(self, payload: bytes) -> str:
        encoded_text = (
            b64encode(payload).decode(encoding='ascii') if self._method == 'B' else payload.decode(encoding='ascii')
        )
        return f'=?{self._encoding}?{self._method}?{encoded_text}?='

    @staticmethod
    def _format_quoted(words: list[str]) -> str:
        phrase = ' '.join(words)
        if not any(character in RFC822_SPECIALS for character in phrase):
            return phrase

        escaped = phrase.replace('\\', '\\\\').replace('"', '\\"')
        return f'"{escaped}"'

    def _encode(self, string: str, phrase: bool) -> str:
        result: list[str] = []
        quoted_words: list[str] = []
        payload = bytearray()
        buffer_type: WordType | None = None

        def finish_buffer() -> None:
            if buffer_type is WordType.QUOTED and quoted_words:
                result.append(self._format_quoted(words=quoted_words))
                quoted_words.clear()
            elif buffer_type is WordType.MIME and payload:
                result.append(self._format_encoded_word(payload=bytes(payload)))
                payload.clear()

        for word in WHITESPACE_PATTERN.split(string=string):
            if not (word := CONTROL_CHARACTERS_PATTERN.sub(repl='', string=word)):
                continue

            if any(ord(character) > 0x7e for character in word) or _looks_like_encoded_word(word=word):
                word_type = WordType.MIME
            elif phrase:
                word_type = WordType.QUOTED
            else:
                word_type = WordType.TEXT

            if word_type is not buffer_type:
                finish_buffer()
            buffer_type = word_type

            match word_type:
                case WordType.TEXT:
                    result.append(word)
                case WordType.QUOTED:
                    quoted_words.append(word)
                case WordType.MIME:
                    characters = f' {word}' if payload else word
                    for character in characters:
                        chunk = self._encode_character(character=character)
                        if payload and len(payload) + len(chunk) > self._max_payload_length:
                            finish_buffer()
                        payload.extend(chunk)

        finish_buffer()

        return ' '.join(result)


DEFAULT_ENCODER: Final[Encoder] = Encoder()
