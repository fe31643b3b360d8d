from codecs import lookup as codecs_lookup, CodecInfo
from typing import Final

from email_rfc2047.errors import CharsetError


class CharsetCodec:
    """Converts between bytes and text for a named MIME charset, using Python's codec registry."""

    def __init__(self, encode_errors: str = 'replace'):
        self._encode_errors: Final[str] = encode_errors

    @staticmethod
    def lookup(charset: str) -> CodecInfo:
        try:
            codec_info: CodecInfo = codecs_lookup(charset)
            # Rejects binary transforms such as `base64` or `zlib`, which are registered as codecs too.
            ''.encode(encoding=charset)
        except LookupError as e:
            raise CharsetError(f'Unknown charset: {charset!r}', charset=charset) from e
        except UnicodeError as e:
            raise CharsetError(f'Unusable charset: {charset!r}', charset=charset) from e

        return codec_info

    @staticmethod
    def decode(data: bytes, charset: str) -> str:
        try:
            return data.decode(encoding=charset, errors='strict')
        except LookupError as e:
            raise CharsetError(f'Unknown charset: {charset!r}', charset=charset) from e
        except UnicodeError as e:
            raise CharsetError(f'Invalid {charset} byte sequence: {data!r}', charset=charset) from e

    def encode(self, text: str, charset: str) -> bytes:
        try:
            return text.encode(encoding=charset, errors=self._encode_errors)
        except LookupError as e:
            raise CharsetError(f'Unknown charset: {charset!r}', charset=charset) from e
        except UnicodeError as e:
            raise CharsetError(f'Unable to encode {text!r} as {charset}', charset=charset) from e


DEFAULT_CHARSET_CODEC: Final[CharsetCodec] = CharsetCodec()
