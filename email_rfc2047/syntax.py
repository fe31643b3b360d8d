from re import compile as re_compile, Pattern as RePattern
from typing import Final

RFC822_SPECIALS: Final[frozenset[str]] = frozenset('()<>[]:;@\\,."')
RFC822_SPECIALS_NO_QUOTE: Final[frozenset[str]] = RFC822_SPECIALS - {'"'}

ENCODED_WORD_MAX_LENGTH: Final[int] = 75
# Encoded-words should not be longer than 75 characters, but up to 255 are accepted when decoding.
ENCODED_WORD_MAX_DECODE_LENGTH: Final[int] = 255

# Unicode whitespace, except the separators 0x1C-0x1F, which are control characters in a header.
WHITESPACE_PATTERN: Final[RePattern] = re_compile(pattern=r'[^\S\x1c-\x1f]+')
CONTROL_CHARACTERS_PATTERN: Final[RePattern] = re_compile(pattern=r'[\x00-\x1f\x7f]')

_DOMAIN_LABEL: Final[str] = r'[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?'

ADDR_SPEC: Final[str] = rf"[A-Za-z0-9_&'*+./=?^{{}}~-]+@{_DOMAIN_LABEL}(?:\.{_DOMAIN_LABEL})*"

ADDR_SPEC_PATTERN: Final[RePattern] = re_compile(pattern=ADDR_SPEC)


def is_addr_spec(address: str) -> bool:
    return ADDR_SPEC_PATTERN.fullmatch(string=address) is not None


def is_whitespace(character: str) -> bool:
    return character.isspace() and not ('\x1c' <= character <= '\x1f')


def skip_whitespace(text: str, offset: int) -> int:
    while offset < len(text) and is_whitespace(character=text[offset]):
        offset += 1
    return offset
