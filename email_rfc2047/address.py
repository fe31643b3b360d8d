from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias, Iterator

from email_rfc2047 import LOG
from email_rfc2047.decoder import Decoder, DEFAULT_DECODER
from email_rfc2047.encoder import Encoder, DEFAULT_ENCODER
from email_rfc2047.errors import ParseError, InvalidAddressError, InvalidGroupError
from email_rfc2047.position import ParsePosition
from email_rfc2047.syntax import ADDR_SPEC_PATTERN, is_addr_spec, skip_whitespace


def _match_addr_spec(text: str, offset: int) -> tuple[str, int] | None:
    """Match a bare addr-spec and the whitespace surrounding it."""

    if not (match := ADDR_SPEC_PATTERN.match(string=text, pos=skip_whitespace(text=text, offset=offset))):
        return None

    return match.group(0), skip_whitespace(text=text, offset=match.end())


def _match_angle_addr(text: str, offset: int) -> tuple[str, int] | None:
    if not text.startswith('<', offset):
        return None

    if not (match := ADDR_SPEC_PATTERN.match(string=text, pos=skip_whitespace(text=text, offset=offset + 1))):
        return None

    end = skip_whitespace(text=text, offset=match.end())
    if not text.startswith('>', end):
        return None

    return match.group(0), skip_whitespace(text=text, offset=end + 1)


def _parse_mailbox(text: str, offset: int, decoder: Decoder) -> tuple[Mailbox, int]:
    if addr_spec_match := _match_addr_spec(text=text, offset=offset):
        address, offset = addr_spec_match
        return Mailbox(address=address), offset

    position = ParsePosition(offset=offset)
    name = decoder.decode_phrase(text=text, position=position)

    if not (angle_addr_match := _match_angle_addr(text=text, offset=position.offset)):
        raise ParseError(construct='mailbox', position=position.offset, text=text)

    address, offset = angle_addr_match
    return Mailbox(address=address, name=name or None), offset


def _parse_mailbox_list(text: str, offset: int, decoder: Decoder) -> tuple[MailboxList, int]:
    mailbox, offset = _parse_mailbox(text=text, offset=offset, decoder=decoder)
    mailboxes: list[Mailbox] = [mailbox]

    while text.startswith(',', offset):
        mailbox, offset = _parse_mailbox(text=text, offset=offset + 1, decoder=decoder)
        mailboxes.append(mailbox)

    return MailboxList(mailboxes=mailboxes), offset


def _parse_group_body(text: str, offset: int, name: str, decoder: Decoder) -> tuple[Group, int]:
    """Parse what follows the `:` of a group."""

    if not name:
        raise ParseError(construct='group name', position=offset - 1, text=text)

    if text.startswith(';', empty_end := skip_whitespace(text=text, offset=offset)):
        return Group(name=name), skip_whitespace(text=text, offset=empty_end + 1)

    mailbox_list, offset = _parse_mailbox_list(text=text, offset=offset, decoder=decoder)

    if not text.startswith(';', offset):
        raise ParseError(construct='group', position=offset, text=text)

    return Group(name=name, mailbox_list=mailbox_list), skip_whitespace(text=text, offset=offset + 1)


def _parse_group(text: str, offset: int, decoder: Decoder) -> tuple[Group, int]:
    position = ParsePosition(offset=offset)
    name = decoder.decode_phrase(text=text, position=position)

    if not text.startswith(':', position.offset):
        raise ParseError(construct='group', position=position.offset, text=text)

    return _parse_group_body(text=text, offset=position.offset + 1, name=name, decoder=decoder)


def _parse_address(text: str, offset: int, decoder: Decoder) -> tuple[Address, int]:
    if addr_spec_match := _match_addr_spec(text=text, offset=offset):
        address, offset = addr_spec_match
        return Mailbox(address=address), offset

    position = ParsePosition(offset=offset)
    name = decoder.decode_phrase(text=text, position=position)

    if angle_addr_match := _match_angle_addr(text=text, offset=position.offset):
        address, offset = angle_addr_match
        return Mailbox(address=address, name=name or None), offset

    if text.startswith(':', position.offset):
        return _parse_group_body(text=text, offset=position.offset + 1, name=name, decoder=decoder)

    raise ParseError(construct='address', position=position.offset, text=text)


def _parse_address_list(text: str, offset: int, decoder: Decoder) -> tuple[AddressList, int]:
    address, offset = _parse_address(text=text, offset=offset, decoder=decoder)
    addresses: list[Address] = [address]

    while text.startswith(',', offset):
        address, offset = _parse_address(text=text, offset=offset + 1, decoder=decoder)
        addresses.append(address)

    return AddressList(addresses=addresses), offset


def _run_parser(parser, construct: str, text: str, decoder: Decoder | None, position: ParsePosition | None):
    """
    Run one of the grammar productions over `text`.

    Without a `position` the production must consume the whole string; with one, parsing starts at its offset and
    the position is advanced past what was consumed.
    """

    LOG.debug(msg=f'Parsing {construct}: {text!r}')

    value, end = parser(
        text=text,
        offset=position.offset if position is not None else 0,
        decoder=decoder or DEFAULT_DECODER
    )

    if position is not None:
        position.offset = end
    elif end < len(text):
        raise ParseError(construct=construct, position=end, text=text)

    return value


@dataclass
class Mailbox:
    address: str | None = None
    name: str | None = None

    @classmethod
    def parse(cls, text: str, decoder: Decoder | None = None, position: ParsePosition | None = None) -> Mailbox:
        """
        Parse an RFC 2822 mailbox, decoding any encoded display name.

        :param text: The mailbox text, e.g. `=?utf-8?Q?J=c3=b6rg?= <joerg@example.com>`.
        :param decoder: The decoder to use for the display name.
        :param position: A cursor from which to parse; see `ParsePosition`.
        :return: The parsed mailbox.
        """

        return _run_parser(parser=_parse_mailbox, construct='mailbox', text=text, decoder=decoder, position=position)

    def format(self, encoder: Encoder | None = None) -> str:
        """
        Format the mailbox for use in a message header.

        :param encoder: The encoder to use for a non-ASCII display name.
        :return: The formatted mailbox.
        """

        if self.address is None or not is_addr_spec(address=self.address):
            raise InvalidAddressError(address=self.address)

        # A name that is blank once encoded is omitted.
        if not self.name or not (name := (encoder or DEFAULT_ENCODER).encode_phrase(string=self.name)):
            return self.address

        return f'{name} <{self.address}>'

    def __str__(self) -> str:
        return self.format()


@dataclass
class MailboxList:
    mailboxes: list[Mailbox] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str, decoder: Decoder | None = None, position: ParsePosition | None = None) -> MailboxList:
        return _run_parser(
            parser=_parse_mailbox_list,
            construct='mailbox list',
            text=text,
            decoder=decoder,
            position=position
        )

    def format(self, encoder: Encoder | None = None) -> str:
        return ', '.join(mailbox.format(encoder=encoder) for mailbox in self.mailboxes)

    def __iter__(self) -> Iterator[Mailbox]:
        return iter(self.mailboxes)

    def __len__(self) -> int:
        return len(self.mailboxes)


@dataclass
class Group:
    name: str
    mailbox_list: MailboxList = field(default_factory=MailboxList)

    @classmethod
    def parse(cls, text: str, decoder: Decoder | None = None, position: ParsePosition | None = None) -> Group:
        return _run_parser(parser=_parse_group, construct='group', text=text, decoder=decoder, position=position)

    def format(self, encoder: Encoder | None = None) -> str:
        encoder = encoder or DEFAULT_ENCODER
        if not self.name or not (name := encoder.encode_phrase(string=self.name)):
            raise InvalidGroupError(name=self.name)

        return f'{name}: {self.mailbox_list.format(encoder=encoder)};'

    def __str__(self) -> str:
        return self.format()


Address: TypeAlias = Mailbox | Group


def parse_address(text: str, decoder: Decoder | None = None, position: ParsePosition | None = None) -> Address:
    """
    Parse an RFC 2822 address: either a mailbox or a group of mailboxes.

    The production is chosen by looking at most one character past the display name; the input is never re-read.

    :param text: The address text.
    :param decoder: The decoder to use for display names and group names.
    :param position: A cursor from which to parse; see `ParsePosition`.
    :return: A `Mailbox` or a `Group`.
    """

    return _run_parser(parser=_parse_address, construct='address', text=text, decoder=decoder, position=position)


@dataclass
class AddressList:
    addresses: list[Address] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str, decoder: Decoder | None = None, position: ParsePosition | None = None) -> AddressList:
        return _run_parser(
            parser=_parse_address_list,
            construct='address list',
            text=text,
            decoder=decoder,
            position=position
        )

    def format(self, encoder: Encoder | None = None) -> str:
        return ', '.join(address.format(encoder=encoder) for address in self.addresses)

    def mailboxes(self) -> list[Mailbox]:
        """Return the mailboxes of the list, with the members of groups in place of the groups."""

        return [
            mailbox
            for address in self.addresses
            for mailbox in (address.mailbox_list if isinstance(address, Group) else [address])
        ]

    def __iter__(self) -> Iterator[Address]:
        return iter(self.addresses)

    def __len__(self) -> int:
        return len(self.addresses)
