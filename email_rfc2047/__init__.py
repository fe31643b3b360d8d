from logging import getLogger, Logger
from typing import Final
from sys import exc_info

LOG: Final[Logger] = getLogger(__name__)

from email_rfc2047.errors import (
    RFC2047Error, CharsetError, EncodedWordError, ParseError, InvalidAddressError, InvalidGroupError
)
from email_rfc2047.position import ParsePosition
from email_rfc2047.charset_codec import CharsetCodec
from email_rfc2047.decoder import Decoder, DEFAULT_DECODER
from email_rfc2047.encoder import Encoder, DEFAULT_ENCODER
from email_rfc2047.address import Mailbox, MailboxList, Group, Address, AddressList, parse_address


def decode_text(text: str, position: ParsePosition | None = None) -> str:
    return DEFAULT_DECODER.decode_text(text=text, position=position)


def decode_phrase(text: str, position: ParsePosition | None = None) -> str:
    return DEFAULT_DECODER.decode_phrase(text=text, position=position)


def encode_text(string: str) -> str:
    return DEFAULT_ENCODER.encode_text(string=string)


def encode_phrase(string: str) -> str:
    return DEFAULT_ENCODER.encode_phrase(string=string)


def decode_address(address: str) -> tuple[str | None, str]:
    """
    Decode a single mailbox header value into its display name and address.

    A value that cannot be parsed is returned as the address, without a name.

    :param address: A mailbox such as `=?utf-8?Q?J=c3=b6rg?= <joerg@example.com>`.
    :return: The decoded display name, if any, and the address.
    """

    try:
        mailbox = Mailbox.parse(text=address)
    except ParseError:
        LOG.warning(
            msg='An error occurred when parsing a mailbox.',
            extra=dict(
                error=dict(input=address),
                _ecs_logger_handler_options=dict(merge_extra=True)
            ),
            exc_info=exc_info()
        )
        return None, address.strip()

    return mailbox.name, mailbox.address


def decode_address_line(line: str) -> list[tuple[str | None, str]]:
    """
    Decode an address list header value, such as the value of a To header.

    Group members are listed in place of their group.

    :param line: The header value.
    :return: The display name and address of each mailbox; empty if the value cannot be parsed.
    """

    try:
        address_list = AddressList.parse(text=line)
    except ParseError:
        LOG.warning(
            msg='An error occurred when parsing an address line.',
            extra=dict(
                error=dict(input=line),
                _ecs_logger_handler_options=dict(merge_extra=True)
            ),
            exc_info=exc_info()
        )
        return []

    return [(mailbox.name, mailbox.address) for mailbox in address_list.mailboxes()]
