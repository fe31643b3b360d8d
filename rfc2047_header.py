#!/usr/bin/env python

from logging import INFO, DEBUG
from json import dumps as json_dumps
from sys import stdin, exit as sys_exit

from email_rfc2047 import LOG, RFC2047Error
from email_rfc2047.address import AddressList, Group
from email_rfc2047.decoder import Decoder
from email_rfc2047.encoder import Encoder
from email_rfc2047.cli import RFC2047HeaderOptionParser


def address_list_to_dict_list(address_list: AddressList) -> list[dict]:
    return [
        dict(
            group=address.name,
            mailboxes=[dict(name=mailbox.name, address=mailbox.address) for mailbox in address.mailbox_list]
        )
        if isinstance(address, Group) else dict(name=address.name, address=address.address)
        for address in address_list
    ]


def process_header_value(value: str, mode: str, encoder: Encoder, decoder: Decoder) -> str:
    match mode:
        case 'decode-text':
            return decoder.decode_text(text=value)
        case 'decode-phrase':
            return decoder.decode_phrase(text=value)
        case 'encode-text':
            return encoder.encode_text(string=value)
        case 'encode-phrase':
            return encoder.encode_phrase(string=value)
        case 'parse-addresses':
            return json_dumps(
                address_list_to_dict_list(address_list=AddressList.parse(text=value, decoder=decoder)),
                ensure_ascii=False
            )
        case 'format-addresses':
            return AddressList.parse(text=value, decoder=decoder).format(encoder=encoder)
        case _:
            raise ValueError(f'Unsupported mode: {mode!r}')


def main() -> int:
    try:
        args: RFC2047HeaderOptionParser.Namespace = RFC2047HeaderOptionParser().parse_options(
            read_config_options=dict(raise_exception=False)
        )

        LOG.setLevel(level=DEBUG if args.verbose else INFO)

        value: str = stdin.read().rstrip('\r\n') if args.value == '-' else args.value

        try:
            print(
                process_header_value(
                    value=value,
                    mode=args.mode,
                    encoder=Encoder(encoding=args.charset, method=args.method),
                    decoder=Decoder()
                )
            )
        except RFC2047Error:
            LOG.exception(msg='The header value could not be processed.')
            return 1
    except KeyboardInterrupt:
        pass
    except Exception:
        LOG.exception(msg='An unexpected exception occurred.')
        return 1

    return 0


if __name__ == '__main__':
    sys_exit(main())
