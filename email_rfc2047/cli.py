from option_parser import OptionParser
from ecs_tools_py import make_log_action

from email_rfc2047 import LOG


class RFC2047HeaderOptionParser(OptionParser):
    class Namespace:
        value: str
        mode: str
        charset: str | None = None
        method: str | None = None
        verbose: bool = False

    def __init__(self, *args, **kwargs):
        super().__init__(
            *args,
            **(
                dict(description='Decode or encode a header value containing RFC 2047 encoded-words.') | kwargs
            )
        )

        self.add_argument(
            'value',
            help='The header value to process. Use `-` to read it from standard input.'
        )

        self.add_argument(
            '--mode',
            help='How to process the value.',
            choices=[
                'decode-text', 'decode-phrase', 'encode-text', 'encode-phrase', 'parse-addresses', 'format-addresses'
            ],
            default='decode-text'
        )

        self.add_argument(
            '--charset',
            help='The charset with which to encode non-ASCII words. Defaults to utf-8.'
        )

        self.add_argument(
            '--method',
            help='The encoded-word method to use when encoding; B (base64) or Q (quoted-printable).',
            choices=['B', 'Q', 'b', 'q']
        )

        self.add_argument(
            '--log',
            help='A log specifier specifying how logging is to be performed.',
            action=make_log_action(event_provider='email_rfc2047', log=LOG)
        )

        self.add_argument(
            '-v', '--verbose',
            help='Log in verbose mode.',
            action='store_true'
        )
