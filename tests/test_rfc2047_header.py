from json import loads as json_loads

import pytest

pytest.importorskip('option_parser')
pytest.importorskip('ecs_tools_py')

from email_rfc2047 import Encoder, Decoder, ParseError
from rfc2047_header import process_header_value


@pytest.mark.parametrize(
    'mode, value, expected',
    [
        ('decode-text', 'Re: =?utf-8?Q?caf=c3=a9?=', 'Re: café'),
        ('decode-phrase', '"Doe, John" <john@example.com>', 'Doe, John'),
        ('encode-text', 'Re: café', 'Re: =?utf-8?Q?caf=c3=a9?='),
        ('encode-phrase', 'Doe, Jörg', '"Doe," =?utf-8?Q?J=c3=b6rg?='),
        (
            'format-addresses',
            'Jörg <joerg@example.com>, a@example.com',
            '=?utf-8?Q?J=c3=b6rg?= <joerg@example.com>, a@example.com'
        ),
    ]
)
def test_process_header_value(mode: str, value: str, expected: str):
    assert process_header_value(value=value, mode=mode, encoder=Encoder(), decoder=Decoder()) == expected


def test_parse_addresses():
    output = process_header_value(
        value='Friends: =?utf-8?Q?B=c3=a9?= <b@example.com>;, a@example.com',
        mode='parse-addresses',
        encoder=Encoder(),
        decoder=Decoder()
    )

    assert json_loads(output) == [
        dict(group='Friends', mailboxes=[dict(name='Bé', address='b@example.com')]),
        dict(name=None, address='a@example.com'),
    ]


def test_parse_error():
    with pytest.raises(ParseError):
        process_header_value(value='Foo <foo', mode='parse-addresses', encoder=Encoder(), decoder=Decoder())
