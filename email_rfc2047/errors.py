class RFC2047Error(Exception):
    pass


class CharsetError(RFC2047Error, LookupError):
    def __init__(self, message: str, charset: str):
        super().__init__(message)
        self.charset: str = charset


class EncodedWordError(RFC2047Error, ValueError):
    def __init__(self, message: str, encoded_word: str):
        super().__init__(message)
        self.encoded_word: str = encoded_word


class ParseError(RFC2047Error, ValueError):
    """A header value does not match the address grammar."""

    def __init__(self, construct: str, position: int, text: str):
        super().__init__(f'Unable to parse {construct} at position {position}: {text[position:position + 32]!r}')
        self.construct: str = construct
        self.position: int = position
        self.text: str = text


class InvalidAddressError(RFC2047Error, ValueError):
    def __init__(self, address: str | None):
        super().__init__(f'Invalid email address: {address!r}')
        self.address: str | None = address


class InvalidGroupError(RFC2047Error, ValueError):
    def __init__(self, name: str | None):
        super().__init__(f'A group must have a non-blank name: {name!r}')
        self.name: str | None = name
