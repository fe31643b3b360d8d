from dataclasses import dataclass


@dataclass
class ParsePosition:
    """
    A cursor into a header value owned by the caller.

    Passing the same position to consecutive decode and parse calls makes them consume one continuous stream; each
    successful call leaves `offset` just after what it consumed.
    """

    offset: int = 0

    def at_end(self, text: str) -> bool:
        return self.offset >= len(text)
