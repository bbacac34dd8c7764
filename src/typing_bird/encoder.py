"""
Turn a message into the keystrokes that type it.

Text is sent as literal chunks; every line terminator becomes one press of
the activation key, and one more press is always appended to submit the
message. CR, LF and CRLF each count as a single terminator.
"""

from dataclasses import dataclass
from typing import List, Union

from .constants import ENTER_KEY


@dataclass(frozen=True)
class LiteralText:
    """Text sent verbatim, without key-name interpretation."""

    text: str


@dataclass(frozen=True)
class KeyPress:
    """A named key such as 'Enter' or 'C-m'."""

    name: str


SendAction = Union[LiteralText, KeyPress]


def message_send_actions(message: str, enter_key: str = ENTER_KEY) -> List[SendAction]:
    """Encode message as an ordered list of send actions.

    >>> message_send_actions("a\\r\\nb")
    [LiteralText(text='a'), KeyPress(name='Enter'), LiteralText(text='b'), KeyPress(name='Enter')]
    """
    actions: List[SendAction] = []
    pending: List[str] = []
    prev_was_cr = False

    def flush() -> None:
        if pending:
            actions.append(LiteralText("".join(pending)))
            pending.clear()

    for ch in message:
        if ch == "\r":
            flush()
            actions.append(KeyPress(enter_key))
            prev_was_cr = True
        elif ch == "\n":
            if prev_was_cr:
                # Second half of CRLF
                prev_was_cr = False
                continue
            flush()
            actions.append(KeyPress(enter_key))
        else:
            prev_was_cr = False
            pending.append(ch)

    flush()
    actions.append(KeyPress(enter_key))
    return actions
