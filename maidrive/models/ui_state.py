"""
Screen states produced by the auth workflow.

Each state is its own frozen dataclass; consumers dispatch on the type.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Initial:
    """Nothing submitted yet on the current screen"""


@dataclass(frozen=True)
class Loading:
    """A request is in flight; the triggering action stays disabled"""


@dataclass(frozen=True)
class CodeSent:
    verification_code: str = ""
    notification_text: str = ""


@dataclass(frozen=True)
class Verified:
    requires_registration: bool


@dataclass(frozen=True)
class Registered:
    pass


@dataclass(frozen=True)
class Failed:
    message: str


ScreenState = Union[Initial, Loading, CodeSent, Verified, Registered, Failed]
