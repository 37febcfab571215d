"""
Body Selector Module

Picks the single body that is forwarded: sanitized HTML when the
message has it, the plain text otherwise.
"""

from dataclasses import dataclass
from enum import Enum

from bs4 import BeautifulSoup

from lambdas.forward_email.email_parser import DecodedMessage


class BodyType(str, Enum):
    """Content type of the forwarded body part."""

    HTML = "text/html"
    PLAIN = "text/plain"


@dataclass(frozen=True)
class SelectedBody:
    """The body chosen for the outbound message."""

    content_type: BodyType
    text: str

    @property
    def subtype(self) -> str:
        return self.content_type.value.split("/", 1)[1]


def sanitize_html(html: str) -> str:
    """
    Re-serialize HTML as a complete, well-formed document.

    Unclosed tags are closed, fragments are wrapped in <html><body>,
    and bare ampersands and angle brackets in text become entities.
    """
    soup = BeautifulSoup(html, "lxml")
    return soup.decode()


def select(msg: DecodedMessage) -> SelectedBody:
    """
    Choose the body to forward.

    Preference order: HTML (sanitized), then plain text (verbatim),
    then an empty HTML body. Never raises.
    """
    html = msg.html
    if html is not None:
        return SelectedBody(content_type=BodyType.HTML, text=sanitize_html(html))

    plain = msg.plain
    if plain is not None:
        return SelectedBody(content_type=BodyType.PLAIN, text=plain)

    return SelectedBody(content_type=BodyType.HTML, text="")
