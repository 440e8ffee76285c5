"""
Message classification.

Every inbound text is parsed into exactly one variant before any handler
runs:
- Command: starts with "/" (known or not; unknown names are routed to the
  unknown-command reply)
- CallbackUrl: contains an http(s) URL, treated as a pasted OAuth2 redirect
- FreeText: anything else, sent to the post generator
"""

import re
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import parse_qs, urlparse

COMMANDS = frozenset({"start", "connect", "post", "state", "disconnect", "help", "test"})

# /name, optional @BotName suffix, optional arguments
COMMAND_PATTERN = re.compile(r"^/(?P<name>[A-Za-z0-9_]+)(?:@\w+)?(?:\s(?P<args>.*))?$", re.DOTALL)
URL_PATTERN = re.compile(r"https?://\S+")


@dataclass(frozen=True)
class Command:
    name: str
    args: str = ""

    @property
    def known(self) -> bool:
        return self.name in COMMANDS


@dataclass(frozen=True)
class CallbackUrl:
    raw: str
    code: Optional[str] = None
    state: Optional[str] = None


@dataclass(frozen=True)
class FreeText:
    raw: str


ParsedMessage = Union[Command, CallbackUrl, FreeText]


def parse_message(text: str) -> ParsedMessage:
    if text.startswith("/"):
        match = COMMAND_PATTERN.match(text)
        if match is None:
            # "/" followed by something that is not a command name
            return Command(name="")
        return Command(name=match.group("name"), args=match.group("args") or "")

    url_match = URL_PATTERN.search(text)
    if url_match:
        return parse_callback_url(url_match.group(0))

    return FreeText(raw=text)


def parse_callback_url(url: str) -> CallbackUrl:
    query = parse_qs(urlparse(url).query)
    code = query.get("code", [None])[0]
    state = query.get("state", [None])[0]
    return CallbackUrl(raw=url, code=code or None, state=state or None)
