"""Tally message senders across IMAP mailboxes."""

from __future__ import annotations

import imaplib
import logging
import re
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from email.parser import BytesHeaderParser
from email.utils import getaddresses

from .config import ImapConfig

logger = logging.getLogger(__name__)

BLOCKLIST = frozenset({"[Gmail]"})
INBOX_FLAG = "\\Inbox"
NOSELECT_FLAGS = frozenset({"\\Noselect", "\\NonExistent"})
# RFC 6154 special-use attributes.
SPECIAL_USE_FLAGS = frozenset(
    {"\\All", "\\Archive", "\\Drafts", "\\Flagged", "\\Junk", "\\Sent", "\\Trash", "\\Important"}
)
FETCH_BATCH = 500

_SPECIAL_USE_LOWER = frozenset(flag.lower() for flag in SPECIAL_USE_FLAGS | {INBOX_FLAG})
_NOSELECT_LOWER = frozenset(flag.lower() for flag in NOSELECT_FLAGS)

_LIST_LINE = re.compile(rb'^\((?P<flags>[^)]*)\) (?P<delim>"(?:[^"\\]|\\.)*"|NIL) (?P<name>.*)$', re.IGNORECASE)


class MailError(Exception):
    """IMAP connection or command failed."""


@dataclass(frozen=True)
class Mailbox:
    name: str
    flags: frozenset[str]

    @property
    def special_use(self) -> str | None:
        for flag in self.flags:
            if flag.lower() in _SPECIAL_USE_LOWER:
                return flag
        return None


def _unquote(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace").strip()
    if len(text) >= 2 and text[0] == text[-1] == '"':
        text = text[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return text


def parse_list_response(data: Iterable[bytes | tuple[bytes, bytes] | None]) -> list[Mailbox]:
    """Parse the payload of an IMAP ``LIST`` response."""
    mailboxes: list[Mailbox] = []
    for item in data:
        if item is None:
            continue
        literal: bytes | None = None
        if isinstance(item, tuple):
            item, literal = item[0], item[1]
        match = _LIST_LINE.match(item)
        if not match:
            logger.debug("Unparsed LIST line: %r", item)
            continue
        flags = frozenset(match.group("flags").decode("ascii", errors="replace").split())
        name = literal.decode("utf-8", errors="replace") if literal is not None else _unquote(match.group("name"))
        mailboxes.append(Mailbox(name=name, flags=flags))
    return mailboxes


def should_scan(mailbox: Mailbox) -> bool:
    """Skip blocklisted containers and special-use folders other than the inbox."""
    if mailbox.name in BLOCKLIST:
        return False
    if {flag.lower() for flag in mailbox.flags} & _NOSELECT_LOWER:
        return False
    special = mailbox.special_use
    return special is None or special.lower() == INBOX_FLAG.lower()


def connect(config: ImapConfig) -> imaplib.IMAP4:
    try:
        if config.secure:
            conn: imaplib.IMAP4 = imaplib.IMAP4_SSL(config.host, config.port)
        else:
            conn = imaplib.IMAP4(config.host, config.port)
        conn.login(config.username, config.password)
    except (imaplib.IMAP4.error, OSError) as exc:
        raise MailError(f"cannot connect to {config.host}:{config.port}: {exc}") from exc
    logger.info("Connected to %s:%s as %s", config.host, config.port, config.username)
    return conn


def list_mailboxes(conn: imaplib.IMAP4) -> list[Mailbox]:
    typ, data = conn.list()
    if typ != "OK":
        raise MailError(f"LIST failed: {data!r}")
    return parse_list_response(data)


def _quote(name: str) -> str:
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


def sender_of(header: bytes) -> str | None:
    message = BytesHeaderParser().parsebytes(header)
    addresses = getaddresses(message.get_all("From", []))
    for _, address in addresses:
        if address:
            return address
    return None


def count_senders(conn: imaplib.IMAP4, mailbox: Mailbox, senders: Counter[str]) -> int:
    """Add the senders of every message in ``mailbox`` to ``senders``.

    Returns the number of messages processed.
    """
    typ, data = conn.select(_quote(mailbox.name), readonly=True)
    if typ != "OK":
        raise MailError(f"cannot open mailbox {mailbox.name}: {data!r}")
    total = int(data[0] or 0)
    processed = 0
    for start in range(1, total + 1, FETCH_BATCH):
        end = min(start + FETCH_BATCH - 1, total)
        typ, data = conn.fetch(f"{start}:{end}", "(BODY.PEEK[HEADER.FIELDS (FROM)])")
        if typ != "OK":
            raise MailError(f"FETCH failed in {mailbox.name}: {data!r}")
        for item in data:
            if not isinstance(item, tuple):
                continue
            processed += 1
            sender = sender_of(item[1])
            if sender:
                senders[sender] += 1
    return processed


def tally_senders(
    conn: imaplib.IMAP4,
    mailboxes: Iterable[Mailbox],
    on_mailbox: Callable[[Mailbox, int], None] | None = None,
) -> Counter[str]:
    senders: Counter[str] = Counter()
    for mailbox in mailboxes:
        processed = count_senders(conn, mailbox, senders)
        if on_mailbox is not None:
            on_mailbox(mailbox, processed)
    return senders
