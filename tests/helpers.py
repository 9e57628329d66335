"""Shared test helpers: a recording mail sink and a user factory."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from auth.errors import UpstreamError
from auth.models import Permission, User
from auth.store import UserStore
from auth.tokens import hash_password

RESET_LINK_RE = re.compile(r"resetToken=([0-9a-f]{56})")


@dataclass
class RecordingMailer:
    """Collects sent messages instead of talking to SMTP."""

    sent: list[dict] = field(default_factory=list)
    fail: bool = False

    def send(self, to: str, subject: str, html_body: str) -> None:
        if self.fail:
            raise UpstreamError("Mail relay unavailable.")
        self.sent.append({"to": to, "subject": subject, "html": html_body})

    def last_token(self) -> str:
        match = RESET_LINK_RE.search(self.sent[-1]["html"])
        assert match, "no reset link in last message"
        return match.group(1)


def make_user(
    store: UserStore,
    email: str = "a@x.com",
    password: str = "hunter22",
    permissions: list[Permission] | None = None,
    name: str = "A",
) -> User:
    user_id = store.create_user(
        User(
            email=email,
            name=name,
            password_hash=hash_password(password, rounds=4),
            permissions=permissions or [Permission.USER],
        )
    )
    return store.get_by_id(user_id)
