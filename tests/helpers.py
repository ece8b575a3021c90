from __future__ import annotations

import asyncio
import smtplib

from mailer import DeliveryReceipt


ADMIN = "admin@tzur.io"


class RecordingTransport:
    """Mail transport double: records every delivery, optionally refusing some."""

    def __init__(self, fail_for=(), ascii_only=False):
        self.sent = []
        self.fail_for = set(fail_for)
        self.ascii_only = ascii_only

    def deliver(self, to, subject, text, html):
        if to in self.fail_for:
            raise smtplib.SMTPRecipientsRefused({to: (550, b"mailbox unavailable")})
        if self.ascii_only:
            # Same encoding smtplib applies to RCPT TO
            to.encode("ascii")
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        return DeliveryReceipt(message_id=f"<{len(self.sent)}@test>", recipients=(to,))

    @property
    def recipients(self):
        return [m["to"] for m in self.sent]


def run(coro):
    return asyncio.run(coro)
