import logging
import smtplib
from dataclasses import dataclass
from email import policy
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid
from typing import Optional, Protocol, Tuple

from errors import DeliveryError
from settings import Settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryReceipt:
    """Handoff confirmation from the transport, not proof of delivery.

    ``sent`` is False when the transport accepted the notice without handing
    it to any mail server.
    """
    message_id: Optional[str]
    recipients: Tuple[str, ...]
    sent: bool = True


class MailTransport(Protocol):
    def deliver(self, to: str, subject: str, text: str, html: str) -> DeliveryReceipt:
        ...


class SmtpTransport:
    """Sends multipart/alternative mail through one SMTP relay.

    Constructed once per process; each ``deliver`` opens its own connection so
    concurrent submissions never share an SMTP session. Internationalized
    addresses are sent with SMTPUTF8 when the relay advertises it.
    """

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_pass
        self.secure = settings.smtp_secure
        self.timeout = settings.smtp_timeout_seconds
        self.from_name = settings.from_name
        self.from_email = settings.from_email

    def build_message(self, to: str, subject: str, text: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative", policy=policy.SMTP)
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.from_email))
        msg["To"] = to
        msg["Date"] = formatdate(localtime=False)
        msg["Message-ID"] = make_msgid(domain=self.from_email.rpartition("@")[2] or None)
        if text:
            msg.attach(MIMEText(text, "plain", "utf-8", policy=policy.SMTP))
        if html:
            msg.attach(MIMEText(html, "html", "utf-8", policy=policy.SMTP))
        return msg

    def _connect(self) -> smtplib.SMTP:
        if self.secure:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def deliver(self, to: str, subject: str, text: str, html: str) -> DeliveryReceipt:
        msg = self.build_message(to, subject, text, html)
        with self._connect() as server:
            # EHLO first: both STARTTLS and SMTPUTF8 are read from its reply
            server.ehlo()
            if not self.secure and server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg, self.from_email, [to])
        return DeliveryReceipt(message_id=str(msg["Message-ID"]), recipients=(to,))


class DisabledTransport:
    """Used when SMTP is not configured: logs the message and sends nothing."""

    def deliver(self, to: str, subject: str, text: str, html: str) -> DeliveryReceipt:
        logger.info("SMTP not configured; skipping email to %s: %s", to, subject)
        return DeliveryReceipt(message_id=None, recipients=(to,), sent=False)


def build_transport(settings: Settings) -> MailTransport:
    if settings.smtp_configured:
        return SmtpTransport(settings)
    logger.warning("SMTP_HOST not set; outbound email is disabled")
    return DisabledTransport()


class NotificationDispatcher:
    def __init__(self, transport: MailTransport):
        self.transport = transport

    def send(self, to: str, subject: str, text: str, html: str) -> DeliveryReceipt:
        """Hand one email to the transport; raises ``DeliveryError`` on failure.

        Messages the transport cannot encode (an address or header it has no
        way to represent) count as delivery failures too.
        """
        if not to or not subject or not (text or html):
            raise DeliveryError("Missing required email parameters (to, subject, and text or html).", to)
        try:
            receipt = self.transport.deliver(to, subject, text, html)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            logger.warning(
                "email to %s failed", to, extra={"stage": "notify", "error": type(e).__name__}
            )
            raise DeliveryError(f"Failed to send email: {e}", to) from e
        logger.info("email sent to %s message_id=%s", to, receipt.message_id)
        return receipt
