from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from resto.application.ports.mailer import Mailer, OutboundEmail
from resto.config import SmtpSettings

logger = logging.getLogger(__name__)

_IMPLICIT_TLS_PORT = 465


class SmtpNotConfiguredError(RuntimeError):
    pass


class SmtpMailer(Mailer):
    def __init__(self, settings: SmtpSettings, timeout_seconds: float = 10.0) -> None:
        self._settings = settings
        self._timeout_seconds = timeout_seconds

    def _build(self, message: OutboundEmail) -> EmailMessage:
        email = EmailMessage()
        email["Subject"] = message.subject
        email["From"] = self._settings.sender
        email["To"] = message.to
        email.set_content(message.text)
        email.add_alternative(message.html, subtype="html")
        return email

    async def send(self, message: OutboundEmail) -> None:
        if not self._settings.is_configured:
            raise SmtpNotConfiguredError("SMTP_HOST is not set")

        use_tls = self._settings.port == _IMPLICIT_TLS_PORT
        await aiosmtplib.send(
            self._build(message),
            hostname=self._settings.host,
            port=self._settings.port,
            username=self._settings.username,
            password=self._settings.password,
            use_tls=use_tls,
            start_tls=self._settings.starttls and not use_tls,
            timeout=self._timeout_seconds,
        )
        logger.debug("smtp_message_sent", extra={"subject": message.subject})
