"""
Tests for SMTP delivery.
"""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from rssbrief.delivery import EmailMessage, SMTPDeliveryAdapter
from rssbrief.exceptions import DeliveryError
from rssbrief.results import Err, Ok

MESSAGE = EmailMessage(
    to="reader@example.com",
    from_addr="RSSBrief <brief@example.com>",
    subject="Your RSS Brief for Monday, January 12, 2026",
    text="# Your Weekly RSS Brief",
)


class TestSMTPDelivery:

    def test_build_message(self):
        adapter = SMTPDeliveryAdapter("smtp.example.com")
        mime = adapter.build_message(MESSAGE)

        assert mime["To"] == "reader@example.com"
        assert mime["Subject"] == MESSAGE.subject
        assert mime["Message-ID"].endswith("@example.com>")
        assert "# Your Weekly RSS Brief" in mime.get_content()

    @pytest.mark.asyncio
    async def test_send_uses_starttls_and_login(self):
        adapter = SMTPDeliveryAdapter(
            "smtp.example.com", port=2525, username="user", password="secret"
        )
        smtp = MagicMock()
        with patch("rssbrief.delivery.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            delivery_id = await adapter.send(MESSAGE)

        smtp_cls.assert_called_once_with("smtp.example.com", 2525, timeout=30.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("user", "secret")
        smtp.send_message.assert_called_once()
        assert delivery_id.startswith("<")

    @pytest.mark.asyncio
    async def test_no_login_without_credentials(self):
        adapter = SMTPDeliveryAdapter("smtp.example.com", use_tls=False)
        smtp = MagicMock()
        with patch("rssbrief.delivery.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            await adapter.send(MESSAGE)

        smtp.starttls.assert_not_called()
        smtp.login.assert_not_called()

    @pytest.mark.asyncio
    async def test_smtp_error_is_delivery_error(self):
        adapter = SMTPDeliveryAdapter("smtp.example.com")
        smtp = MagicMock()
        smtp.send_message.side_effect = smtplib.SMTPRecipientsRefused({MESSAGE.to: (550, b"no")})
        with patch("rssbrief.delivery.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            with pytest.raises(DeliveryError) as exc_info:
                await adapter.send(MESSAGE)

        assert exc_info.value.step == "deliver"

    @pytest.mark.asyncio
    async def test_safe_send(self):
        adapter = SMTPDeliveryAdapter("smtp.example.com")
        with patch("rssbrief.delivery.smtplib.SMTP", side_effect=ConnectionRefusedError("refused")):
            result = await adapter.safe_send(MESSAGE)

        assert isinstance(result, Err)
        assert "refused" in result.error.message

    @pytest.mark.asyncio
    async def test_safe_send_ok(self, delivery):
        result = await delivery.safe_send(MESSAGE)
        assert isinstance(result, Ok)
        assert delivery.sent == [MESSAGE]
