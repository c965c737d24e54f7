# 메일 서비스 테스트 (smtplib.SMTP 모킹)
import asyncio
import email
import smtplib
from unittest.mock import patch

import pytest

from delicious.core.exceptions import UpstreamFailure
from delicious.services.mail_service import MailService, render

RESET_DATA = {"name": "Wes <b>", "reset_url": "http://localhost:8000/account/reset/abc123", "ttl_minutes": 60}


def test_render_fills_both_parts_and_escapes_html():
    subject, text, html = render("password-reset", RESET_DATA)
    assert subject == "Your password reset link"
    assert "http://localhost:8000/account/reset/abc123" in text
    assert "Wes <b>" in text
    assert "Wes &lt;b&gt;" in html
    assert 'href="http://localhost:8000/account/reset/abc123"' in html


def test_render_unknown_template():
    with pytest.raises(ValueError):
        render("welcome", {})


@patch("delicious.services.mail_service.smtplib.SMTP")
def test_send_delivers_reset_link(mock_smtp):
    asyncio.run(MailService().send("wes@example.com", "password-reset", RESET_DATA))

    server = mock_smtp.return_value
    sender, recipients, body = server.sendmail.call_args.args
    assert recipients == ["wes@example.com"]
    parts = [p.get_payload(decode=True).decode() for p in email.message_from_string(body).walk() if not p.is_multipart()]
    assert all("abc123" in part for part in parts)
    server.quit.assert_called_once()


@patch("delicious.services.mail_service.smtplib.SMTP")
def test_send_failure_becomes_upstream_failure(mock_smtp):
    mock_smtp.return_value.sendmail.side_effect = smtplib.SMTPException("relay denied")

    with pytest.raises(UpstreamFailure) as exc:
        asyncio.run(MailService().send("wes@example.com", "password-reset", RESET_DATA))

    assert exc.value.service == "smtp"
    mock_smtp.return_value.quit.assert_called()
