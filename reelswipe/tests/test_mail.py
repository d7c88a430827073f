"""Tests for share emails."""

from dataclasses import replace
from unittest.mock import MagicMock, patch

import pytest

from reelswipe.config import config
from reelswipe.core.contracts import MovieCard
from reelswipe.mail.sender import MailError, build_share_message, send_share_email

CARD = MovieCard(
    tmdb_id=348,
    title="Alien",
    poster_path="/alien.jpg",
    overview="In space no one can hear you scream.",
    release_date="1979-05-25",
)


def mail_settings(**changes):
    return replace(
        config,
        smtp_host="smtp.test",
        smtp_port=2525,
        smtp_username="user",
        smtp_password="secret",
        mail_from="ReelSwipe <noreply@test>",
        **changes,
    )


def test_build_share_message():
    msg = build_share_message(CARD, "bob@example.com", "Ana", "You <3 this", mail_from="noreply@test")

    assert msg["Subject"] == "Ana thinks you should watch Alien (1979)"
    assert msg["To"] == "bob@example.com"

    text = msg.get_body(("plain",)).get_content()
    assert '"You <3 this"' in text
    assert "https://www.themoviedb.org/movie/348" in text

    html = msg.get_body(("html",)).get_content()
    assert "You &lt;3 this" in html
    assert "/alien.jpg" in html


@pytest.mark.anyio
async def test_send_requires_configuration():
    settings = replace(config, smtp_host=None, mail_from=None)

    with pytest.raises(MailError):
        await send_share_email(CARD, "bob@example.com", "Ana", settings=settings)


@pytest.mark.anyio
async def test_send_uses_smtp():
    smtp = MagicMock()
    with patch("reelswipe.mail.sender.smtplib.SMTP") as smtp_class:
        smtp_class.return_value.__enter__.return_value = smtp
        await send_share_email(CARD, "bob@example.com", "Ana", settings=mail_settings())

    smtp_class.assert_called_once_with("smtp.test", 2525, timeout=20)
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("user", "secret")
    sent = smtp.send_message.call_args.args[0]
    assert sent["To"] == "bob@example.com"


@pytest.mark.anyio
async def test_smtp_failure_is_mail_error():
    with patch("reelswipe.mail.sender.smtplib.SMTP", side_effect=OSError("connection refused")):
        with pytest.raises(MailError):
            await send_share_email(CARD, "bob@example.com", "Ana", settings=mail_settings())
