"""Share-a-movie emails over SMTP."""

import asyncio
import smtplib
from email.message import EmailMessage
from html import escape

from reelswipe.config import Config, config
from reelswipe.core.contracts import MovieCard
from reelswipe.logging import get_logger

logger = get_logger(__name__)

POSTER_BASE_URL = "https://image.tmdb.org/t/p/w342"
TMDB_MOVIE_URL = "https://www.themoviedb.org/movie"
SMTP_TIMEOUT = 20


class MailError(Exception):
    """Raised when an email cannot be sent."""


def build_share_message(
    card: MovieCard,
    recipient_email: str,
    sender_name: str,
    personal_message: str = "",
    mail_from: str = "",
) -> EmailMessage:
    """Compose the share email (plain text with an HTML alternative)."""
    year = f" ({card.release_year})" if card.release_year else ""
    link = f"{TMDB_MOVIE_URL}/{card.tmdb_id}"

    msg = EmailMessage()
    msg["Subject"] = f"{sender_name} thinks you should watch {card.title}{year}"
    msg["From"] = mail_from
    msg["To"] = recipient_email

    text_lines = [f"{sender_name} shared a movie with you: {card.title}{year}", ""]
    if personal_message.strip():
        text_lines += [f'"{personal_message.strip()}"', ""]
    if card.overview:
        text_lines += [card.overview, ""]
    text_lines.append(link)
    msg.set_content("\n".join(text_lines))

    poster = (
        f'<img src="{POSTER_BASE_URL}{card.poster_path}" alt="" width="171"><br>'
        if card.poster_path
        else ""
    )
    note = f"<blockquote>{escape(personal_message.strip())}</blockquote>" if personal_message.strip() else ""
    msg.add_alternative(
        f"<p>{escape(sender_name)} shared a movie with you:</p>"
        f"<h2>{escape(card.title)}{escape(year)}</h2>"
        f"{poster}{note}"
        f"<p>{escape(card.overview)}</p>"
        f'<p><a href="{link}">View on TMDB</a></p>',
        subtype="html",
    )
    return msg


def _send_sync(msg: EmailMessage, settings: Config) -> None:
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=SMTP_TIMEOUT) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls()
        if settings.smtp_username and settings.smtp_password:
            smtp.login(settings.smtp_username, settings.smtp_password)
        smtp.send_message(msg)


async def send_share_email(
    card: MovieCard,
    recipient_email: str,
    sender_name: str,
    personal_message: str = "",
    settings: Config | None = None,
) -> None:
    """Send a share email from a worker thread.

    Raises:
        MailError: If mail is not configured or the SMTP exchange fails
    """
    settings = settings or config
    if not settings.mail_enabled:
        raise MailError("Mail is not configured")

    msg = build_share_message(
        card,
        recipient_email,
        sender_name,
        personal_message,
        mail_from=settings.mail_from or "",
    )
    try:
        await asyncio.to_thread(_send_sync, msg, settings)
    except (smtplib.SMTPException, OSError) as e:
        raise MailError(f"Sending to {recipient_email} failed: {e}") from e
    logger.info(f"Shared movie {card.tmdb_id} with {recipient_email}")
