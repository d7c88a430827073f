"""Outgoing email."""

from reelswipe.mail.sender import MailError, build_share_message, send_share_email

__all__ = ["MailError", "build_share_message", "send_share_email"]
