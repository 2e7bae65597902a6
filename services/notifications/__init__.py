"""Outbound e-mail notifications."""

from .mailer import Mailer, get_mailer, mailer

__all__ = ["Mailer", "get_mailer", "mailer"]
