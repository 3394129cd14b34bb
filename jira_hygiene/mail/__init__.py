"""Email delivery for hygiene digests."""

from .client import SendGridClient, parse_cc_list

__all__ = ["SendGridClient", "parse_cc_list"]
