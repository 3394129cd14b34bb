"""SendGrid client for hygiene digest emails."""

import os

import httpx

from ..run_log import RunLog
from .models import Content, EmailAddress, MailSendRequest, Personalization

SENDGRID_BASE_URL = "https://api.sendgrid.com/"


def parse_cc_list(cc_emails: str | None) -> list[str]:
    """Split a comma-separated CC setting, trimming entries and dropping blanks."""
    if not cc_emails or not cc_emails.strip():
        return []
    return [email.strip() for email in cc_emails.split(",") if email.strip()]


class SendGridClient:
    """Client for sending emails through the SendGrid v3 API."""

    def __init__(
        self,
        from_email: str,
        api_key: str | None = None,
        from_name: str | None = None,
        content_type: str = "text/plain",
        cc_emails: str | None = None,
        run_log: RunLog | None = None,
        http_client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize SendGrid client.

        Args:
            from_email: Sender address
            api_key: SendGrid API key. If None, reads SENDGRID_API_KEY.
            from_name: Sender display name
            content_type: MIME type for message bodies
            cc_emails: Comma-separated CC addresses added to every digest
            run_log: Run log receiving error lines
            http_client: Preconfigured client (tests inject a mock transport)
            timeout: Request timeout in seconds
        """
        self.from_address = EmailAddress(email=from_email, name=from_name or None)
        self.content_type = content_type
        self.cc = parse_cc_list(cc_emails)
        self.run_log = run_log if run_log is not None else RunLog()

        if http_client is not None:
            self.http = http_client
            return

        api_key = api_key or os.getenv("SENDGRID_API_KEY")
        if not api_key:
            raise ValueError(
                "SendGrid API key is required. Set SENDGRID_API_KEY environment variable."
            )

        self.http = httpx.Client(
            base_url=SENDGRID_BASE_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "SendGridClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def build_request(
        self,
        to_email: str,
        to_name: str | None,
        subject: str,
        body: str,
        cc: list[str] | None = None,
        content_type: str | None = None,
    ) -> MailSendRequest:
        """Build the mail send payload for a single recipient."""
        cc_addresses = [EmailAddress(email=email) for email in cc or []]
        return MailSendRequest(
            personalizations=[
                Personalization(
                    to=[EmailAddress(email=to_email, name=to_name or None)],
                    cc=cc_addresses or None,
                    subject=subject,
                )
            ],
            from_=self.from_address,
            content=[Content(type=content_type or self.content_type, value=body)],
        )

    def send(
        self,
        to_email: str,
        to_name: str | None,
        subject: str,
        body: str,
        cc: list[str] | None = None,
        content_type: str | None = None,
    ) -> bool:
        """Send one email.

        Args:
            to_email: Recipient address
            to_name: Recipient display name
            subject: Rendered subject
            body: Rendered body
            cc: CC addresses; defaults to the configured CC list
            content_type: MIME type override for this message

        Returns:
            True if SendGrid accepted the message, False otherwise
        """
        request = self.build_request(
            to_email,
            to_name,
            subject,
            body,
            cc=self.cc if cc is None else cc,
            content_type=content_type,
        )

        try:
            response = self.http.post(
                "v3/mail/send",
                json=request.model_dump(by_alias=True, exclude_none=True),
            )
        except httpx.HTTPError as e:
            self.run_log.error(f"SendGrid error sending to {to_email}: {e}")
            return False

        if response.is_success:
            return True

        self.run_log.error(f"SendGrid error {response.status_code}: {response.text}")
        return False

    def send_log(self, to_email: str, subject: str, body: str) -> bool:
        """Send a plain-text run log without the digest CC list."""
        return self.send(
            to_email, to_email, subject, body, cc=[], content_type="text/plain"
        )
