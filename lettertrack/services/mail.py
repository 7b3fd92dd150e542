"""Outbound letter email: message composition and relay client."""

import html
import logging
from dataclasses import dataclass

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from lettertrack.config import settings
from lettertrack.exceptions import (
    TRANSIENT_ERRORS,
    MailNotConfiguredError,
    PermanentDispatchError,
    TransientDispatchError,
)
from lettertrack.models import Letter

logger = logging.getLogger(__name__)

FOOTER = "Sent from Letter Management System"
ATTACHMENT_NOTE = "Note: Please download the attachment from the link above."
NO_ATTACHMENT_NOTE = "Note: This letter does not have a file attachment."


@dataclass
class OutgoingEmail:
    """A composed letter email, ready to hand to the relay."""

    to: str
    subject: str
    text: str
    html: str


def default_subject(letter: Letter) -> str:
    return f"Letter: {letter.title or 'Document'}"


def compose_letter_email(
    letter: Letter,
    to: str,
    message: str | None = None,
    subject: str | None = None,
) -> OutgoingEmail:
    """
    Build the plain-text and HTML bodies for sending a letter.

    The body carries the attachment link when the letter has one, or a note
    saying there is no file attachment.
    """
    title = letter.title or "Document"
    message = message or f"Please find the letter: {title}"

    text = message
    if letter.attachment_url:
        text += f"\n\nAttachment: {letter.attachment_url}\n\n{ATTACHMENT_NOTE}"
    else:
        text += f"\n\n{NO_ATTACHMENT_NOTE}"
    text += f"\n\n{FOOTER}"

    if letter.attachment_url:
        url = html.escape(letter.attachment_url, quote=True)
        attachment_html = (
            f'<p><strong>Attachment available:</strong> <a href="{url}">'
            f"Click here to download the attachment</a></p>"
            f"<p><small>{ATTACHMENT_NOTE}</small></p>"
        )
    else:
        attachment_html = f"<p>{NO_ATTACHMENT_NOTE}</p>"

    body_html = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px;">'
        f"<h2>{html.escape(settings.mail_from_name)}</h2>"
        f"<h3>Letter: {html.escape(title)}</h3>"
        f"<div>{html.escape(message).replace(chr(10), '<br>')}</div>"
        f"{attachment_html}"
        f"<p><small>{FOOTER}</small></p>"
        "</div>"
    )

    return OutgoingEmail(
        to=to,
        subject=subject or default_subject(letter),
        text=text,
        html=body_html,
    )


class MailRelay:
    """HTTP client for the outbound mail relay.

    The relay accepts a JSON message and answers with a ``message_id``.
    SMTP delivery itself happens on the relay side.
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        from_address: str | None = None,
        from_name: str | None = None,
        timeout: float | None = None,
    ):
        self.url = url if url is not None else settings.mail_relay_url
        self.api_key = api_key if api_key is not None else settings.mail_relay_api_key
        self.from_address = from_address or settings.mail_from_address
        self.from_name = from_name or settings.mail_from_name
        self.timeout = timeout or settings.mail_timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.url)

    async def send(self, email: OutgoingEmail) -> str:
        """
        Send one email through the relay.

        Returns:
            The relay's message id

        Raises:
            MailNotConfiguredError: If no relay URL is set
            PermanentDispatchError: If the relay rejects the message (4xx)
            TransientDispatchError: If the relay stays unreachable after retries
        """
        if not self.is_configured:
            raise MailNotConfiguredError("MAIL_RELAY_URL is not configured")

        payload = {
            "from": {"name": self.from_name, "address": self.from_address},
            "to": email.to,
            "subject": email.subject,
            "text": email.text,
            "html": email.html,
        }
        try:
            return await self._post(payload)
        except (httpx.TransportError, *TRANSIENT_ERRORS) as e:
            raise TransientDispatchError(f"Mail relay unreachable: {e}") from e

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, TransientDispatchError, *TRANSIENT_ERRORS)),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _post(self, payload: dict) -> str:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json=payload, headers=headers)

        if response.status_code >= 500:
            logger.warning(f"Mail relay returned {response.status_code} for {payload['to']}")
            raise TransientDispatchError(f"Mail relay error {response.status_code}")
        if response.status_code >= 400:
            raise PermanentDispatchError(
                f"Mail relay rejected message ({response.status_code}): {response.text}"
            )

        message_id = _message_id(response)
        logger.info(f"Mail relay accepted message {message_id} for {payload['to']}")
        return message_id


def _message_id(response: httpx.Response) -> str:
    # Relays may answer 202/204 with an empty or plain-text body
    try:
        data = response.json()
    except ValueError:
        return ""
    if not isinstance(data, dict):
        return ""
    return str(data.get("message_id") or "")
