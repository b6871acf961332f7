"""Contact-form message composition and delivery.

Builds the message the site owner receives:
- From/To are the fixed addresses in the envelope
- Reply-To is the person who submitted the form
- The body quotes their message
"""

from __future__ import annotations

import base64
from email.header import Header
from email.mime.text import MIMEText
from email.utils import formataddr

from loguru import logger

from app.models.contact import FormSubmission
from app.models.gmail import Envelope
from app.services.gmail_client import GmailAPIError, GmailClient

SUCCESS = 200
INTERNAL_SERVER_ERROR = 500


def encode_base64url(data: str | bytes) -> str:
    """Encode a message as URL-safe base64 without padding, as Gmail's ``raw`` field expects."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    encoded = base64.b64encode(data).decode("ascii")
    return encoded.replace("+", "-").replace("/", "_").rstrip("=")


def decode_base64url(encoded: str) -> bytes:
    standard = encoded.replace("-", "+").replace("_", "/")
    return base64.b64decode(standard + "=" * (-len(standard) % 4))


def _subject_header(subject: str) -> str | Header:
    # RFC 2047 only when needed, so ASCII subjects stay readable
    if subject.isascii():
        return subject
    return Header(subject, "utf-8")


def reply_to_address(submission: FormSubmission) -> str:
    return formataddr((submission.full_name, submission.email))


def compose_message(submission: FormSubmission, envelope: Envelope) -> str:
    """Plain-text notification for a form submission."""
    body = (
        f"{submission.full_name} ({submission.email}) sent you a message:\n\n"
        f"{submission.message}"
    )
    msg = MIMEText(body, "plain", "utf-8")
    msg["From"] = envelope.sender
    msg["To"] = envelope.recipient
    msg["Reply-To"] = reply_to_address(submission)
    msg["Subject"] = _subject_header(envelope.subject)
    return msg.as_string()


def compose_html_message(submission: FormSubmission, envelope: Envelope) -> str:
    """HTML notification; the submitted message is used verbatim as the body."""
    msg = MIMEText(submission.message, "html", "utf-8")
    msg["From"] = envelope.sender
    msg["To"] = envelope.recipient
    msg["Reply-To"] = reply_to_address(submission)
    msg["Subject"] = _subject_header(envelope.subject)
    return msg.as_string()


async def send_mail(client: GmailClient, message: str) -> int:
    """Send a composed message and report the outcome as an HTTP status code.

    Success means Gmail answered 200 *and* labelled the message ``SENT``;
    anything else is a failure.
    """
    try:
        sent = await client.send_message(encode_base64url(message))
    except GmailAPIError as e:
        logger.error("{} ERROR: Email not sent!", e.status_code)
        return INTERNAL_SERVER_ERROR

    if sent.was_sent:
        logger.info("Email sent! (id={})", sent.id)
        return SUCCESS

    logger.error("{} ERROR: Email not sent! (labels={})", sent.status_code, sent.label_ids)
    return INTERNAL_SERVER_ERROR
