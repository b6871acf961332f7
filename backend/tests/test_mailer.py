"""
Tests for message composition, base64url encoding and send outcome mapping.
The Gmail API is an httpx.MockTransport; no network calls.
"""

import base64
import email
import email.policy
import json
import os

import pytest
from google.oauth2.credentials import Credentials

from app.models.contact import FormSubmission
from app.models.gmail import Envelope
from app.services.gmail_client import GmailClient
from app.services.mailer import (
    INTERNAL_SERVER_ERROR,
    SUCCESS,
    compose_html_message,
    compose_message,
    decode_base64url,
    encode_base64url,
    send_mail,
)
from conftest import gmail_transport

ENVELOPE = Envelope(
    sender="Site Owner <owner@example.com>",
    recipient="Site Owner <owner@example.com>",
    subject="Contact Form Submitted!",
)


def _ada() -> FormSubmission:
    return FormSubmission(first_name="Ada", last_name="Lovelace", email="ada@example.com", message="Hello")


def _credentials() -> Credentials:
    return Credentials(token="access-token")


class TestBase64Url:
    """URL-safe base64 as required by the ``raw`` field."""

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"a",
            b"ab",
            b"\xfb\xff\xbf",  # standard base64 of this is "+/+/"
            b"\xff\xfe\xfd\xfc\xfb\xfa",
            bytes(range(256)),
            os.urandom(1021),
        ],
    )
    def test_output_is_url_safe_and_reversible(self, data):
        encoded = encode_base64url(data)

        assert "+" not in encoded
        assert "/" not in encoded
        assert not encoded.endswith("=")
        assert decode_base64url(encoded) == data

    def test_substitutes_the_standard_alphabet(self):
        assert base64.b64encode(b"\xfb\xff\xbf").decode() == "+/+/"
        assert encode_base64url(b"\xfb\xff\xbf") == "-_-_"

    def test_strips_padding(self):
        assert base64.b64encode(b"a").decode() == "YQ=="
        assert encode_base64url(b"a") == "YQ"

    def test_str_is_encoded_as_utf8(self):
        assert decode_base64url(encode_base64url("héllo ✉️")) == "héllo ✉️".encode("utf-8")

    def test_matches_stdlib_urlsafe_encoding(self):
        data = b"Subject: hi\n\n??>>~~"
        expected = base64.urlsafe_b64encode(data).decode().rstrip("=")
        assert encode_base64url(data) == expected


class TestComposeMessage:
    def test_headers_and_reply_to(self):
        raw = compose_message(_ada(), ENVELOPE)

        assert "Reply-To: Ada Lovelace <ada@example.com>" in raw
        assert "From: Site Owner <owner@example.com>" in raw
        assert "To: Site Owner <owner@example.com>" in raw
        assert "Subject: Contact Form Submitted!" in raw

    def test_body_quotes_the_sender(self):
        parsed = email.message_from_string(compose_message(_ada(), ENVELOPE))
        body = parsed.get_payload(decode=True).decode("utf-8")

        assert parsed.get_content_type() == "text/plain"
        assert body == "Ada Lovelace (ada@example.com) sent you a message:\n\nHello"

    def test_non_ascii_name_is_header_encoded(self):
        submission = FormSubmission(
            first_name="Zoë", last_name="Ångström", email="zoe@example.com", message="Hej"
        )
        raw = compose_message(submission, ENVELOPE)
        parsed = email.message_from_string(raw, policy=email.policy.default)

        assert "Zoë" not in raw
        address = parsed["Reply-To"].addresses[0]
        assert address.display_name == "Zoë Ångström"
        assert address.addr_spec == "zoe@example.com"

    def test_html_variant_encodes_utf8_subject(self):
        envelope = ENVELOPE.model_copy(update={"subject": "You've received a message! ✉️"})
        raw = compose_html_message(_ada(), envelope)
        parsed = email.message_from_string(raw, policy=email.policy.default)

        assert parsed.get_content_type() == "text/html"
        assert parsed.get_content_charset() == "utf-8"
        assert "Subject: =?utf-8?" in raw
        assert parsed["Subject"] == "You've received a message! ✉️"
        assert parsed.get_payload(decode=True).decode("utf-8") == "Hello"
        assert "Reply-To: Ada Lovelace <ada@example.com>" in raw


class TestSendMail:
    """Success iff status 200 and the SENT label."""

    @pytest.mark.asyncio
    async def test_sent_label_with_200_is_success(self):
        requests = []
        transport = gmail_transport(requests=requests)

        async with GmailClient(_credentials(), transport=transport) as gmail:
            status = await send_mail(gmail, compose_message(_ada(), ENVELOPE))

        assert status == SUCCESS
        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/gmail/v1/users/me/messages/send"
        assert request.headers["Authorization"] == "Bearer access-token"

        raw = json.loads(request.content)["raw"]
        assert "Reply-To: Ada Lovelace <ada@example.com>" in decode_base64url(raw).decode()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "labels",
        [[], ["INBOX"], ["DRAFT", "UNREAD"], ["sent"]],
    )
    async def test_200_without_sent_label_is_failure(self, labels):
        transport = gmail_transport(body={"id": "msg-1", "labelIds": labels})

        async with GmailClient(_credentials(), transport=transport) as gmail:
            status = await send_mail(gmail, "Subject: x\n\nbody")

        assert status == INTERNAL_SERVER_ERROR

    @pytest.mark.asyncio
    async def test_200_without_label_ids_is_failure(self):
        transport = gmail_transport(body={"id": "msg-1"})

        async with GmailClient(_credentials(), transport=transport) as gmail:
            status = await send_mail(gmail, "Subject: x\n\nbody")

        assert status == INTERNAL_SERVER_ERROR

    @pytest.mark.asyncio
    async def test_other_2xx_with_sent_label_is_failure(self):
        transport = gmail_transport(status_code=202)

        async with GmailClient(_credentials(), transport=transport) as gmail:
            status = await send_mail(gmail, "Subject: x\n\nbody")

        assert status == INTERNAL_SERVER_ERROR

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 403, 429, 500, 503])
    async def test_error_status_is_failure(self, status_code):
        transport = gmail_transport(status_code=status_code, body={"error": {"message": "nope"}})

        async with GmailClient(_credentials(), transport=transport) as gmail:
            status = await send_mail(gmail, "Subject: x\n\nbody")

        assert status == INTERNAL_SERVER_ERROR
