from .contact import FormSubmission, JsonSubmission
from .gmail import OOB_REDIRECT_URI, ClientCredentials, Envelope, SentMessage, Token

__all__ = [
    "FormSubmission",
    "JsonSubmission",
    "ClientCredentials",
    "Envelope",
    "SentMessage",
    "Token",
    "OOB_REDIRECT_URI",
]
