from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class FormSubmission(BaseModel):
    """A contact-form submission. Lives for the duration of one request."""

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    message: str = Field(min_length=1)

    model_config = {"str_strip_whitespace": True}

    @field_validator("first_name", "last_name", "email")
    @classmethod
    def _single_line(cls, value: str) -> str:
        # These end up in the Reply-To header
        if "\r" in value or "\n" in value:
            raise ValueError("must not contain line breaks")
        return value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class JsonSubmission(FormSubmission):
    """``POST /sendMail`` body. Only the camelCase keys the site sends are read."""

    first_name: str = Field(min_length=1, validation_alias="firstName")
    last_name: str = Field(min_length=1, validation_alias="lastName")
    message: str = Field(min_length=1, validation_alias="messageBody")
