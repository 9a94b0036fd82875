"""Pydantic v2 models for the public contact, inquiry and offer forms."""

from pydantic import BaseModel, EmailStr, ValidationInfo, field_validator


def _required(v: str, info: ValidationInfo) -> str:
    if not v or not v.strip():
        label = (info.field_name or "field").replace("_", " ").capitalize()
        raise ValueError(f"{label} is required")
    return v.strip()


class ContactForm(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    subject: str
    message: str

    @field_validator("first_name", "last_name", "subject", "message")
    @classmethod
    def _not_blank(cls, v: str, info: ValidationInfo) -> str:
        return _required(v, info)


class InquiryForm(BaseModel):
    name: str
    email: EmailStr
    message: str

    @field_validator("name", "message")
    @classmethod
    def _not_blank(cls, v: str, info: ValidationInfo) -> str:
        return _required(v, info)


class OfferForm(BaseModel):
    name: str
    email: EmailStr
    offer_amount: str
    comments: str = ""

    @field_validator("name", "offer_amount")
    @classmethod
    def _not_blank(cls, v: str, info: ValidationInfo) -> str:
        return _required(v, info)


class EmailMessage(BaseModel):
    """A composed notification, ready for the mailer."""

    to: str
    subject: str
    text: str
    html: str
