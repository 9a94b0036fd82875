"""
Contact, inquiry and offer notifications.

Each public form is validated, composed into a plain-text + HTML email
addressed to the studio, and handed to the mailer. Nothing is stored:
if delivery fails the visitor is asked to try again.
"""

from __future__ import annotations

import html
import logging

from pydantic import ValidationError as PydanticValidationError

from atelier.config import ADMIN_EMAIL, CURRENCY_SYMBOL
from atelier.errors import ValidationError
from atelier.models.forms import ContactForm, EmailMessage, InquiryForm, OfferForm
from atelier.models.painting import PaintingRecord

logger = logging.getLogger(__name__)

_PAINTING_BOX_STYLE = "margin-bottom: 20px; padding: 15px; background-color: #f2efe7; border-radius: 5px;"


def parse_form(model, data: dict):
    """Validate *data* with *model*, raising our ValidationError on failure.

    The first error message is surfaced verbatim, like the form toasts do.
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        errors = exc.errors()
        fields = [str(err["loc"][0]) for err in errors if err.get("loc")]
        first = errors[0]["msg"].removeprefix("Value error, ") if errors else None
        raise ValidationError(fields, first) from exc


def _html_text(value: str) -> str:
    return html.escape(value).replace("\n", "<br>")


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

def compose_contact(form: ContactForm, to: str = ADMIN_EMAIL) -> EmailMessage:
    name = f"{form.first_name} {form.last_name}"
    text = (
        f"Name: {name}\n"
        f"Email: {form.email}\n"
        f"Subject: {form.subject}\n\n"
        f"Message:\n{form.message}\n"
    )
    body = (
        "<h2>New Contact Form Submission</h2>"
        f"<p><strong>Name:</strong> {html.escape(name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(form.email)}</p>"
        f"<p><strong>Subject:</strong> {html.escape(form.subject)}</p>"
        "<p><strong>Message:</strong></p>"
        f"<p>{_html_text(form.message)}</p>"
    )
    return EmailMessage(to=to, subject=f"New Contact Form: {form.subject}", text=text, html=body)


def _painting_box(painting: PaintingRecord) -> str:
    return (
        f'<div style="{_PAINTING_BOX_STYLE}">'
        f"<p><strong>Painting:</strong> {html.escape(painting.title)}</p>"
        f"<p><strong>Details:</strong> {html.escape(painting.details_line)}</p>"
        "</div>"
    )


def compose_inquiry(form: InquiryForm, painting: PaintingRecord, to: str = ADMIN_EMAIL) -> EmailMessage:
    text = (
        "Painting Inquiry\n\n"
        f"Painting: {painting.title} (ID: {painting.id})\n"
        f"Details: {painting.details_line}\n\n"
        f"Name: {form.name}\n"
        f"Email: {form.email}\n\n"
        f"Message:\n{form.message}\n"
    )
    body = (
        "<h2>New Painting Inquiry</h2>"
        f"{_painting_box(painting)}"
        f"<p><strong>Name:</strong> {html.escape(form.name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(form.email)}</p>"
        "<p><strong>Message:</strong></p>"
        f"<p>{_html_text(form.message)}</p>"
    )
    return EmailMessage(to=to, subject=f"Painting Inquiry: {painting.title}", text=text, html=body)


def compose_offer(form: OfferForm, painting: PaintingRecord, to: str = ADMIN_EMAIL) -> EmailMessage:
    amount = f"{CURRENCY_SYMBOL}{form.offer_amount.lstrip(CURRENCY_SYMBOL)}"
    text = (
        "Painting Offer\n\n"
        f"Painting: {painting.title} (ID: {painting.id})\n"
        f"Details: {painting.details_line}\n\n"
        f"Name: {form.name}\n"
        f"Email: {form.email}\n"
        f"Offer Amount: {amount}\n\n"
        f"Comments:\n{form.comments}\n"
    )
    body = (
        "<h2>New Painting Offer</h2>"
        f"{_painting_box(painting)}"
        f"<p><strong>Name:</strong> {html.escape(form.name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(form.email)}</p>"
        f"<p><strong>Offer Amount:</strong> {html.escape(amount)}</p>"
        "<p><strong>Comments:</strong></p>"
        f"<p>{_html_text(form.comments)}</p>"
    )
    return EmailMessage(to=to, subject=f"Offer for Painting: {painting.title}", text=text, html=body)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def ensure_accepts_enquiries(painting: PaintingRecord) -> None:
    """Sold paintings get no inquiry or offer call-to-action."""
    if painting.sold:
        raise ValidationError(["painting"], "This painting has already been sold.")


def send_contact(mailer, data: dict) -> None:
    form = parse_form(ContactForm, data)
    mailer.send(compose_contact(form))
    logger.info("[notify] Contact message from %s delivered", form.email)


def send_inquiry(mailer, painting: PaintingRecord, data: dict) -> None:
    ensure_accepts_enquiries(painting)
    form = parse_form(InquiryForm, data)
    mailer.send(compose_inquiry(form, painting))
    logger.info("[notify] Inquiry about %s from %s delivered", painting.id, form.email)


def send_offer(mailer, painting: PaintingRecord, data: dict) -> None:
    ensure_accepts_enquiries(painting)
    form = parse_form(OfferForm, data)
    mailer.send(compose_offer(form, painting))
    logger.info("[notify] Offer on %s from %s delivered", painting.id, form.email)
