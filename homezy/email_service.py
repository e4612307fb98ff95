"""
Email Service using Resend
Compiles MJML templates to HTML and sends transactional emails
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    new_quote_template,
    password_reset_template,
    pro_approved_template,
    pro_rejected_template,
    quote_accepted_template,
    review_received_template,
    service_reminder_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfiguredError(Exception):
    """Raised when no email provider is configured"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        errors = getattr(result, "errors", None)
        if errors:
            logger.warning(f"MJML compilation warnings: {errors}")
        return getattr(result, "html", None) or str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        raise EmailNotConfiguredError("RESEND_API_KEY missing")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def send_safely(to: str, subject: str, mjml_content: str) -> Optional[dict]:
    """Best-effort send for background tasks; never raises"""
    try:
        return await send_email(to=to, subject=subject, mjml_content=mjml_content)
    except EmailNotConfiguredError:
        logger.info(f"📧 Email skipped (not configured): {subject} -> {to}")
    except Exception as e:
        logger.error(f"❌ Background email failed: {subject} -> {to}: {e}")
    return None


async def send_pro_approved_email(to: str, pro_name: str, verification_level: str):
    return await send_safely(
        to, "Your Homezy account is verified", pro_approved_template(pro_name, verification_level)
    )


async def send_pro_rejected_email(to: str, pro_name: str, reason: str):
    return await send_safely(
        to, "Update on your Homezy verification", pro_rejected_template(pro_name, reason)
    )


async def send_new_quote_email(
    to: str, homeowner_name: str, pro_name: str, lead_title: str, total: float
):
    return await send_safely(
        to,
        f"New quote for {lead_title}",
        new_quote_template(homeowner_name, pro_name, lead_title, total),
    )


async def send_quote_accepted_email(to: str, pro_name: str, homeowner_name: str, lead_title: str):
    return await send_safely(
        to,
        "Your quote was accepted",
        quote_accepted_template(pro_name, homeowner_name, lead_title),
    )


async def send_password_reset_email(to: str, first_name: str, reset_url: str, expires_minutes: int):
    return await send_safely(
        to, "Reset your Homezy password", password_reset_template(first_name, reset_url, expires_minutes)
    )


async def send_review_received_email(to: str, pro_name: str, homeowner_name: str, lead_title: str, rating: int):
    return await send_safely(
        to,
        "You have a new review",
        review_received_template(pro_name, homeowner_name, lead_title, rating),
    )


async def send_service_reminder_email(
    to: str, first_name: str, reminder_title: str, property_name: str, due_date: str, days_until_due: int
):
    return await send_safely(
        to,
        f"Reminder: {reminder_title}",
        service_reminder_template(first_name, reminder_title, property_name, due_date, days_until_due),
    )
