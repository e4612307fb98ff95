"""
MJML Email Templates
All transactional emails share one responsive base layout
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

THEME = {
    "primary": "#f97316",
    "primary_dark": "#ea580c",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "danger": "#ef4444",
}

LOGO_URL = "https://homezy.ae/logo.png"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px">
          <mj-column>
            <mj-image src="{LOGO_URL}" alt="Homezy" width="140px" href="https://homezy.ae" padding="0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              © Homezy. Dubai, United Arab Emirates.
            </mj-text>
            <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
              You're receiving this because you have an account with Homezy.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def pro_approved_template(pro_name: str, verification_level: str) -> str:
    level_label = "Comprehensive" if verification_level == "comprehensive" else "Basic"
    discount_note = ""
    if verification_level == "comprehensive":
        discount_note = """
    <mj-text>
      As a comprehensively verified pro you also get 15% off every lead you claim.
    </mj-text>
    """

    content = f"""
    <mj-text>Hi {escape(pro_name)},</mj-text>
    <mj-text>
      Good news: your business has been verified on Homezy ({level_label} verification).
      You can now claim leads and send quotes to homeowners.
    </mj-text>
    {discount_note}
    """
    return get_base_template(
        title="You're verified!",
        preview_text="Your Homezy professional account is approved",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/pro/leads",
        cta_label="Browse Leads",
    )


def pro_rejected_template(pro_name: str, reason: str) -> str:
    content = f"""
    <mj-text>Hi {escape(pro_name)},</mj-text>
    <mj-text>
      We couldn't verify your business with the documents provided.
    </mj-text>
    <mj-text color="{THEME['danger']}">
      Reason: {escape(reason)}
    </mj-text>
    <mj-text>
      Upload updated documents from your dashboard and we'll review them again.
    </mj-text>
    """
    return get_base_template(
        title="Verification update",
        preview_text="Action needed on your Homezy verification",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/pro/verification",
        cta_label="Update Documents",
    )


def new_quote_template(homeowner_name: str, pro_name: str, lead_title: str, total: float) -> str:
    content = f"""
    <mj-text>Hi {escape(homeowner_name)},</mj-text>
    <mj-text>
      <strong>{escape(pro_name)}</strong> sent you a quote for
      "{escape(lead_title)}".
    </mj-text>
    <mj-text font-size="20px" font-weight="600" color="{THEME['text_primary']}">
      AED {total:,.2f} (incl. VAT)
    </mj-text>
    """
    return get_base_template(
        title="You have a new quote",
        preview_text=f"New quote for {escape(lead_title)}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard/requests",
        cta_label="Compare Quotes",
    )


def quote_accepted_template(pro_name: str, homeowner_name: str, lead_title: str) -> str:
    content = f"""
    <mj-text>Hi {escape(pro_name)},</mj-text>
    <mj-text>
      {escape(homeowner_name)} accepted your quote for "{escape(lead_title)}".
      Reach out to confirm the start date.
    </mj-text>
    """
    return get_base_template(
        title="Your quote was accepted",
        preview_text="A homeowner accepted your quote",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/pro/messages",
        cta_label="Message Homeowner",
    )


def password_reset_template(first_name: str, reset_url: str, expires_minutes: int) -> str:
    content = f"""
    <mj-text>Hi {escape(first_name)},</mj-text>
    <mj-text>
      We received a request to reset your Homezy password. The link below
      works once and expires in {expires_minutes} minutes.
    </mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="13px">
      If you didn't ask for this, you can ignore this email. Your password stays the same.
    </mj-text>
    """
    return get_base_template(
        title="Reset your password",
        preview_text="Reset your Homezy password",
        content_sections=content,
        cta_url=reset_url,
        cta_label="Reset Password",
    )


def review_received_template(pro_name: str, homeowner_name: str, lead_title: str, rating: int) -> str:
    content = f"""
    <mj-text>Hi {escape(pro_name)},</mj-text>
    <mj-text>
      {escape(homeowner_name)} left you a {rating}-star review for "{escape(lead_title)}".
    </mj-text>
    <mj-text>A short public reply helps future homeowners get to know you.</mj-text>
    """
    return get_base_template(
        title="You have a new review",
        preview_text=f"New {rating}-star review",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/pro/reviews",
        cta_label="Read Review",
    )


def service_reminder_template(
    first_name: str, reminder_title: str, property_name: str, due_date: str, days_until_due: int
) -> str:
    if days_until_due <= 0:
        when = "today"
    elif days_until_due == 1:
        when = "tomorrow"
    else:
        when = f"in {days_until_due} days"
    content = f"""
    <mj-text>Hi {escape(first_name)},</mj-text>
    <mj-text>
      <strong>{escape(reminder_title)}</strong> for {escape(property_name)} is due {when} ({escape(due_date)}).
    </mj-text>
    <mj-text>Book a verified pro on Homezy or mark it done once it's taken care of.</mj-text>
    """
    return get_base_template(
        title="Service reminder",
        preview_text=f"{escape(reminder_title)} is due {when}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard/reminders",
        cta_label="View Reminder",
    )
