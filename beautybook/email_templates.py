"""
MJML Email Templates
Appointment emails built with MJML for responsive, cross-client rendering
"""

from typing import Optional

from .config import FRONTEND_URL

# App theme colors - Rose/Slate color scheme
THEME = {
    "primary": "#e11d48",
    "primary_light": "#ffe4e6",
    "background": "#fdf2f8",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


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
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-text align="center" font-size="22px" font-weight="700" color="{THEME['primary']}">
              BeautyBook
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 40px 40px">
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
              You're receiving this because you booked through BeautyBook.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details_block(rows: list[tuple[str, str]]) -> str:
    lines = "<br/>".join(f"<strong>{label}:</strong> {value}" for label, value in rows)
    return f"""
    <mj-text background-color="{THEME['primary_light']}" padding="16px" css-class="details">
      {lines}
    </mj-text>
    """


def appointment_confirmation_template(
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: str,
    end_time: str,
    amount: float,
    deposit_amount: Optional[float] = None,
) -> str:
    """Booking confirmation sent to the customer"""
    rows = [
        ("Provider", provider_name),
        ("Service", service_name),
        ("Date", date),
        ("Time", f"{start_time} - {end_time}"),
        ("Price", f"${amount:.2f}"),
    ]
    deposit_note = ""
    if deposit_amount:
        rows.append(("Deposit due", f"${deposit_amount:.2f}"))
        deposit_note = f"""
        <mj-text color="{THEME['warning']}">
          This service requires a deposit to hold your spot.
        </mj-text>
        """

    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>Your appointment is booked. Here are the details:</mj-text>
    {_details_block(rows)}
    {deposit_note}
    <mj-text color="{THEME['text_muted']}">We'll send you a reminder before your visit.</mj-text>
    """
    return get_base_template(
        title="Your appointment is booked!",
        preview_text=f"{service_name} with {provider_name} on {date}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/customer/appointments",
        cta_label="View Appointment",
    )


def appointment_reschedule_template(
    customer_name: str,
    provider_name: str,
    service_name: str,
    old_date: str,
    old_start_time: str,
    new_date: str,
    new_start_time: str,
    new_end_time: str,
) -> str:
    """Reschedule notice sent to the customer"""
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>Your {service_name} with {provider_name} has been moved.</mj-text>
    {_details_block([
        ("Previous time", f"<s>{old_date} {old_start_time}</s>"),
        ("New time", f"{new_date} {new_start_time} - {new_end_time}"),
    ])}
    """
    return get_base_template(
        title="Appointment rescheduled",
        preview_text=f"New time: {new_date} {new_start_time}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/customer/appointments",
        cta_label="View Appointment",
    )


def appointment_cancellation_template(
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: str,
    reason: Optional[str] = None,
    refund_amount: float = 0,
) -> str:
    """Cancellation notice sent to the customer"""
    rows = [("Provider", provider_name), ("Service", service_name), ("Date", f"{date} {start_time}")]
    if reason:
        rows.append(("Reason", reason))
    if refund_amount:
        rows.append(("Refund", f"${refund_amount:.2f} (5-7 business days)"))

    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>Your appointment has been cancelled.</mj-text>
    {_details_block(rows)}
    """
    return get_base_template(
        title="Appointment cancelled",
        preview_text=f"{service_name} on {date} was cancelled",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/providers",
        cta_label="Book Again",
    )


def appointment_reminder_template(
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: str,
    address: Optional[str] = None,
) -> str:
    """Reminder sent ahead of an appointment"""
    rows = [("Provider", provider_name), ("Service", service_name), ("When", f"{date} at {start_time}")]
    if address:
        rows.append(("Where", address))

    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>This is a friendly reminder about your upcoming appointment.</mj-text>
    {_details_block(rows)}
    <mj-text color="{THEME['text_muted']}">Please arrive 5-10 minutes early.</mj-text>
    """
    return get_base_template(
        title="Appointment reminder",
        preview_text=f"{service_name} on {date} at {start_time}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/customer/appointments",
        cta_label="Manage Appointment",
    )


def _preferred_time(start_time: Optional[str], flexible: bool) -> str:
    if flexible or not start_time:
        return "Any time"
    return start_time


def waitlist_confirmation_template(
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: Optional[str] = None,
    flexible: bool = False,
) -> str:
    """Sent when a customer joins a waitlist"""
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>You're on the waitlist. We'll let you know as soon as a spot opens up.</mj-text>
    {_details_block([
        ("Provider", provider_name),
        ("Service", service_name),
        ("Date", date),
        ("Preferred time", _preferred_time(start_time, flexible)),
    ])}
    """
    return get_base_template(
        title="You're on the waitlist",
        preview_text=f"Waitlist for {service_name} on {date}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/customer/waitlist",
        cta_label="View Waitlist",
    )


def waitlist_slot_available_template(
    customer_name: str,
    provider_name: str,
    service_name: str,
    date: str,
    start_time: str,
    booking_url: str,
) -> str:
    """Sent when a cancellation frees a slot a waitlisted customer wanted"""
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>Good news! A spot just opened up. Slots go fast, so book soon.</mj-text>
    {_details_block([
        ("Provider", provider_name),
        ("Service", service_name),
        ("When", f"{date} at {start_time}"),
    ])}
    """
    return get_base_template(
        title="A spot opened up",
        preview_text=f"{service_name} on {date} at {start_time} is available",
        content_sections=content,
        cta_url=booking_url,
        cta_label="Book Now",
    )
