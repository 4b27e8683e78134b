"""
MJML Email Templates
Transactional emails for bookings and payments
"""

from typing import Optional

THEME = {
    "primary": "#4f46e5",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}

BRAND_NAME = "Urban Services"

STATUS_MESSAGES = {
    "confirmed": "Your booking has been confirmed",
    "in_progress": "Your service is in progress",
    "completed": "Your service has been completed",
    "cancelled": "Your booking has been cancelled",
    "refunded": "Your booking has been refunded",
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
            <mj-button href="{cta_url}" background-color="{THEME['primary']}" color="#ffffff"
              font-weight="600" border-radius="8px" padding="18px 40px" font-size="16px">
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
        <mj-section background-color="#ffffff" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>
        {cta_section}
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="{THEME['text_muted']}" padding="0">
              Thank you for choosing {BRAND_NAME}.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_rows(rows: list[tuple[str, str]]) -> str:
    lines = "".join(
        f"<tr><td style=\"padding:4px 16px 4px 0;color:{THEME['text_muted']}\">{label}</td>"
        f"<td style=\"padding:4px 0;color:{THEME['text_primary']}\">{value}</td></tr>"
        for label, value in rows
    )
    return f"<mj-table>{lines}</mj-table>"


def booking_confirmation_template(
    customer_name: str, booking_ref: str, service_name: str, scheduled_at: str, amount: float, booking_url: str
) -> str:
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>Your booking has been confirmed!</mj-text>
    {_detail_rows([
        ("Service", service_name),
        ("Scheduled", scheduled_at),
        ("Amount", f"₹{amount:.2f}"),
        ("Booking ID", booking_ref),
    ])}
    """
    return get_base_template(
        title=f"Booking Confirmed - {service_name}",
        preview_text="Your booking has been confirmed",
        content_sections=content,
        cta_url=booking_url,
        cta_label="View Booking",
    )


def booking_status_update_template(
    customer_name: str, booking_ref: str, service_name: str, status: str, booking_url: str
) -> str:
    headline = STATUS_MESSAGES.get(status, "Your booking status has been updated")
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>{headline}.</mj-text>
    {_detail_rows([
        ("Service", service_name),
        ("Status", status.replace("_", " ").title()),
        ("Booking ID", booking_ref),
    ])}
    """
    return get_base_template(
        title=f"Booking Update - {service_name}",
        preview_text=headline,
        content_sections=content,
        cta_url=booking_url,
        cta_label="View Booking",
    )


def payment_confirmation_template(customer_name: str, booking_ref: str, amount: float, transaction_id: str) -> str:
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>Your payment has been confirmed!</mj-text>
    {_detail_rows([
        ("Amount", f"₹{amount:.2f}"),
        ("Transaction ID", transaction_id),
        ("Booking ID", booking_ref),
    ])}
    """
    return get_base_template(
        title="Payment Confirmed",
        preview_text="Your payment has been confirmed",
        content_sections=content,
    )
