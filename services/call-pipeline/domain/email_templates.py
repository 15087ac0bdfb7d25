"""Renders outbound notification emails."""

import json
from html import escape

from domain.models import ActionItem, EmailAttachment, EmailMessage, ExtractedRecord

NOT_PROVIDED = "Not provided"

CUSTOMER_DOCUMENTS = (
    "Last 2 years of tax returns",
    "Last 2 months of bank statements",
    "Most recent pay stubs (last 30 days)",
    "Photo ID and Social Security card",
)


def _value(value) -> str:
    if value is None or value == "":
        return NOT_PROVIDED
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)


def _lead_rows(record: ExtractedRecord) -> list[tuple[str, list[tuple[str, str]]]]:
    fields = record.fields
    borrower = fields.borrower_information
    loan = fields.loan_details
    financial = fields.financial_information
    timeline = fields.timeline
    return [
        (
            "Borrower Information",
            [
                ("Name", _value(borrower and borrower.full_name)),
                ("Phone", _value(borrower and borrower.phone_number)),
                ("Email", _value(borrower and borrower.email_address)),
                ("Address", _value(borrower and borrower.current_address)),
            ],
        ),
        (
            "Loan Details",
            [
                ("Purpose", _value(loan and loan.loan_purpose)),
                ("Amount", _value(loan and loan.requested_loan_amount)),
                ("Property", _value(loan and loan.property_address)),
                ("Property Type", _value(loan and loan.property_type)),
                ("Occupancy", _value(loan and loan.occupancy)),
            ],
        ),
        (
            "Financial Information",
            [
                ("Credit Score", _value(financial and financial.credit_score)),
                ("Annual Income", _value(financial and financial.annual_income)),
                ("Employment", _value(financial and financial.employment_status)),
                ("Down Payment", _value(financial and financial.down_payment_amount)),
            ],
        ),
        (
            "Timeline",
            [
                ("Urgency", _value(timeline and timeline.urgency)),
                ("Target Closing", _value(timeline and timeline.target_closing_date)),
                ("Pre-approval By", _value(timeline and timeline.pre_approval_needed_by)),
            ],
        ),
    ]


def _action_item_line(item: ActionItem) -> str:
    due = f" - Due: {item.due_date.isoformat()}" if item.due_date else ""
    return f"{item.task} (Priority: {item.priority}){due}"


def alert_subject(record: ExtractedRecord | None) -> str:
    name = (record and record.borrower_name) or "Unknown"
    loan = record.fields.loan_details if record else None
    purpose = (loan and loan.loan_purpose) or "Mortgage Inquiry"
    return f"New Lead: {name} - {purpose}"


def render_alert_text(
    call_id: str,
    duration: int | None,
    loan_officer_name: str,
    record: ExtractedRecord | None,
) -> str:
    lines = [
        "CALL SUMMARY",
        "============",
        f"Call: {call_id}",
        f"Duration: {_value(duration)} seconds",
        f"Loan Officer: {loan_officer_name}",
        "",
    ]
    if record is None:
        lines.append("Automatic extraction was unavailable. Manual review required.")
        return "\n".join(lines) + "\n"

    lines += [
        "SUMMARY",
        "-------",
        record.fields.summary or "Mortgage inquiry call - details extracted below.",
        "",
    ]
    for title, rows in _lead_rows(record):
        lines.append(title.upper())
        lines.append("-" * len(title))
        lines += [f"{label}: {value}" for label, value in rows]
        lines.append("")

    lines.append("ACTION ITEMS")
    lines.append("------------")
    lines += [f"* {_action_item_line(item)}" for item in record.action_items]
    lines.append("")
    lines.append(f"Confidence Score: {record.confidence_score}%")
    return "\n".join(lines) + "\n"


def render_alert_html(
    call_id: str,
    duration: int | None,
    loan_officer_name: str,
    record: ExtractedRecord | None,
    dashboard_url: str,
) -> str:
    parts = [
        "<html><body>",
        "<h2>Call Summary</h2>",
        f"<p>Call: {escape(call_id)}<br>",
        f"Duration: {escape(_value(duration))} seconds<br>",
        f"Loan Officer: {escape(loan_officer_name)}</p>",
    ]

    if record is None:
        parts.append("<p><strong>Automatic extraction was unavailable. Manual review required.</strong></p>")
    else:
        summary = record.fields.summary or "Mortgage inquiry call - details extracted below."
        parts.append(f"<p>{escape(summary)}</p>")
        parts.append(
            f"<p>Sentiment: {escape(record.sentiment.overall.upper())} | "
            f"Urgency: {escape(record.sentiment.urgency.upper())}</p>"
        )
        for title, rows in _lead_rows(record):
            parts.append(f"<h3>{escape(title)}</h3><table>")
            parts += [
                f"<tr><td><strong>{escape(label)}</strong></td><td>{escape(value)}</td></tr>"
                for label, value in rows
            ]
            parts.append("</table>")

        parts.append("<h3>Action Items</h3><ul>")
        parts += [f"<li>{escape(_action_item_line(item))}</li>" for item in record.action_items]
        parts.append("</ul>")

        for title, entries in (
            ("Concerns", record.sentiment.concerns),
            ("Opportunities", record.sentiment.opportunities),
        ):
            if entries:
                parts.append(f"<h3>{title}</h3><ul>")
                parts += [f"<li>{escape(entry)}</li>" for entry in entries]
                parts.append("</ul>")

        parts.append(f"<p>Confidence Score: {record.confidence_score}%</p>")

    parts.append(f'<p><a href="{escape(dashboard_url, quote=True)}">View Full Transcript</a></p>')
    parts.append("</body></html>")
    return "\n".join(parts)


def render_lead_alert(
    to: str,
    call_id: str,
    duration: int | None,
    loan_officer_name: str,
    record: ExtractedRecord | None,
    transcript_text: str | None,
    dashboard_url: str,
) -> EmailMessage:
    """
    Builds the internal alert for a processed call.

    The transcript and the extracted data are attached as files.
    """
    attachments = []
    if transcript_text:
        attachments.append(
            EmailAttachment(filename=f"transcript_{call_id}.txt", content=transcript_text)
        )
    data = record.model_dump(mode="json") if record else None
    attachments.append(
        EmailAttachment(
            filename=f"call_data_{call_id}.json",
            content=json.dumps({"call_id": call_id, "extraction": data}, indent=2),
        )
    )

    return EmailMessage(
        to=to,
        subject=alert_subject(record),
        html=render_alert_html(call_id, duration, loan_officer_name, record, dashboard_url),
        text=render_alert_text(call_id, duration, loan_officer_name, record),
        attachments=attachments,
    )


def render_customer_follow_up(
    to: str, borrower_name: str | None, loan_officer_name: str, company_name: str
) -> EmailMessage:
    """Builds the thank-you email sent to the borrower."""
    name = escape(borrower_name or "there")
    documents = "".join(f"<li>{escape(doc)}</li>" for doc in CUSTOMER_DOCUMENTS)
    html = (
        "<html><body>"
        f"<h2>Thank you for your interest in {escape(company_name)}!</h2>"
        f"<p>Dear {name},</p>"
        "<p>Thank you for taking the time to speak with us today about your mortgage needs. "
        "I've reviewed our conversation and will be preparing a personalized loan proposal for you.</p>"
        "<h3>Next Steps:</h3><ol>"
        "<li>I'll analyze your financial situation and find the best loan options</li>"
        "<li>You'll receive a detailed rate quote within 24 hours</li>"
        "<li>We'll schedule a follow-up call to discuss your options</li>"
        "</ol>"
        f"<p>In the meantime, please gather the following documents:</p><ul>{documents}</ul>"
        "<p>If you have any questions, please don't hesitate to reach out.</p>"
        f"<p>Best regards,<br>{escape(loan_officer_name)}<br>{escape(company_name)}</p>"
        "</body></html>"
    )
    return EmailMessage(
        to=to,
        subject=f"Thank you for contacting {company_name}",
        html=html,
        sender_name=f"{loan_officer_name} - {company_name}",
    )
