"""Rule-based follow-up tasks derived from extracted fields."""

from datetime import date, timedelta

from domain.models import ActionItem, LeadFields

STANDING_DOCUMENT_TASKS = (
    "Collect last 2 years tax returns",
    "Collect last 2 months bank statements",
    "Collect last 30 days pay stubs",
)
PULL_CREDIT_TASK = "Obtain credit authorization and pull credit report"


def business_days_from(start: date, days: int) -> date:
    """Counts forward the given number of weekdays from start."""
    current = start
    counted = 0
    while counted < days:
        current += timedelta(days=1)
        if current.weekday() < 5:
            counted += 1
    return current


def business_days_from_now(days: int, today: date | None = None) -> date:
    return business_days_from(today or date.today(), days)


def generate_action_items(
    fields: LeadFields, today: date | None = None
) -> list[ActionItem]:
    """
    Builds the follow-up task list for a lead.

    Args:
        fields: Extracted lead fields.
        today: Reference day for due dates, defaults to the current date.

    Returns:
        Action items in rule order, followed by model-suggested tasks.
    """
    today = today or date.today()
    loan = fields.loan_details
    financial = fields.financial_information
    purpose = (loan.loan_purpose or "").strip().lower() if loan else ""

    items: list[ActionItem] = []

    if not (financial and financial.credit_score):
        items.append(
            ActionItem(
                task=PULL_CREDIT_TASK,
                priority="high",
                due_date=business_days_from(today, 1),
            )
        )

    if purpose == "purchase" and not (loan and loan.property_address):
        items.append(
            ActionItem(
                task="Get property address once borrower finds a home",
                priority="medium",
            )
        )

    if purpose == "refinance":
        items.append(
            ActionItem(
                task="Order property appraisal",
                priority="high",
                due_date=business_days_from(today, 3),
            )
        )
        items.append(
            ActionItem(
                task="Request current mortgage statement",
                priority="high",
                due_date=business_days_from(today, 2),
            )
        )

    for task in STANDING_DOCUMENT_TASKS:
        items.append(
            ActionItem(task=task, priority="high", due_date=business_days_from(today, 3))
        )

    for suggestion in fields.action_items:
        if suggestion and suggestion.strip():
            items.append(
                ActionItem(
                    task=suggestion.strip(),
                    priority="medium",
                    due_date=business_days_from(today, 5),
                )
            )

    return items
