"""Domain models for the call-processing pipeline."""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class PipelineStage(str, Enum):
    """Per-recording pipeline states."""

    RECORDING_PENDING = "recording_pending"
    TRANSCRIBING = "transcribing"
    EXTRACTING = "extracting"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"


class JobState(str, Enum):
    """Lifecycle of a batch transcription job."""

    UPLOADING = "uploading"
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


ACTIVE_JOB_STATES = frozenset(
    {JobState.UPLOADING, JobState.SUBMITTED, JobState.POLLING}
)


class TranscriptionJob(BaseModel):
    """Tracks the transcription of one recording."""

    recording_id: str
    call_id: str
    state: JobState = JobState.UPLOADING
    provider_job_id: str | None = None
    failure_reason: str | None = None

    @model_validator(mode="after")
    def _polling_requires_provider_id(self) -> "TranscriptionJob":
        if self.state == JobState.POLLING and not self.provider_job_id:
            raise ValueError("a polling job must carry a provider job id")
        return self


class RecordingEvent(BaseModel, frozen=True):
    """Recording lifecycle webhook payload."""

    recording_id: str
    recording_status: str
    recording_url: str | None = None
    call_id: str
    duration_seconds: int | None = None

    @property
    def is_trigger(self) -> bool:
        """True when the event should start the batch pipeline."""
        return self.recording_status == "completed" and bool(
            (self.recording_url or "").strip()
        )


class CallStatusEvent(BaseModel, frozen=True):
    """Call lifecycle webhook payload."""

    call_id: str
    call_status: str
    duration_seconds: int | None = None
    from_number: str | None = None
    to_number: str | None = None
    direction: str | None = None


class RecordingLocator(BaseModel, frozen=True):
    """Where to fetch a recording from."""

    recording_id: str
    call_id: str
    url: str


class JobHandle(BaseModel, frozen=True):
    """Reference to a submitted provider transcription job."""

    recording_id: str
    provider_job_id: str


class SpeakerTurn(BaseModel, frozen=True):
    """A diarized turn from a batch transcript. Offsets are milliseconds."""

    speaker: str
    text: str
    start: int | None = None
    end: int | None = None


class ProviderJobStatus(BaseModel, frozen=True):
    """One status read of a provider transcription job."""

    status: str
    text: str | None = None
    utterances: list[SpeakerTurn] = Field(default_factory=list)
    audio_duration: int | None = None
    error: str | None = None


class PlainText(BaseModel, frozen=True):
    """Transcript available only as flat text."""

    kind: Literal["plain"] = "plain"
    text: str


class DiarizedTurns(BaseModel, frozen=True):
    """Transcript made of speaker-attributed turns."""

    kind: Literal["diarized"] = "diarized"
    turns: list[SpeakerTurn]


Transcript = Annotated[PlainText | DiarizedTurns, Field(discriminator="kind")]


class TranscriptResult(BaseModel, frozen=True):
    """A completed batch transcription."""

    recording_id: str
    provider_job_id: str
    text: str
    utterances: list[SpeakerTurn] = Field(default_factory=list)
    audio_duration: int | None = None

    def as_transcript(self) -> PlainText | DiarizedTurns:
        if self.utterances:
            return DiarizedTurns(turns=self.utterances)
        return PlainText(text=self.text)


class BorrowerInformation(BaseModel):
    full_name: str | None = None
    phone_number: str | None = None
    email_address: str | None = None
    current_address: str | None = None


class LoanDetails(BaseModel):
    loan_purpose: str | None = None
    requested_loan_amount: float | None = None
    property_address: str | None = None
    property_type: str | None = None
    occupancy: str | None = None
    purchase_price: float | None = None


class FinancialInformation(BaseModel):
    credit_score: str | None = None
    annual_income: float | None = None
    employment_status: str | None = None
    employer_name: str | None = None
    down_payment_amount: float | None = None
    monthly_debts: float | None = None
    current_mortgage_rate: float | None = None
    current_mortgage_payment: float | None = None
    current_lender: str | None = None


class Timeline(BaseModel):
    urgency: str | None = None
    target_closing_date: str | None = None
    pre_approval_needed_by: str | None = None


class LeadFields(BaseModel):
    """Structured fields extracted from a call transcript."""

    borrower_information: BorrowerInformation | None = None
    loan_details: LoanDetails | None = None
    financial_information: FinancialInformation | None = None
    timeline: Timeline | None = None
    summary: str | None = None
    key_concerns: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)


class SentimentAnalysis(BaseModel):
    """Overall tone and urgency of an inquiry."""

    overall: Literal["positive", "neutral", "negative"] = "neutral"
    urgency: Literal["high", "medium", "low"] = "medium"
    concerns: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)


class ActionItem(BaseModel, frozen=True):
    """A follow-up task for the loan officer."""

    task: str
    priority: Literal["high", "medium", "low"]
    due_date: date | None = None
    completed: bool = False


class ExtractedRecord(BaseModel, frozen=True):
    """Complete extraction result for one call."""

    fields: LeadFields
    confidence_score: int = Field(ge=0, le=100)
    action_items: list[ActionItem]
    sentiment: SentimentAnalysis
    extracted_at: datetime

    @property
    def borrower_email(self) -> str | None:
        borrower = self.fields.borrower_information
        return borrower.email_address if borrower else None

    @property
    def borrower_name(self) -> str | None:
        borrower = self.fields.borrower_information
        return borrower.full_name if borrower else None


class Utterance(BaseModel, frozen=True):
    """A finalized live utterance. Offsets are seconds from stream start."""

    speaker: str
    text: str
    start_offset: float
    end_offset: float


class NotificationOutcome(BaseModel):
    """Delivery result of one outbound email."""

    sent: bool
    recipient: str | None = None
    message_id: str | None = None
    sent_at: datetime | None = None
    error: str | None = None


class NotificationReport(BaseModel):
    """Results of the notification stage."""

    loan_officer: NotificationOutcome
    customer: NotificationOutcome | None = None


class EmailAttachment(BaseModel, frozen=True):
    filename: str
    content: str


class EmailMessage(BaseModel, frozen=True):
    """An outbound email ready for delivery."""

    to: str
    subject: str
    html: str
    text: str | None = None
    sender_name: str | None = None
    attachments: list[EmailAttachment] = Field(default_factory=list)


class CallRecord(BaseModel):
    """Authoritative view of one telephone call."""

    model_config = ConfigDict(from_attributes=True)

    call_id: str
    recording_id: str | None = None
    from_number: str | None = None
    to_number: str | None = None
    direction: str | None = None
    call_status: str | None = None
    agent_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    duration: int | None = None
    status: str | None = None
    failed_stage: str | None = None
    failure_reason: str | None = None
    recording_url: str | None = None
    transcript_id: str | None = None
    transcript_text: str | None = None
    transcript_status: str | None = None
    utterances: list[SpeakerTurn] | None = None
    live_transcript: list[Utterance] | None = None
    live_transcript_text: str | None = None
    extraction: ExtractedRecord | None = None
    confidence_score: int | None = None
    needs_review: bool = False
    is_processed: bool = False
    is_archived: bool = False
    notifications: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def overdue_action_items(self, today: date) -> list[ActionItem]:
        """Returns open action items whose due date is before today."""
        if not self.extraction:
            return []
        return [
            item
            for item in self.extraction.action_items
            if not item.completed and item.due_date and item.due_date < today
        ]


class TrainingExample(BaseModel):
    """Human-marked fields for one recording. Accepts camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    recording_id: str = Field(
        min_length=1,
        pattern=r"^[A-Za-z0-9_-]+$",
        validation_alias=AliasChoices("recording_id", "recordingId", "recordingSid"),
    )
    transcript: Any | None = None
    marked_fields: dict[str, list[dict[str, Any]]]
    trained_by: str | None = None
    trained_at: datetime | None = None
    version: int = 1


class TrainingStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_recordings: int
    total_fields: int
    field_counts: dict[str, int]
    last_updated: datetime
