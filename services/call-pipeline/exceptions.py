"""Custom exceptions for the call-pipeline service."""


class UploadFailedError(Exception):
    """Raised when a recording cannot be fetched or re-uploaded for transcription."""

    def __init__(self, recording_id: str, cause: Exception | None = None):
        self.recording_id = recording_id
        self.cause = cause
        super().__init__(f"Failed to upload recording '{recording_id}'")


class TranscriptionFailedError(Exception):
    """Raised when the transcription provider reports a terminal error."""

    def __init__(self, recording_id: str, reason: str, cause: Exception | None = None):
        self.recording_id = recording_id
        self.reason = reason
        self.cause = cause
        super().__init__(f"Transcription failed for recording '{recording_id}': {reason}")


class TranscriptionStatusError(Exception):
    """Raised when a transcription job status cannot be read."""

    def __init__(self, job_id: str, cause: Exception | None = None):
        self.job_id = job_id
        self.cause = cause
        super().__init__(f"Failed to read status of transcription job '{job_id}'")


class TranscriptionTimeoutError(Exception):
    """Raised when a transcription job does not finish within the poll budget."""

    def __init__(self, recording_id: str, attempts: int):
        self.recording_id = recording_id
        self.attempts = attempts
        super().__init__(
            f"Transcription for recording '{recording_id}' did not finish "
            f"after {attempts} poll attempts"
        )


class LLMServiceError(Exception):
    """Raised when LLM service call fails."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class ExtractionUnavailableError(Exception):
    """Raised when structured fields cannot be extracted from a transcript."""

    def __init__(self, reason: str, cause: Exception | None = None):
        self.reason = reason
        self.cause = cause
        super().__init__(f"Extraction unavailable: {reason}")


class PersistenceUnavailableError(Exception):
    """Raised when a call record store cannot serve a request."""

    def __init__(self, call_id: str, operation: str, cause: Exception | None = None):
        self.call_id = call_id
        self.operation = operation
        self.cause = cause
        super().__init__(f"Persistence {operation} failed for call '{call_id}'")


class NotificationFailedError(Exception):
    """Raised when an outbound email cannot be delivered."""

    def __init__(self, recipient: str, cause: Exception | None = None):
        self.recipient = recipient
        self.cause = cause
        super().__init__(f"Failed to send notification to '{recipient}'")


class JobRegistryError(Exception):
    """Raised when the transcription job registry cannot be reached."""

    def __init__(self, recording_id: str, operation: str, cause: Exception | None = None):
        self.recording_id = recording_id
        self.operation = operation
        self.cause = cause
        super().__init__(f"Job registry {operation} failed for recording '{recording_id}'")


class StreamingSessionError(Exception):
    """Raised when a live transcription session cannot be opened."""

    def __init__(self, call_id: str, cause: Exception | None = None):
        self.call_id = call_id
        self.cause = cause
        super().__init__(f"Failed to open live transcription for call '{call_id}'")


class InvalidStreamTransitionError(Exception):
    """Raised when a live stream receives a control event its state does not allow."""

    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        super().__init__(f"Cannot handle '{event}' while stream is {state}")


class TrainingDataNotFoundError(Exception):
    """Raised when no training data exists for a recording."""

    def __init__(self, recording_id: str):
        self.recording_id = recording_id
        super().__init__(f"No training data found for recording '{recording_id}'")
