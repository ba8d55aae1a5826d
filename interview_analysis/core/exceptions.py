from typing import Optional


class AnalysisError(Exception):
    """Base class for errors raised by the analysis pipeline."""


class ScoringFailure(AnalysisError):
    """An unexpected exception escaped a scoring pass."""

    def __init__(self, stage: str, subject_id: str, cause: Optional[BaseException] = None):
        self.stage = stage
        self.subject_id = subject_id
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{stage} scoring failed for {subject_id}{detail}")


class RecordingError(AnalysisError):
    """Misuse or failure of a live transcription session."""


class RecordingInProgress(RecordingError):
    def __init__(self):
        super().__init__("Recording already in progress")


class NoActiveRecording(RecordingError):
    def __init__(self):
        super().__init__("No recording in progress")


class TranscriptionFailed(RecordingError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Speech recognition failed after {attempts} restart attempts. Please try again."
        )
