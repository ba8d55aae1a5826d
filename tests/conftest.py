# tests/conftest.py
import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from interview_analysis.application.interview_session import AudioSignalBundle, Question, Response
from interview_analysis.core.config import get_settings
from interview_analysis.managers.events import AnalysisEventBus, EventRecorder

LEADERSHIP_ANSWER = (
    "I led a team of five engineers to redesign the checkout flow, "
    "which reduced cart abandonment by 18%."
)


@pytest.fixture
def test_env_vars():
    """Set up test environment variables."""
    os.environ["ENVIRONMENT"] = "testing"
    os.environ["DEBUG"] = "true"
    os.environ["APP_NAME"] = "Interview Analysis Test"
    os.environ["DRAIN_DELAY_MS"] = "1"
    get_settings.cache_clear()
    yield
    # Clean up
    for name in ("ENVIRONMENT", "DEBUG", "APP_NAME", "DRAIN_DELAY_MS"):
        os.environ.pop(name, None)
    get_settings.cache_clear()


@pytest.fixture
def settings(test_env_vars):
    """Get test settings."""
    return get_settings()


@pytest.fixture
def app(settings):
    """Create test app instance."""
    from interview_analysis.interface.api.main import create_app
    return create_app()


@pytest.fixture
def client(app):
    """Create test client."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def event_bus():
    return AnalysisEventBus()


@pytest.fixture
def recorder(event_bus):
    recorder = EventRecorder()
    event_bus.subscribe_all(recorder)
    return recorder


@pytest.fixture
def technical_question():
    return Question(
        id="q-tech",
        text="Describe a technical project where you improved a key metric.",
        type="technical",
        expected_elements=["leadership", "metrics"],
    )


@pytest.fixture
def behavioral_question():
    return Question(
        id="q-beh",
        text="Tell me about a time you handled a conflict on your team.",
        type="behavioral",
        expected_elements=["situation", "result"],
    )


def make_response(text, response_id="r-1", question_id="q-tech", response_time=30.0, audio=None):
    return Response(
        id=response_id,
        session_id="s-1",
        question_id=question_id,
        text_content=text,
        response_time=response_time,
        audio=audio,
        timestamp=datetime(2024, 5, 1, 12, 0, 0),
    )


def make_audio(transcript, samples, duration):
    return AudioSignalBundle(
        volume_samples=list(samples),
        started_at=0.0,
        transcript=transcript,
        duration_seconds=duration,
    )
