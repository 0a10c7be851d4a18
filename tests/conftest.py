"""Pytest fixtures for capture-board tests."""

import pytest
from fakes import FakeBackend, RecordingNotifier, make_opp


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Notifier that records toasts."""
    return RecordingNotifier()


@pytest.fixture
def backend() -> FakeBackend:
    """Backend with a small primary pipeline."""
    return FakeBackend(
        [
            make_opp("lead-1", name="Fleet Telematics RFP", stage="opp sourced", value=50000, priority=2),
            make_opp("lead-2", name="Records Digitization", stage="opp qualified", value=120000),
            make_opp("lead-3", name="Campus Wi-Fi Refresh", stage="Win", value=75000, priority=3),
        ]
    )


@pytest.fixture
def forecast_backend() -> FakeBackend:
    """Backend holding forecast-board deals."""
    return FakeBackend(
        [
            make_opp("fc-1", forecast_stage="Source", win_probability=40, deal_type="Forecast"),
            make_opp("fc-2", forecast_stage="High Priority", win_probability=70, deal_type="Forecast"),
            make_opp("fc-3", forecast_stage="Low Priority", win_probability=15, deal_type="Forecast"),
        ]
    )
