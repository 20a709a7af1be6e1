# tests/core/test_config.py
from pydantic import ValidationError
import pytest

from tutor_scheduling.core.config import Settings


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("TUTOR_SCHEDULING_CALENDAR_LOCK_BACKEND", "redis")
    monkeypatch.setenv("TUTOR_SCHEDULING_CALENDAR_LOCK_TIMEOUT_S", "2.5")
    monkeypatch.setenv("TUTOR_SCHEDULING_ENVIRONMENT", "Production")

    settings = Settings()

    assert settings.calendar_lock_backend == "redis"
    assert settings.calendar_lock_timeout_s == 2.5
    assert settings.is_production is True


def test_meeting_reference_template_needs_booking_placeholder():
    with pytest.raises(ValidationError):
        Settings(meeting_reference_template="/call/static-room")


@pytest.mark.parametrize("backend", ["postgres", ""])
def test_unknown_lock_backend(monkeypatch, backend):
    monkeypatch.setenv("TUTOR_SCHEDULING_CALENDAR_LOCK_BACKEND", backend)
    with pytest.raises(ValidationError):
        Settings()


def test_lock_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(calendar_lock_timeout_s=0)
