import pytest

from workload.settings import (
    DEFAULT_COLD_START_TIME_MILLIS,
    DEFAULT_WORKING_TIME_MILLIS,
    WorkloadSettings,
    get_settings,
)


def test_defaults_when_environment_is_empty():
    settings = WorkloadSettings()

    assert settings.working_time_millis == DEFAULT_WORKING_TIME_MILLIS == 20
    assert settings.cold_start_time_millis == DEFAULT_COLD_START_TIME_MILLIS == 200
    assert settings.log_level == "INFO"


def test_reads_durations_from_environment(monkeypatch):
    monkeypatch.setenv("WORKING_TIME_MILLIS", "15")
    monkeypatch.setenv("COLD_START_TIME_MILLIS", "750")

    settings = WorkloadSettings()

    assert settings.working_time_millis == 15
    assert settings.cold_start_time_millis == 750


@pytest.mark.parametrize("value", ["abc", "", "  ", "-5", "nan", "inf", "20ms"])
def test_invalid_values_fall_back_to_defaults(monkeypatch, value):
    monkeypatch.setenv("WORKING_TIME_MILLIS", value)
    monkeypatch.setenv("COLD_START_TIME_MILLIS", value)

    settings = WorkloadSettings()

    assert settings.working_time_millis == DEFAULT_WORKING_TIME_MILLIS
    assert settings.cold_start_time_millis == DEFAULT_COLD_START_TIME_MILLIS


def test_decimal_values_are_truncated(monkeypatch):
    monkeypatch.setenv("WORKING_TIME_MILLIS", "12.9")

    assert WorkloadSettings().working_time_millis == 12


def test_zero_is_a_valid_duration(monkeypatch):
    monkeypatch.setenv("WORKING_TIME_MILLIS", "0")
    monkeypatch.setenv("COLD_START_TIME_MILLIS", "0")

    settings = WorkloadSettings()

    assert settings.working_time_millis == 0
    assert settings.cold_start_time_millis == 0


def test_unknown_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    assert WorkloadSettings().log_level == "INFO"


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("WORKING_TIME_MILLIS", "1")
    first = get_settings()
    monkeypatch.setenv("WORKING_TIME_MILLIS", "2")

    assert get_settings() is first
    assert get_settings().working_time_millis == 1
