import pytest

from signalr_scaler.errors import ConfigurationError
from signalr_scaler.settings import load_settings

SCHEDULE = '[{"WeekDays":[1],"StartTime":"06:00:00","StopTime":"18:00:00","Units":3}]'

ENV = {
    "RESOURCE_GROUP_NAME": "rg-chat",
    "SIGNALR_SERVICE_NAME": "chat-signalr",
    "SCALING_SCHEDULE": SCHEDULE,
}


def test_defaults_from_environment():
    """Test that settings come from the environment with the documented defaults."""
    settings = load_settings([], ENV)
    assert settings.resource_group_name == "rg-chat"
    assert settings.signalr_service_name == "chat-signalr"
    assert settings.scaling_schedule == SCHEDULE
    assert settings.environment_name == "AzureCloud"
    assert settings.time_zone == "W. Europe Standard Time"
    assert settings.default_units == 1
    assert settings.subscription_id is None
    assert settings.dry_run is False


def test_flags_override_environment():
    """Test that command-line flags win over environment variables."""
    settings = load_settings(
        ["--resource-group", "rg-other", "--default-units", "2", "--dry-run", "--time-zone", "UTC"],
        dict(ENV, DEFAULT_UNITS="5"),
    )
    assert settings.resource_group_name == "rg-other"
    assert settings.default_units == 2
    assert settings.dry_run is True
    assert settings.time_zone == "UTC"


def test_dry_run_from_environment():
    """Test that DRY_RUN=true turns on dry run."""
    assert load_settings([], dict(ENV, DRY_RUN="true")).dry_run is True


def test_schedule_read_from_file(tmp_path):
    """Test that @path reads the schedule from a file."""
    path = tmp_path / "schedule.json"
    path.write_text(SCHEDULE, encoding="utf-8")
    settings = load_settings(["--schedule", f"@{path}"], ENV)
    assert settings.scaling_schedule == SCHEDULE


def test_unreadable_schedule_file(tmp_path):
    """Test that a missing schedule file is a configuration error."""
    with pytest.raises(ConfigurationError):
        load_settings(["--schedule", f"@{tmp_path / 'missing.json'}"], ENV)


@pytest.mark.parametrize("name", ["RESOURCE_GROUP_NAME", "SIGNALR_SERVICE_NAME", "SCALING_SCHEDULE"])
def test_missing_required_parameter(name):
    """Test that each required parameter is enforced."""
    env = {key: value for key, value in ENV.items() if key != name}
    with pytest.raises(ConfigurationError):
        load_settings([], env)


def test_default_units_must_be_integer():
    """Test that non-integer default units are rejected."""
    with pytest.raises(ConfigurationError):
        load_settings([], dict(ENV, DEFAULT_UNITS="lots"))


def test_unknown_log_level():
    """Test that an unknown log level is rejected."""
    with pytest.raises(ConfigurationError):
        load_settings([], dict(ENV, LOG_LEVEL="chatty"))
