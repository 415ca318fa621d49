"""Run parameters, from command-line flags with environment variables as fallback."""

import argparse
import logging
import os
from dataclasses import dataclass

from signalr_scaler.errors import ConfigurationError

DEFAULT_ENVIRONMENT = "AzureCloud"
DEFAULT_TIME_ZONE = "W. Europe Standard Time"
DEFAULT_UNITS = "1"
TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    resource_group_name: str
    signalr_service_name: str
    scaling_schedule: str
    environment_name: str = DEFAULT_ENVIRONMENT
    subscription_id: str | None = None
    time_zone: str = DEFAULT_TIME_ZONE
    default_units: int = 1
    client_id: str | None = None
    dry_run: bool = False
    log_level: str = "INFO"


def build_parser():
    parser = argparse.ArgumentParser(
        prog="signalr-scaler",
        description="Scale an Azure SignalR Service unit count on a weekly schedule.",
    )
    parser.add_argument("--environment", help=f"Azure cloud environment (env AZURE_ENVIRONMENT, default {DEFAULT_ENVIRONMENT})")
    parser.add_argument("--resource-group", help="resource group of the SignalR service (env RESOURCE_GROUP_NAME)")
    parser.add_argument("--subscription-id", help="subscription to use (env AZURE_SUBSCRIPTION_ID)")
    parser.add_argument("--service-name", help="SignalR service name (env SIGNALR_SERVICE_NAME)")
    parser.add_argument("--schedule", help="JSON rule list, or @file to read it from (env SCALING_SCHEDULE)")
    parser.add_argument("--time-zone", help=f"schedule time zone (env SCALING_SCHEDULE_TIME_ZONE, default '{DEFAULT_TIME_ZONE}')")
    parser.add_argument("--default-units", help="units when no rule matches (env DEFAULT_UNITS, default 1)")
    parser.add_argument("--dry-run", action="store_true", default=None, help="report what would change without updating (env DRY_RUN)")
    parser.add_argument("--log-level", help="logging level (env LOG_LEVEL, default INFO)")
    return parser


def _read_schedule(value: str | None) -> str | None:
    if value and value.startswith("@"):
        path = value[1:]
        try:
            with open(path, encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise ConfigurationError(f"Could not read scaling schedule from {path}: {e}") from e
    return value


def _parse_units(value) -> int:
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise ConfigurationError(f"Default units must be an integer, got {value!r}") from e


def load_settings(argv=None, environ=None) -> Settings:
    """Build Settings; a flag wins over its environment variable."""
    environ = os.environ if environ is None else environ
    args = build_parser().parse_args(argv)

    def pick(flag_value, env_name, default=None):
        if flag_value is not None:
            return flag_value
        value = environ.get(env_name)
        return value if value not in (None, "") else default

    resource_group = pick(args.resource_group, "RESOURCE_GROUP_NAME")
    service_name = pick(args.service_name, "SIGNALR_SERVICE_NAME")
    schedule = _read_schedule(pick(args.schedule, "SCALING_SCHEDULE"))
    missing = [
        name
        for name, value in (
            ("resource group (--resource-group / RESOURCE_GROUP_NAME)", resource_group),
            ("service name (--service-name / SIGNALR_SERVICE_NAME)", service_name),
            ("scaling schedule (--schedule / SCALING_SCHEDULE)", schedule),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(f"Missing required parameter(s): {'; '.join(missing)}")

    dry_run = args.dry_run
    if dry_run is None:
        dry_run = environ.get("DRY_RUN", "").strip().lower() in TRUTHY

    log_level = pick(args.log_level, "LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(f"Unknown log level {log_level!r}")

    return Settings(
        resource_group_name=resource_group,
        signalr_service_name=service_name,
        scaling_schedule=schedule,
        environment_name=pick(args.environment, "AZURE_ENVIRONMENT", DEFAULT_ENVIRONMENT),
        subscription_id=pick(args.subscription_id, "AZURE_SUBSCRIPTION_ID"),
        time_zone=pick(args.time_zone, "SCALING_SCHEDULE_TIME_ZONE", DEFAULT_TIME_ZONE),
        default_units=_parse_units(pick(args.default_units, "DEFAULT_UNITS", DEFAULT_UNITS)),
        client_id=environ.get("AZURE_CLIENT_ID") or None,
        dry_run=dry_run,
        log_level=log_level,
    )
