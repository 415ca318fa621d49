"""
Scale an Azure SignalR Service on a weekly schedule. Meant to run hourly.

1. Parse the schedule and time zone (nothing is called in Azure if these are bad)
2. Sign in with the managed identity
3. Work out the unit count wanted right now in the schedule's time zone
4. Update the service only if its unit count differs
"""

import logging
import sys
from datetime import datetime

from dotenv import load_dotenv

from signalr_scaler.azure_clients import authenticate, get_arm_endpoint, get_signalr_client, resolve_subscription
from signalr_scaler.errors import ScalerError
from signalr_scaler.reconciler import ResourceRef, reconcile
from signalr_scaler.schedule import evaluate, parse_schedule, resolve_time_zone
from signalr_scaler.settings import load_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def run(settings, now=None):
    """One scaling pass. Returns a summary of what happened."""
    rules = parse_schedule(settings.scaling_schedule)
    resolve_time_zone(settings.time_zone)
    endpoint = get_arm_endpoint(settings.environment_name)
    logger.info(f"Loaded {len(rules)} schedule rule(s), time zone '{settings.time_zone}'")

    credential = authenticate(endpoint, settings.client_id)
    subscription_id = resolve_subscription(credential, endpoint, settings.subscription_id)
    client = get_signalr_client(credential, subscription_id, endpoint)

    now = now or datetime.now().astimezone()
    desired = evaluate(now, settings.time_zone, rules, settings.default_units)

    ref = ResourceRef(settings.resource_group_name, settings.signalr_service_name)
    result = reconcile(client, ref, desired, dry_run=settings.dry_run)

    if result.changed:
        action = "scaled"
    elif result.would_change:
        action = "dry_run"
    else:
        action = "none"
    final = result.final_state
    logger.info(
        f"Done: {final.name} has {final.current_units} unit(s), provisioning state {final.provisioning_state}"
    )
    return {
        "action": action,
        "desired_units": desired,
        "previous_units": result.previous_state.current_units,
        "current_units": final.current_units,
        "provisioning_state": final.provisioning_state,
    }


def main(argv=None) -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stdout)
    try:
        settings = load_settings(argv)
        logging.getLogger().setLevel(settings.log_level)
        run(settings)
    except ScalerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return e.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
