"""Bring the SignalR resource's unit count in line with the desired value."""

import logging
from dataclasses import dataclass

from azure.core.exceptions import AzureError
from azure.core.exceptions import ResourceNotFoundError as AzureResourceNotFoundError
from azure.mgmt.signalr.models import ResourceSku, SignalRResource

from signalr_scaler.errors import ResourceNotFoundError, TransientServiceError, UpdateFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceRef:
    resource_group: str
    name: str

    def __str__(self):
        return f"{self.resource_group}/{self.name}"


def _enum_value(value):
    # SDK enums come back as plain strings for values the model does not know
    return getattr(value, "value", value)


@dataclass(frozen=True)
class ResourceState:
    name: str
    sku_name: str
    current_units: int
    provisioning_state: str
    tier: str | None = None
    location: str | None = None

    @classmethod
    def from_resource(cls, resource):
        sku = resource.sku
        if sku is None or sku.capacity is None:
            raise TransientServiceError(f"SignalR service {resource.name} reported no SKU capacity")
        return cls(
            name=resource.name,
            sku_name=sku.name,
            current_units=sku.capacity,
            provisioning_state=_enum_value(resource.provisioning_state),
            tier=_enum_value(sku.tier),
            location=resource.location,
        )


@dataclass(frozen=True)
class ReconcileResult:
    changed: bool
    previous_state: ResourceState
    final_state: ResourceState
    would_change: bool = False


def read_state(client, ref: ResourceRef) -> ResourceState:
    """Fetch the live SKU and provisioning state of the resource."""
    try:
        resource = client.signal_r.get(resource_group_name=ref.resource_group, resource_name=ref.name)
    except AzureResourceNotFoundError as e:
        logger.error(f"SignalR service {ref} not found: {e}")
        raise ResourceNotFoundError(f"SignalR service {ref} not found") from e
    except AzureError as e:
        logger.error(f"Failed to read SignalR service {ref}: {e}")
        raise TransientServiceError(f"Failed to read SignalR service {ref}: {e}") from e
    state = ResourceState.from_resource(resource)
    logger.info(
        f"SignalR service {state.name}: SKU {state.sku_name}, {state.current_units} unit(s), "
        f"provisioning state {state.provisioning_state}"
    )
    return state


def update_units(client, ref: ResourceRef, state: ResourceState, units: int) -> None:
    """Set the unit count and block until the provider finishes."""
    parameters = SignalRResource(
        location=state.location,
        sku=ResourceSku(name=state.sku_name, tier=state.tier, capacity=units),
    )
    try:
        poller = client.signal_r.begin_update(
            resource_group_name=ref.resource_group, resource_name=ref.name, parameters=parameters
        )
        poller.result()
    except AzureError as e:
        logger.error(f"Failed to scale SignalR service {ref} to {units} unit(s): {e}")
        raise UpdateFailedError(f"Failed to scale SignalR service {ref} to {units} unit(s): {e}") from e


def reconcile(client, ref: ResourceRef, desired_units: int, dry_run: bool = False) -> ReconcileResult:
    current = read_state(client, ref)
    if current.current_units == desired_units:
        logger.info(f"SignalR service {ref} already has {desired_units} unit(s), nothing to do")
        return ReconcileResult(changed=False, previous_state=current, final_state=current)

    if dry_run:
        logger.info(f"Dry run: would scale {ref} from {current.current_units} to {desired_units} unit(s)")
        return ReconcileResult(changed=False, previous_state=current, final_state=current, would_change=True)

    logger.info(f"Scaling SignalR service {ref} from {current.current_units} to {desired_units} unit(s)")
    update_units(client, ref, current, desired_units)
    final = read_state(client, ref)
    return ReconcileResult(changed=True, previous_state=current, final_state=final)
