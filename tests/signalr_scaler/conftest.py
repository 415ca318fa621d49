from types import SimpleNamespace

import pytest


class FakePoller:
    def __init__(self, error=None):
        self.error = error

    def result(self):
        if self.error:
            raise self.error


class FakeSignalROperations:
    """Stands in for SignalRManagementClient.signal_r; updates change the stored capacity."""

    def __init__(self, capacity=1, get_error=None, update_error=None, has_sku=True):
        self.has_sku = has_sku
        self.capacity = capacity
        self.get_error = get_error
        self.update_error = update_error
        self.get_calls = 0
        self.updates = []

    def get(self, resource_group_name, resource_name):
        self.get_calls += 1
        if self.get_error:
            raise self.get_error
        return SimpleNamespace(
            name=resource_name,
            location="westeurope",
            provisioning_state="Succeeded",
            sku=SimpleNamespace(name="Standard_S1", tier="Standard", capacity=self.capacity) if self.has_sku else None,
        )

    def begin_update(self, resource_group_name, resource_name, parameters):
        self.updates.append(parameters)
        if self.update_error:
            return FakePoller(self.update_error)
        self.capacity = parameters.sku.capacity
        return FakePoller()


@pytest.fixture
def make_client():
    def _make(**kwargs):
        return SimpleNamespace(signal_r=FakeSignalROperations(**kwargs))

    return _make
