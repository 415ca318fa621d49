"""Managed identity sign-in and Azure management clients."""

import logging

from azure.core.exceptions import AzureError
from azure.identity import ManagedIdentityCredential
from azure.mgmt.resource import SubscriptionClient
from azure.mgmt.signalr import SignalRManagementClient

from signalr_scaler.errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

# Resource Manager endpoint per cloud environment
ARM_ENDPOINTS = {
    "AzureCloud": "https://management.azure.com",
    "AzureChinaCloud": "https://management.chinacloudapi.cn",
    "AzureUSGovernment": "https://management.usgovcloudapi.net",
}


def get_arm_endpoint(environment_name: str) -> str:
    for name, endpoint in ARM_ENDPOINTS.items():
        if name.lower() == (environment_name or "").strip().lower():
            return endpoint
    raise ConfigurationError(
        f"Unknown Azure environment '{environment_name}', expected one of {', '.join(ARM_ENDPOINTS)}"
    )


def _scope(endpoint: str) -> str:
    return f"{endpoint}/.default"


def authenticate(endpoint: str, client_id: str | None = None):
    """Sign in with the managed identity and check a token can actually be issued."""
    credential = ManagedIdentityCredential(client_id=client_id) if client_id else ManagedIdentityCredential()
    try:
        credential.get_token(_scope(endpoint))
    except AzureError as e:
        logger.error(f"Managed identity sign-in failed: {e}")
        raise AuthenticationError(f"No usable managed identity: {e}") from e
    logger.info("Signed in with managed identity")
    return credential


def resolve_subscription(credential, endpoint: str, subscription_id: str | None = None) -> str:
    """Use the given subscription, or the first one the identity can see."""
    if subscription_id:
        return subscription_id
    client = SubscriptionClient(credential, base_url=endpoint, credential_scopes=[_scope(endpoint)])
    try:
        subscription = next(iter(client.subscriptions.list()), None)
    except AzureError as e:
        logger.error(f"Failed to list subscriptions: {e}")
        raise AuthenticationError(f"Failed to list subscriptions: {e}") from e
    if subscription is None:
        raise AuthenticationError("Managed identity has access to no subscription")
    logger.info(f"Using subscription {subscription.subscription_id}")
    return subscription.subscription_id


def get_signalr_client(credential, subscription_id: str, endpoint: str) -> SignalRManagementClient:
    return SignalRManagementClient(
        credential, subscription_id, base_url=endpoint, credential_scopes=[_scope(endpoint)]
    )
