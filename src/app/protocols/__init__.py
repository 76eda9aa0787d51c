"""Protocolos e contratos do core da aplicação."""

from .credential_store import CredentialStoreProtocol
from .gateway_client import (
    GatewayClientProtocol,
    RemoteSessionStatus,
    TokenProviderProtocol,
)
from .job_store import MessageJobStoreProtocol, SyncJobStoreProtocol
from .lifecycle import LifecycleAware
from .usage_tracker import UsageTrackerProtocol
from .vendor_session_store import VendorSessionStoreProtocol

__all__ = [
    "CredentialStoreProtocol",
    "GatewayClientProtocol",
    "LifecycleAware",
    "MessageJobStoreProtocol",
    "RemoteSessionStatus",
    "SyncJobStoreProtocol",
    "TokenProviderProtocol",
    "UsageTrackerProtocol",
    "VendorSessionStoreProtocol",
]
