"""Picker client: credential slot, proxy API client and the polling flow."""

from .credential_store import CREDENTIAL_KEY, CredentialStore, FileCredentialStore, InMemoryCredentialStore
from .picker_flow import FlowState, ItemDetail, PickerFlow
from .proxy_client import PickerClientError, PickerProxyClient

__all__ = [
    "CREDENTIAL_KEY",
    "CredentialStore",
    "FileCredentialStore",
    "InMemoryCredentialStore",
    "FlowState",
    "ItemDetail",
    "PickerFlow",
    "PickerClientError",
    "PickerProxyClient",
]
