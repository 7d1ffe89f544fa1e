"""Use case layer for the picker proxy (Clean Architecture)."""

from .create_picker_session import CreatePickerSessionUseCase
from .get_picker_session_status import GetPickerSessionStatusUseCase
from .list_picked_media_items import ListPickedMediaItemsUseCase
from .proxy_media_item import ProxyMediaItemUseCase

__all__ = [
    "CreatePickerSessionUseCase",
    "GetPickerSessionStatusUseCase",
    "ListPickedMediaItemsUseCase",
    "ProxyMediaItemUseCase",
]
