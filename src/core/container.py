"""
Dependency Injection Container.

Centralizes dependency configuration so the proxy views never build
services by hand and tests can swap the Picker API forwarder.
"""

from dependency_injector import containers, providers

# Services
from .services.picker_api_service import PickerAPIService

# Use cases
from .use_cases.create_picker_session import CreatePickerSessionUseCase
from .use_cases.get_picker_session_status import GetPickerSessionStatusUseCase
from .use_cases.list_picked_media_items import ListPickedMediaItemsUseCase
from .use_cases.proxy_media_item import ProxyMediaItemUseCase


class Container(containers.DeclarativeContainer):
    """
    Application DI container.

    The forwarder is a process-wide singleton; use cases are built per request.
    """

    # Services - Singleton (one aiohttp session per process)
    picker_api_service = providers.Singleton(
        PickerAPIService,
    )

    # Use Cases - Factory (new instance per request)
    create_picker_session_use_case = providers.Factory(
        CreatePickerSessionUseCase,
        picker_service=picker_api_service,
    )

    get_picker_session_status_use_case = providers.Factory(
        GetPickerSessionStatusUseCase,
        picker_service=picker_api_service,
    )

    list_picked_media_items_use_case = providers.Factory(
        ListPickedMediaItemsUseCase,
        picker_service=picker_api_service,
    )

    proxy_media_item_use_case = providers.Factory(
        ProxyMediaItemUseCase,
        picker_service=picker_api_service,
    )


# Global container instance
container = Container()


def get_container() -> Container:
    """
    Get the global container instance.

    Used as a FastAPI dependency:
        container: Container = Depends(get_container)
    """
    return container


def reset_container():
    """
    Reset container for testing.

    Clears all singletons and allows fresh initialization.
    """
    container.reset_singletons()
