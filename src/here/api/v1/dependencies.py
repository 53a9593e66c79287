"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from here.core.settings import Settings
from here.services.registry import RegistryService


def get_settings(request: Request) -> Settings:
    """Return the settings the running application was created with."""
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_registry_service(app_settings: SettingsDep) -> RegistryService:
    """Return a registry service bound to the configured lease file."""
    return RegistryService.from_settings(app_settings)


RegistryDep = Annotated[RegistryService, Depends(get_registry_service)]
