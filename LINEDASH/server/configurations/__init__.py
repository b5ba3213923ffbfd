from __future__ import annotations

from LINEDASH.server.configurations.base import (
    ensure_mapping,
    load_configuration_data,
    merge_environment_overrides,
)

from LINEDASH.server.configurations.server import (
    BrowserSettings,
    DashboardSettings,
    DatabaseSettings,
    FastAPISettings,
    ServerSettings,
    build_server_settings,
    server_settings,
    get_server_settings,
)

__all__ = [
    "ensure_mapping",
    "load_configuration_data",
    "merge_environment_overrides",
    "BrowserSettings",
    "DashboardSettings",
    "DatabaseSettings",
    "FastAPISettings",
    "ServerSettings",
    "build_server_settings",
    "server_settings",
    "get_server_settings",
]
