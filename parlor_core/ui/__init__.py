from parlor_core.ui.notifications import notify_write_result, notify_load_result, flash, show_flash
from parlor_core.ui.session import (
    SESSION_DEFAULTS,
    init_state,
    get_cache_store,
    get_settings,
    get_client,
    get_identity,
    get_parlor_choices,
    login,
    logout,
    select_parlor,
    get_repositories,
    watch_remote_changes,
)
from parlor_core.ui.components import header, stat_cards, render_sidebar_status
from parlor_core.ui.shell import start_page, render_login, render_parlor_picker

__all__ = [
    "notify_write_result",
    "notify_load_result",
    "flash",
    "show_flash",
    "SESSION_DEFAULTS",
    "init_state",
    "get_cache_store",
    "get_settings",
    "get_client",
    "get_identity",
    "get_parlor_choices",
    "login",
    "logout",
    "select_parlor",
    "get_repositories",
    "watch_remote_changes",
    "header",
    "stat_cards",
    "render_sidebar_status",
    "start_page",
    "render_login",
    "render_parlor_picker",
]
