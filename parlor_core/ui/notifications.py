# =============================================================================
# parlor_core/ui/notifications.py
# One message per repository outcome
# =============================================================================

from __future__ import annotations
from typing import Optional

import streamlit as st

from parlor_core.errors import RemoteUnavailable
from parlor_core.offline import LoadResult, SaveStatus, WriteResult

FLASH_KEY = "_flash_write_result"


def notify_write_result(result: WriteResult) -> None:
    """
    Show exactly one message for a write.

    saved/deleted -> success, saved locally -> info,
    saved locally after a backend failure -> warning, failed -> error.
    """
    if result.status in (SaveStatus.SAVED, SaveStatus.DELETED):
        st.success(result.message)
    elif result.status == SaveStatus.SAVED_LOCALLY:
        st.info(result.message)
    elif result.status == SaveStatus.SAVED_LOCALLY_OFFLINE:
        st.warning(result.message)
    else:
        st.error(result.message)


def notify_load_result(result: LoadResult) -> Optional[str]:
    """Non-blocking banner when a load was served from the local cache."""
    message = result.message
    if message is None:
        return None

    if isinstance(result.warning, RemoteUnavailable) and result.warning.explicit_offline:
        st.info(message)
    else:
        st.warning(message)
    return message


def flash(result: WriteResult) -> None:
    """Keep a write outcome so it survives the st.rerun() that follows the write."""
    st.session_state[FLASH_KEY] = result


def show_flash() -> Optional[WriteResult]:
    """Show and clear the pending write outcome, if any."""
    result = st.session_state.pop(FLASH_KEY, None)
    if result is not None:
        notify_write_result(result)
    return result
