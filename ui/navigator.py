"""Keeps exactly one page mounted and swaps pages on request."""

from __future__ import annotations

import threading

from ui.views import VIEW_TYPES, Page, View, ViewContext
from utils.log_utils import log


class Navigator:
    def __init__(self, ctx: ViewContext) -> None:
        self._lock = threading.RLock()
        self._views: dict[Page, View] = {page: view_type(ctx) for page, view_type in VIEW_TYPES.items()}
        self._current: View | None = None
        self.ctx = ctx

    @property
    def current_page(self) -> Page | None:
        return self._current.page if self._current else None

    def view(self, page: Page | str) -> View:
        return self._views[Page(page)]

    def navigate(self, page: Page | str) -> bool:
        """Unmount the current page and mount page. False when already there."""
        target = Page(page)
        with self._lock:
            if self._current is not None and self._current.page == target:
                return False
            self.ctx.haptics.pulse()
            if self._current is not None:
                self._current.unmount()
            log("UI", f"navigate -> {target.value}")
            self._current = self._views[target]
            self._current.mount()
            return True

    def close(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current.unmount()
                self._current = None
