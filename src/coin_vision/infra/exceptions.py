"""Global exception handling for the application."""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger("app.exceptions")


def install_exception_hook() -> "_ExceptionHook":
    """Log uncaught exceptions from the main thread and from worker threads."""

    hook = _ExceptionHook()
    hook.install()
    return hook


@dataclass
class _ExceptionHook:
    _original_excepthook: Optional[Callable] = None
    _original_thread_excepthook: Optional[Callable] = None

    def install(self) -> None:
        self._original_excepthook = sys.excepthook
        sys.excepthook = self._handle_exception

        self._original_thread_excepthook = threading.excepthook
        threading.excepthook = self._handle_thread_exception  # type: ignore[assignment]

    def uninstall(self) -> None:
        if self._original_excepthook is not None:
            sys.excepthook = self._original_excepthook
        if self._original_thread_excepthook is not None:
            threading.excepthook = self._original_thread_excepthook  # type: ignore[assignment]

    def _handle_exception(self, exc_type, exc_value, exc_traceback) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            if self._original_excepthook:
                self._original_excepthook(exc_type, exc_value, exc_traceback)
            return
        logger.critical(
            "Unhandled exception: %s",
            exc_value,
            exc_info=(exc_type, exc_value, exc_traceback),
        )

    def _handle_thread_exception(self, args: "threading.ExceptHookArgs") -> None:
        thread_name = args.thread.name if args.thread is not None else "<unknown>"
        logger.critical(
            "Unhandled thread exception in %s: %s",
            thread_name,
            args.exc_value,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
