from __future__ import annotations

"""
Logging Lifecycle.

Configures the root logger once per process. Records are handed to a
QueueHandler and written by a QueueListener thread, so tree operations
never wait on file I/O. Calling `configure_logging` again is a no-op
unless `force` is set, in which case the previous listener is stopped and
our handlers are replaced.
"""

import atexit
import logging
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener
from typing import List, Optional

from treelink.infra.fs import get_user_data_dir
from treelink.infra.logging.config import LoggingConfig
from treelink.infra.logging.handlers import (
    create_console_handler,
    create_file_handler,
    is_tagged,
    tag_handler,
)

_CONFIGURED_FLAG_ATTR: str = "_treelink_configured"
_QUEUE_LISTENER_ATTR: str = "_treelink_queue_listener"

LOG_FILE_NAME = "treelink.log"


# ==============================================================================
# PUBLIC API
# ==============================================================================

def get_default_log_path(file_name: str = LOG_FILE_NAME) -> str:
    """Return `<user data dir>/logs/<file_name>`."""
    return os.path.join(get_user_data_dir(), "logs", file_name)


def configure_logging(cfg: LoggingConfig, *, force: bool = False) -> logging.Logger:
    """
    Install our handlers on the root logger.

    Args:
        cfg: Logging settings.
        force: Replace an existing configuration.

    Returns:
        logging.Logger: The root logger.
    """
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG_ATTR, False) and not force:
        return root

    shutdown_logging()

    try:
        level = cfg.level_value
        root.setLevel(level)

        targets: List[logging.Handler] = []
        if cfg.console:
            targets.append(create_console_handler(level, cfg.console_fmt))
        if cfg.log_file:
            fh = create_file_handler(
                cfg.log_file, level, cfg.file_fmt, cfg.datefmt,
                cfg.max_bytes, cfg.backup_count,
            )
            if fh is not None:
                targets.append(fh)

        if not targets:
            setattr(root, _CONFIGURED_FLAG_ATTR, True)
            return root

        log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)
        listener = QueueListener(log_queue, *targets, respect_handler_level=True)
        listener.start()

        root.addHandler(tag_handler(QueueHandler(log_queue)))
        setattr(root, _QUEUE_LISTENER_ATTR, listener)
        setattr(root, _CONFIGURED_FLAG_ATTR, True)
        atexit.register(_stop_listener, listener)
        return root

    except Exception as e:
        # Emergency console so failures of the logging setup stay visible
        _remove_tagged_handlers(root)
        root.setLevel(logging.INFO)
        fallback = logging.StreamHandler(sys.stderr)
        fallback.setFormatter(logging.Formatter("LOGGING FALLBACK | %(levelname)s | %(message)s"))
        root.addHandler(tag_handler(fallback))
        root.warning(f"Logging setup failed ({e}). Using console only.")
        return root


def shutdown_logging() -> None:
    """Flush and remove everything `configure_logging` installed."""
    root = logging.getLogger()
    listener = getattr(root, _QUEUE_LISTENER_ATTR, None)
    if listener is not None:
        _stop_listener(listener)
        setattr(root, _QUEUE_LISTENER_ATTR, None)
    _remove_tagged_handlers(root)
    setattr(root, _CONFIGURED_FLAG_ATTR, False)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _remove_tagged_handlers(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        if is_tagged(handler):
            root.removeHandler(handler)
            handler.close()


def _stop_listener(listener: Optional[QueueListener]) -> None:
    # QueueListener.stop() fails if the thread was already joined
    if listener is not None and getattr(listener, "_thread", None) is not None:
        listener.stop()
    if listener is not None:
        for handler in listener.handlers:
            handler.close()
