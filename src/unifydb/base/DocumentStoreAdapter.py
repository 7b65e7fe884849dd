# src/unifydb/base/DocumentStoreAdapter.py
from __future__ import annotations

import logging
import threading
from typing import Optional

from ..errors import ConnectionError
from ..models import ConnectionStatus
from ..utils import disabled_level, setup_logger


class DocumentStoreAdapter:
    """Base with logger, connection status and the not-connected guard"""

    not_connected_message = "Not connected"

    def __init__(self, logger: Optional[logging.Logger] = None, enable_logging: bool = True):
        if logger is None:
            logger = setup_logger(
                self.__class__.__name__,
                logging.INFO if enable_logging else disabled_level(),
            )
        self.logger = logger
        self._status = ConnectionStatus.DISCONNECTED
        self._status_lock = threading.Lock()

    def _set_status(self, status: ConnectionStatus) -> None:
        with self._status_lock:
            previous = self._status
            self._status = status
        if previous != status:
            self.logger.debug(
                f"{self.__class__.__name__} status {previous.value} -> {status.value}"
            )

    def _transition(self, expected: ConnectionStatus, status: ConnectionStatus) -> bool:
        """Move to ``status`` only if still in ``expected``"""
        with self._status_lock:
            if self._status != expected:
                return False
            self._status = status
        self.logger.debug(
            f"{self.__class__.__name__} status {expected.value} -> {status.value}"
        )
        return True

    def get_connection_status(self) -> ConnectionStatus:
        return self._status

    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED

    def _ensure_connected(self) -> None:
        if not self.is_connected():
            raise ConnectionError(self.not_connected_message)
