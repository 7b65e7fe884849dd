"""
Utility functions for validation and logging
"""

import logging
from typing import Optional
from .errors import ValidationError


def _path_segments(path: str) -> list:
    if not isinstance(path, str) or not path.strip("/"):
        raise ValidationError(f"Invalid path: {path!r}")
    segments = path.strip("/").split("/")
    if any(not s for s in segments):
        raise ValidationError(f"Invalid path: '{path}'. Empty segments are not allowed.")
    return segments


def validate_document_path(path: str) -> str:
    """
    Validate a Firestore document path
    Documents live at an even number of segments (collection/doc[/sub/doc...])
    """
    if len(_path_segments(path)) % 2 != 0:
        raise ValidationError(
            f"Invalid document path: '{path}'. Expected an even number of segments."
        )
    return path.strip("/")


def validate_collection_path(path: str) -> str:
    """
    Validate a Firestore collection path
    Collections live at an odd number of segments (collection[/doc/sub...])
    """
    if len(_path_segments(path)) % 2 != 1:
        raise ValidationError(
            f"Invalid collection path: '{path}'. Expected an odd number of segments."
        )
    return path.strip("/")


def setup_logger(name: str, level: Optional[int] = logging.INFO) -> logging.Logger:
    """Setup logger with consistent format"""
    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else logging.INFO)

    # Clear existing handlers to avoid duplication in multiprocess scenarios
    if logger.hasHandlers():
        logger.handlers.clear()

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def disabled_level() -> int:
    """Level that silences a logger completely"""
    return logging.CRITICAL + 1
