"""Logging helpers."""

from materiatrack.common.logging.logger import get_logger

__all__ = ["get_logger"]
