"""Observability: logging configuration and sweep correlation."""

from .logging import configure_logging, get_sweep_id, set_sweep_id

__all__ = ["configure_logging", "get_sweep_id", "set_sweep_id"]
