"""Monitoring package."""

from txengine.monitoring.logger import setup_logging

__all__ = ["setup_logging"]
