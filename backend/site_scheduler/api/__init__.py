"""API routers."""

from site_scheduler.api import tasks

__all__ = ["tasks"]
