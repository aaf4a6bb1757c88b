"""Scheduler module for the periodic status check."""

from .job_scheduler import MonitorScheduler

__all__ = ["MonitorScheduler"]
