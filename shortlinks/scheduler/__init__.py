"""Scheduler module for the shortlink application.

This module provides scheduled task functionality using APScheduler.
"""

from shortlinks.scheduler.scheduler import SchedulerService

__all__ = ["SchedulerService"]
