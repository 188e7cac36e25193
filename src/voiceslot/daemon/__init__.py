"""Scheduler daemon: queue, admission control and configuration."""

from voiceslot.daemon.config import SchedulerConfig, load_config
from voiceslot.daemon.queue import CallJob, CallQueue
from voiceslot.daemon.scheduler import CallScheduler, SchedulerStats

__all__ = [
    "CallJob",
    "CallQueue",
    "CallScheduler",
    "SchedulerConfig",
    "SchedulerStats",
    "load_config",
]
