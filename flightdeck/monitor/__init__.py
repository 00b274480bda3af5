"""
Monitor Module — Background Pollers

Public API:
- PeriodicTask: cancellable fixed-interval task
- DirectorySizeMonitor: disk usage sampler writing directory_stats points
"""

from .poller import DirectorySizeMonitor, MonitorStatus, calculate_dir_size
from .scheduler import PeriodicTask

__all__ = [
    "DirectorySizeMonitor",
    "MonitorStatus",
    "calculate_dir_size",
    "PeriodicTask",
]
