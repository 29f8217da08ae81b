"""Utility modules for launchproxy."""

from launchproxy.utils.tasks import TaskFailure, TaskSupervisor

__all__ = ["TaskFailure", "TaskSupervisor"]
