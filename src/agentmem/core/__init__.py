"""Plan execution core."""

from .events import ExecutionListener, LoggingListener
from .executor import CheckpointedExecutor
from .step_runners import (
    ActionHandler,
    ActionRegistry,
    StepRunner,
    create_step_runner,
    no_step_runner,
)

__all__ = [
    "ExecutionListener",
    "LoggingListener",
    "CheckpointedExecutor",
    "ActionHandler",
    "ActionRegistry",
    "StepRunner",
    "create_step_runner",
    "no_step_runner",
]
