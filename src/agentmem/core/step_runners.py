"""Step runners: the callables that perform a plan step's side effect."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..exceptions import StepRunnerNotConfiguredError, UnknownActionError
from ..models.checkpoint_models import AgentState, PlanStep

logger = logging.getLogger(__name__)

# (step, state) -> output; any exception fails the step
StepRunner = Callable[[PlanStep, AgentState], Awaitable[Any]]

# (parameters, state) -> output; may be sync or async
ActionHandler = Callable[[Dict[str, Any], AgentState], Union[Any, Awaitable[Any]]]


async def no_step_runner(step: PlanStep, state: AgentState) -> Any:
    """
    Default step runner used when none is configured.

    Raises:
        StepRunnerNotConfiguredError: Always
    """
    raise StepRunnerNotConfiguredError(step.action)


class ActionRegistry:
    """
    Registry mapping action names to handlers.

    Instances are callable and can be passed directly to the executor
    as its step runner.
    """

    def __init__(self, handlers: Optional[Dict[str, ActionHandler]] = None):
        """
        Initialize action registry.

        Args:
            handlers: Initial action name -> handler mapping
        """
        self._handlers: Dict[str, ActionHandler] = dict(handlers or {})

    def register(self, action: str, handler: ActionHandler) -> None:
        """
        Register a handler.

        Args:
            action: Action name
            handler: Handler called with (parameters, state)

        Raises:
            ValueError: If the action is already registered
        """
        if action in self._handlers:
            raise ValueError(
                f"Action '{action}' is already registered. "
                "Unregister it first to replace the handler."
            )
        self._handlers[action] = handler
        logger.debug(f"Registered action handler: {action}")

    def unregister(self, action: str) -> None:
        """
        Remove a handler.

        Args:
            action: Action name
        """
        if self._handlers.pop(action, None) is None:
            logger.warning(f"Action '{action}' not found in registry")

    def has_action(self, action: str) -> bool:
        return action in self._handlers

    def list_actions(self) -> List[str]:
        return sorted(self._handlers)

    async def __call__(self, step: PlanStep, state: AgentState) -> Any:
        """
        Dispatch a step to its action handler.

        Args:
            step: Step to run
            state: Current agent state

        Returns:
            Handler output

        Raises:
            UnknownActionError: If no handler is registered for the action
        """
        handler = self._handlers.get(step.action)
        if handler is None:
            raise UnknownActionError(step.action)

        result = handler(step.parameters, state)
        if inspect.isawaitable(result):
            result = await result
        return result


def create_step_runner(handlers: Dict[str, ActionHandler]) -> StepRunner:
    """
    Build a step runner from a map of action handlers.

    Args:
        handlers: Action name -> handler(parameters, state)

    Returns:
        Step runner dispatching on ``step.action``
    """
    return ActionRegistry(handlers)
