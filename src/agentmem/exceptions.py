"""Exception hierarchy for checkpointing, execution and memory tiering."""


class AgentMemoryError(Exception):
    """Base class for all agentmem errors."""

    pass


class DatabaseError(AgentMemoryError):
    """Raised when the persistence layer is unusable (e.g. closed)."""

    pass


class NotFoundError(AgentMemoryError):
    """Raised when a referenced record does not exist."""

    pass


class CheckpointNotFoundError(NotFoundError):
    """Raised when a checkpoint id cannot be resolved."""

    def __init__(self, checkpoint_id: str):
        self.checkpoint_id = checkpoint_id
        super().__init__(f"Checkpoint not found: {checkpoint_id}")


class ConfigurationError(AgentMemoryError):
    """Raised when the executor cannot dispatch a step."""

    pass


class StepRunnerNotConfiguredError(ConfigurationError):
    """Raised by the default step runner."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"No step runner configured. Cannot execute step: {action}")


class UnknownActionError(ConfigurationError):
    """Raised when no handler is registered for a step's action."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Unknown action: {action}")
