"""Shared fixtures."""

import pytest
import pytest_asyncio

from agentmem.config.memory_config import MemoryConfig
from agentmem.memory.tiers import MemoryTierManager
from agentmem.services.checkpoint_service import CheckpointManager
from agentmem.storage.database import Database


@pytest_asyncio.fixture
async def db(tmp_path):
    """Create a temporary SQLite database."""
    database = Database(tmp_path / "agentmem.db")
    yield database
    await database.close()


@pytest.fixture
def project_id():
    return "test-project"


@pytest.fixture
def checkpoint_manager(db, project_id):
    """Create checkpoint manager with the default retention."""
    return CheckpointManager(db, project_id)


@pytest.fixture
def memory_config():
    """Create test memory configuration independent of the environment."""
    return MemoryConfig(
        hot_token_limit=4000,
        warm_access_threshold=3,
        promote_threshold=0.85,
        max_cold_items=1000,
        auto_spill_enabled=True,
        auto_promote_enabled=True,
        token_estimator="chars",
    )


@pytest.fixture
def memory_manager(db, project_id, memory_config):
    """Create memory tier manager without an embedding provider."""
    return MemoryTierManager(db, project_id, config=memory_config)
