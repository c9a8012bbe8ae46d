"""Storage and provider configuration with environment variable loading."""

import os
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class StoreConfig(BaseModel):
    """Configuration for the local store and the embedding provider."""

    database_path: str = Field(
        default_factory=lambda: os.getenv(
            "AGENTMEM_DB_PATH", os.path.join("~", ".agentmem", "agentmem.db")
        ),
        description="SQLite database file (':memory:' for an in-process store)",
    )
    max_checkpoints: int = Field(
        default_factory=lambda: int(os.getenv("AGENTMEM_MAX_CHECKPOINTS", "10")),
        ge=1,
        description="Checkpoints retained per session",
    )

    # Embedding Configuration
    openai_api_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY"),
        description="OpenAI API key (optional, enables semantic recall)",
    )
    embedding_model: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
        description="Embedding model to use",
    )

    class Config:
        """Pydantic config."""

        frozen = True

    @property
    def resolved_database_path(self) -> str:
        """Database path with ~ expanded."""
        if self.database_path == ":memory:":
            return self.database_path
        return os.path.expanduser(self.database_path)
