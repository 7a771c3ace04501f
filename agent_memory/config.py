"""
Configuration module for Agent Memory.

Loads application settings from config.yaml and secrets from environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


# Default config file path
CONFIG_FILE = Path(__file__).parent.parent / "config.yaml"


def _load_yaml_config() -> dict:
    """Load configuration from YAML file."""
    if CONFIG_FILE.exists():
        with open(CONFIG_FILE) as f:
            return yaml.safe_load(f) or {}
    return {}


# Load YAML config once at module import
_yaml_config = _load_yaml_config()


def _get_yaml(section: str, key: str, default=None):
    """Get a value from the YAML config."""
    return _yaml_config.get(section, {}).get(key, default)


@dataclass
class OpenAIConfig:
    """OpenAI API configuration."""
    # Secret from .env
    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))


@dataclass
class GoogleConfig:
    """Google Generative AI configuration."""
    # Secret from .env
    api_key: str = field(default_factory=lambda: os.getenv("GOOGLE_API_KEY", ""))


@dataclass
class MemoryConfig:
    """Long-term vector memory configuration."""
    enabled: bool = field(
        default_factory=lambda: _get_yaml("memory", "enabled", True)
    )
    embedding_provider: Literal["openai", "google", "local"] = field(
        default_factory=lambda: _get_yaml("memory", "embedding_provider", "openai")
    )
    # Empty string = provider default (text-embedding-3-small, text-embedding-004, all-MiniLM-L6-v2)
    embedding_model: str = field(
        default_factory=lambda: _get_yaml("memory", "embedding_model", "")
    )
    # None = use model's default dimensions (OpenAI text-embedding-3 only)
    embedding_dimensions: int | None = field(
        default_factory=lambda: _get_yaml("memory", "embedding_dimensions", None)
    )
    chunk_size: int = field(
        default_factory=lambda: _get_yaml("memory", "chunk_size", 1000)
    )
    default_limit: int = field(
        default_factory=lambda: _get_yaml("memory", "default_limit", 5)
    )
    # Base temp directory; the project-scoped subdirectory is derived from it
    storage_dir: str = field(
        default_factory=lambda: _get_yaml("memory", "storage_dir", "")
    )
    # Explicit mirror file, overrides storage_dir when set
    storage_path: str = field(
        default_factory=lambda: _get_yaml("memory", "storage_path", "")
    )
    # Fail fast on query/entry dimensionality mismatch instead of truncating
    strict_dimensions: bool = field(
        default_factory=lambda: _get_yaml("memory", "strict_dimensions", False)
    )


@dataclass
class AppConfig:
    """Application settings from YAML."""
    # Logging
    log_level: str = field(
        default_factory=lambda: _get_yaml("logging", "level", "INFO")
    )


@dataclass
class Config:
    """Main configuration container."""
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    google: GoogleConfig = field(default_factory=GoogleConfig)
    app: AppConfig = field(default_factory=AppConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)

    def setup_logging(self) -> logging.Logger:
        """Configure and return the application logger."""
        # Reset existing handlers to ensure clean configuration
        root = logging.getLogger()
        if root.handlers:
            for handler in list(root.handlers):
                root.removeHandler(handler)

        logging.basicConfig(
            level=getattr(logging, self.app.log_level.upper()),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        return logging.getLogger("agent_memory")

    def embedding_api_key(self) -> str:
        """Return the API key for the configured embedding provider."""
        if self.memory.embedding_provider == "openai":
            return self.openai.api_key
        if self.memory.embedding_provider == "google":
            return self.google.api_key
        return ""

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of missing/invalid settings.

        Returns:
            List of validation error messages, empty if all valid.
        """
        errors = []

        provider = self.memory.embedding_provider
        if provider not in ("openai", "google", "local"):
            errors.append(f"Unknown memory.embedding_provider: {provider}")
        elif provider == "openai" and not self.openai.api_key:
            errors.append("OPENAI_API_KEY is required when using OpenAI embeddings")
        elif provider == "google" and not self.google.api_key:
            errors.append("GOOGLE_API_KEY is required when using Google embeddings")

        if self.memory.chunk_size < 1:
            errors.append(f"memory.chunk_size must be positive, got {self.memory.chunk_size}")
        if self.memory.default_limit < 1:
            errors.append(f"memory.default_limit must be positive, got {self.memory.default_limit}")

        return errors


# Global configuration instance
config = Config()
