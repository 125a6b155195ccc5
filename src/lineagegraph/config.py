"""Configuration management for LineageGraph.

Settings are plain pydantic values loaded by the caller and handed to the
component that needs them. There is no process-wide settings singleton.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from lineagegraph.exceptions import ConfigError

LINEAGEGRAPH_DIR = ".lineagegraph"
CONFIG_FILE = "config.json"


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "local"
    model: str = "gemma3:4b"
    api_key_env: str = ""
    max_tokens: int = 2048
    temperature: float = 0.1
    top_p: float = 0.95
    base_url: str | None = None  # "local" falls back to Ollama on localhost
    timeout_seconds: float = 1000.0

    @property
    def api_key(self) -> str | None:
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        env_map = {
            "openai": "OPENAI_API_KEY",
            "anthropic": "ANTHROPIC_API_KEY",
        }
        env_var = env_map.get(self.provider, "")
        return os.environ.get(env_var) if env_var else None


class ContextConfig(BaseModel):
    """How collected context is rendered for the model."""

    comment_prefix: str = "// "


class UnitTestConfig(BaseModel):
    """Unit-test generation settings."""

    java_version: str = "11"
    spark_version: str = "3.3.2"
    mockito_version: str = "4.11.0"
    language: str = "Java"
    framework: str = "JUnit"
    overwrite: bool = False


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    llm: LLMConfig = Field(default_factory=LLMConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    testgen: UnitTestConfig = Field(default_factory=UnitTestConfig)
    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            "__pycache__",
            ".git",
            ".lineagegraph",
            "build",
            "target",
            "dist",
            ".venv",
            "venv",
        ]
    )
    max_file_size_kb: int = 500


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .lineagegraph directory."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / LINEAGEGRAPH_DIR).is_dir():
            return current
        current = current.parent
    if (current / LINEAGEGRAPH_DIR).is_dir():
        return current
    return None


def get_lineagegraph_dir(root: Path) -> Path:
    """Get the .lineagegraph directory for a project root."""
    return root / LINEAGEGRAPH_DIR


def load_config(root: Path) -> ProjectConfig:
    """Load configuration from .lineagegraph/config.json."""
    config_path = get_lineagegraph_dir(root) / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            return ProjectConfig(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
    return ProjectConfig(name=root.name, root_path=str(root))


def save_config(root: Path, config: ProjectConfig) -> None:
    """Save configuration to .lineagegraph/config.json."""
    lg_dir = get_lineagegraph_dir(root)
    lg_dir.mkdir(parents=True, exist_ok=True)
    config_path = lg_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Set a nested config value using dot notation (e.g., 'llm.provider')."""
    parts = key.split(".")
    data = config.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    return ProjectConfig(**data)
