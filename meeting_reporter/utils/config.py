"""
Configuration management for Meeting Reporter.
"""

import json
import os
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from pathlib import Path

from .logging import get_logger

logger = get_logger(__name__)


class LLMConfig(BaseModel):
    """Configuration for the OpenAI-compatible chat-completions endpoint."""
    base_url: str = Field(default="https://api.openai.com/v1")
    api_key: Optional[str] = Field(default=None)
    model: str = Field(default="gpt-4o-mini")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1, le=32000)
    timeout_seconds: float = Field(default=60.0, gt=0, le=600)


class GraphConfig(BaseModel):
    """Configuration for Microsoft Graph calendar access."""
    base_url: str = Field(default="https://graph.microsoft.com/v1.0")
    access_token: Optional[str] = Field(default=None)
    page_size: int = Field(default=50, ge=1, le=1000)
    timeout_seconds: float = Field(default=30.0, gt=0, le=600)
    max_retries: int = Field(default=3, ge=0, le=10)
    user_domain: Optional[str] = Field(default=None)


class ReportConfig(BaseModel):
    """Configuration for report output."""
    output_dir: Path = Field(default=Path("reports"))
    download_base_url: Optional[str] = Field(default=None)
    analysis_delay_seconds: float = Field(default=0.2, ge=0.0, le=60.0)


class AgentLimits(BaseModel):
    """Per-agent iteration caps."""
    calendar_max_iterations: int = Field(default=5, ge=1, le=100)
    analysis_max_iterations: int = Field(default=10, ge=1, le=100)
    report_max_iterations: int = Field(default=5, ge=1, le=100)


class SystemConfig(BaseModel):
    """Main system configuration."""
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    json_logging: bool = Field(default=False)

    llm: LLMConfig = Field(default_factory=LLMConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    reports: ReportConfig = Field(default_factory=ReportConfig)
    agents: AgentLimits = Field(default_factory=AgentLimits)

    @property
    def analysis_enabled(self) -> bool:
        """AI analysis is available when an endpoint and a model are set."""
        return bool(self.llm.base_url and self.llm.model)


def _env_overrides() -> Dict[str, Any]:
    config_data: Dict[str, Any] = {}

    if os.getenv("DEBUG"):
        config_data["debug"] = os.getenv("DEBUG").lower() == "true"

    if os.getenv("LOG_LEVEL"):
        config_data["log_level"] = os.getenv("LOG_LEVEL")

    if os.getenv("JSON_LOGGING"):
        config_data["json_logging"] = os.getenv("JSON_LOGGING").lower() == "true"

    # LLM settings; an empty LLM_BASE_URL or LLM_MODEL disables analysis
    llm_config: Dict[str, Any] = {}
    if os.getenv("LLM_BASE_URL") is not None:
        llm_config["base_url"] = os.getenv("LLM_BASE_URL")

    if os.getenv("LLM_API_KEY"):
        llm_config["api_key"] = os.getenv("LLM_API_KEY")

    if os.getenv("LLM_MODEL") is not None:
        llm_config["model"] = os.getenv("LLM_MODEL")

    if os.getenv("LLM_TIMEOUT"):
        llm_config["timeout_seconds"] = float(os.getenv("LLM_TIMEOUT"))

    if llm_config:
        config_data["llm"] = llm_config

    # Graph settings
    graph_config: Dict[str, Any] = {}
    if os.getenv("GRAPH_BASE_URL"):
        graph_config["base_url"] = os.getenv("GRAPH_BASE_URL")

    if os.getenv("GRAPH_ACCESS_TOKEN"):
        graph_config["access_token"] = os.getenv("GRAPH_ACCESS_TOKEN")

    if os.getenv("USER_DOMAIN"):
        graph_config["user_domain"] = os.getenv("USER_DOMAIN")

    if graph_config:
        config_data["graph"] = graph_config

    # Report settings
    report_config: Dict[str, Any] = {}
    if os.getenv("REPORT_OUTPUT_DIR"):
        report_config["output_dir"] = os.getenv("REPORT_OUTPUT_DIR")

    if os.getenv("REPORT_DOWNLOAD_BASE_URL"):
        report_config["download_base_url"] = os.getenv("REPORT_DOWNLOAD_BASE_URL")

    if os.getenv("ANALYSIS_DELAY_SECONDS"):
        report_config["analysis_delay_seconds"] = float(os.getenv("ANALYSIS_DELAY_SECONDS"))

    if report_config:
        config_data["reports"] = report_config

    return config_data


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config_from_env() -> SystemConfig:
    """
    Load configuration from environment variables.

    Returns:
        SystemConfig: Configuration object with values from environment
    """
    return SystemConfig(**_env_overrides())


def load_config_from_file(config_path: Optional[Path] = None) -> SystemConfig:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to configuration file, ``config.json`` by default

    Returns:
        SystemConfig: Configuration object, defaults when the file is absent
    """
    if config_path is None:
        config_path = Path("config.json")

    if not config_path.exists():
        return SystemConfig()

    try:
        with open(config_path, 'r') as f:
            config_data = json.load(f)
        return SystemConfig(**config_data)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load config from {config_path}: {e}")
        return SystemConfig()


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """
    Load the file configuration and apply environment overrides on top.

    Args:
        config_path: Optional path to a JSON configuration file

    Returns:
        SystemConfig: Merged configuration
    """
    file_config = load_config_from_file(config_path)
    overrides = _env_overrides()
    if not overrides:
        return file_config
    return SystemConfig(**_merge(file_config.model_dump(), overrides))


# Global configuration instance
_config: Optional[SystemConfig] = None


def get_config() -> SystemConfig:
    """
    Get the global configuration instance.

    Returns:
        SystemConfig: Global configuration
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[SystemConfig]) -> None:
    """
    Set the global configuration instance.

    Args:
        config: Configuration to set as global; ``None`` forces a reload
    """
    global _config
    _config = config
