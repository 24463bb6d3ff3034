"""
Runtime settings for the MCP core.

Values are resolved in this order (later wins):
1. Built-in defaults below
2. config.ini (sections: llm, context, reasoning, storage)
3. Environment variables (a .env file is loaded first)

Environment variables:
- OPENAI_API_KEY: API key for the OpenAI-compatible endpoint
- OPENAI_BASE_URL: Endpoint base URL
- MCP_DEFAULT_MODEL: Model used by every agent unless overridden
- MCP_SESSION_TTL: Session store TTL in seconds
- MCP_DATA_DIR: Base directory for the file-backed stores
"""

import configparser
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


DEFAULT_CONFIG_FILE = Path("config.ini")

DEFAULT_MODEL = "doubao-1.5-pro-32k"
DEFAULT_BASE_URL = "https://api.siliconflow.cn/v1"


class Settings(BaseModel):
    """Tunables shared by the context manager, agent registry and reasoning engine."""

    # LLM
    api_key: str = Field(default="", repr=False)
    base_url: str = DEFAULT_BASE_URL
    default_model: str = DEFAULT_MODEL
    request_timeout: float = 60.0
    max_tokens: int = 2000

    # Context / memory
    history_max_messages: int = 100
    history_keep_recent: int = 50
    history_max_important: int = 20
    summary_interval: int = 20
    relevant_context_limit: int = 5

    # Reasoning
    complexity_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    reasoning_cache_size: int = Field(default=100, gt=0)

    # Storage
    session_ttl: int = 86400
    data_dir: str = ".mcp-core"


def load_settings(config_file: Optional[str | Path] = None) -> Settings:
    """
    Build Settings from config.ini and the environment.

    Args:
        config_file: Path to an ini file. Defaults to ./config.ini; a missing
                     file is ignored.

    Returns:
        Settings instance
    """
    load_dotenv()

    parser = configparser.ConfigParser()
    parser.read(Path(config_file) if config_file else DEFAULT_CONFIG_FILE)

    defaults = Settings()

    return Settings(
        api_key=os.getenv("OPENAI_API_KEY", ""),
        base_url=os.getenv(
            "OPENAI_BASE_URL",
            parser.get("llm", "base_url", fallback=defaults.base_url),
        ),
        default_model=os.getenv(
            "MCP_DEFAULT_MODEL",
            parser.get("llm", "model", fallback=defaults.default_model),
        ),
        request_timeout=parser.getfloat(
            "llm", "timeout", fallback=defaults.request_timeout
        ),
        max_tokens=parser.getint("llm", "max_tokens", fallback=defaults.max_tokens),
        history_max_messages=parser.getint(
            "context", "history_max_messages", fallback=defaults.history_max_messages
        ),
        history_keep_recent=parser.getint(
            "context", "history_keep_recent", fallback=defaults.history_keep_recent
        ),
        history_max_important=parser.getint(
            "context", "history_max_important", fallback=defaults.history_max_important
        ),
        summary_interval=parser.getint(
            "context", "summary_interval", fallback=defaults.summary_interval
        ),
        relevant_context_limit=parser.getint(
            "context", "relevant_context_limit", fallback=defaults.relevant_context_limit
        ),
        complexity_threshold=parser.getfloat(
            "reasoning", "complexity_threshold", fallback=defaults.complexity_threshold
        ),
        reasoning_cache_size=parser.getint(
            "reasoning", "cache_size", fallback=defaults.reasoning_cache_size
        ),
        session_ttl=int(
            os.getenv(
                "MCP_SESSION_TTL",
                parser.getint("storage", "session_ttl", fallback=defaults.session_ttl),
            )
        ),
        data_dir=os.getenv(
            "MCP_DATA_DIR",
            parser.get("storage", "data_dir", fallback=defaults.data_dir),
        ),
    )
