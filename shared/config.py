"""
shared/config.py
Shared configuration for move-forge.

Centralized settings for the request client, sandbox manager and logging.
Follows: Single Source of Truth principle
"""

import os
from pathlib import Path
from typing import Optional


class SharedConfig:
    """
    Shared configuration constants.

    Credentials are not stored here; components read them from the
    environment when constructed so tests can control them per instance.
    """

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent
    PACKAGE_ROOT = PROJECT_ROOT / "move_forge"

    # Logging settings
    LOG_LEVEL = os.getenv("MOVE_FORGE_LOG_LEVEL", "INFO")
    LOG_FORMAT = "json"  # or "text"
    LOG_PATH = Path(os.getenv("MOVE_FORGE_LOG_PATH", str(PROJECT_ROOT / "logs")))
    LOG_FILE = LOG_PATH / "move_forge.log"

    # Code generation service (OpenRouter, OpenAI-compatible)
    OPENROUTER_API_KEY_ENV = "OPENROUTER_API_KEY"
    OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    DEFAULT_MODEL = os.getenv("MOVE_FORGE_MODEL", "qwen/qwen-2.5-coder-32b-instruct")
    FREE_TIER_SUFFIX = ":free"
    MAX_RETRIES = 2
    MAX_RETRY_DELAY = 60.0  # seconds, caps Retry-After and backoff
    REQUEST_TIMEOUT = 120.0  # seconds
    TEMPERATURE = 0.3
    MAX_TOKENS = 3000
    APP_URL = os.getenv("APP_URL", "http://localhost:3000")
    APP_TITLE = "Aptos Assistant DeFi"

    # Ephemeral sandbox (E2B)
    E2B_API_KEY_ENV = "E2B_API_KEY"
    SANDBOX_TEMPLATE = os.getenv("MOVE_FORGE_SANDBOX_TEMPLATE", "base")
    SANDBOX_TIMEOUT = 600  # sandbox lifetime on the provider side, seconds
    PROVISION_TIMEOUT = 60.0
    INSTALL_TIMEOUT = 300.0
    COMPILE_TIMEOUT = 180.0
    FILE_TIMEOUT = 30.0
    TEARDOWN_TIMEOUT = 30.0

    # Move project layout inside the sandbox
    PROJECT_DIR = "/home/user"
    SOURCES_DIR = "/home/user/sources"
    MAIN_SOURCE_PATH = "/home/user/sources/main.move"
    MANIFEST_PATH = "/home/user/Move.toml"
    APTOS_CLI_PATH = "/root/.local/bin/aptos"
    APTOS_INSTALL_COMMAND = 'curl -fsSL "https://aptos.dev/scripts/install_cli.py" | python3'

    GAS_ESTIMATE_LABEL = "Compilation check only"

    @classmethod
    def get_openrouter_api_key(cls) -> Optional[str]:
        """Get the code generation credential, if configured."""
        return os.getenv(cls.OPENROUTER_API_KEY_ENV) or None

    @classmethod
    def get_e2b_api_key(cls) -> Optional[str]:
        """Get the sandbox provisioning credential, if configured."""
        return os.getenv(cls.E2B_API_KEY_ENV) or None

    @classmethod
    def initialize_dirs(cls) -> None:
        """Create necessary directories."""
        cls.LOG_PATH.mkdir(parents=True, exist_ok=True)
