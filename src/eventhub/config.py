"""
# Configuration Management Module

Configuration for the EventHub API, built on **Pydantic Settings**.

## Loading Hierarchy

Higher layers override lower layers:

1. **Environment variables** (highest priority)
2. **`EVENTHUB_CONFIG_PATH`**: custom config file path taken from the environment
3. **`.eventhub` file** in the project root
4. **`.env` file** in the project root
5. **Defaults** declared on `Settings` (lowest priority)

If no configuration file is found the application runs in environment-only mode.

## Groups

- **Server**: `HOST`, `PORT`, `DEBUG`, `LOG_LEVEL`
- **Database**: `MONGODB_*` connection settings and the collection names used by the
  event service (`EVENTS_COLLECTION`, `TALKS_COLLECTION`)
- **Geocoding**: provider selection, API key and request timeout for the address
  resolver (`GEOCODER_*`)
- **Events**: defaults applied to new event records (`DEFAULT_EVENT_PHOTO`)

## Usage

```python
from eventhub.config import settings

events = db_manager.get_collection(settings.EVENTS_COLLECTION)
```

Attributes:
    EVENTHUB_FILENAME (str): Primary configuration filename (`.eventhub`).
    DEFAULT_ENV_FILENAME (str): Fallback configuration filename (`.env`).
    CONFIG_ENV_VAR (str): Environment variable holding a custom config file path.
    PROJECT_ROOT (Path): Directory searched for config files.
    CONFIG_PATH (Optional[str]): Resolved config file, or `None` in environment-only mode.
    settings (Settings): Global settings instance.
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
EVENTHUB_FILENAME: str = ".eventhub"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "EVENTHUB_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent

GEOCODER_PROVIDERS = ("mapquest", "nominatim")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    1.  **Environment Variable**: `EVENTHUB_CONFIG_PATH` (if set and the file exists).
    2.  **EventHub Config**: `.eventhub` file in the project root directory.
    3.  **Dotenv Config**: `.env` file in the project root directory.
    4.  **Fallback**: `None`, triggering environment-variable-only mode.

    Returns:
        Optional[str]: The path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    eventhub_path: Path = PROJECT_ROOT / EVENTHUB_FILENAME
    if eventhub_path.exists():
        return str(eventhub_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=True)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode and log level.
    *   **Database**: MongoDB connection details and collection names.
    *   **Geocoding**: Provider, credentials and timeout for address resolution.
    *   **Events**: Defaults for newly created event records.

    **Validation:**
    The MongoDB URL may not be blank, the geocoder provider must be one of the
    supported providers and the geocoder timeout must be positive.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra env vars not defined as fields
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "eventhub"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000

    # Authentication (optional)
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Collections
    EVENTS_COLLECTION: str = "events"
    TALKS_COLLECTION: str = "talks"

    # Event defaults
    DEFAULT_EVENT_PHOTO: str = "no-photo.jpg"

    # Geocoding
    GEOCODER_PROVIDER: str = "mapquest"
    GEOCODER_API_KEY: Optional[SecretStr] = None
    GEOCODER_BASE_URL: Optional[str] = None  # Overrides the provider's public endpoint
    GEOCODER_TIMEOUT: float = 10.0  # seconds
    GEOCODER_USER_AGENT: str = "eventhub/1.0"

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """
        Validates that the MongoDB URL is not empty.

        Raises:
            ValueError: If the URL is empty or whitespace.
        """
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .eventhub and not empty!")
        return v

    @field_validator("GEOCODER_PROVIDER", mode="before")
    @classmethod
    def validate_geocoder_provider(cls, v: Any, info: Any) -> str:
        v = str(v).strip().lower()
        if v not in GEOCODER_PROVIDERS:
            raise ValueError(f"{info.field_name} must be one of: {', '.join(GEOCODER_PROVIDERS)}")
        return v

    @field_validator("GEOCODER_TIMEOUT", mode="before")
    @classmethod
    def validate_timeout(cls, v: Any, info: Any) -> float:
        try:
            v = float(v)
        except (TypeError, ValueError):
            raise ValueError(f"{info.field_name} must be a number of seconds")
        if v <= 0:
            raise ValueError(f"{info.field_name} must be greater than 0 seconds")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any, info: Any) -> str:
        v = str(v).strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"{info.field_name} must be one of: {', '.join(LOG_LEVELS)}")
        return v

    @property
    def is_production(self) -> bool:
        """`True` when running with `DEBUG=false`."""
        return not self.DEBUG


# Global settings instance
settings: Settings = Settings()
