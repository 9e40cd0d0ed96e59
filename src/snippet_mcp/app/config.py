from dataclasses import dataclass

from snippet_shared.platform_manager import get_parameters

# Constants
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_SNIPPET_CONTAINER = "snippets"
DEFAULT_SNIPPET_MCP_URL = "http://localhost:8000"
REDIS_NAMESPACE = "mcp:snippets"


@dataclass
class MCPSettings:
    """MCP configuration settings loaded from the environment."""

    # Core settings
    redis_url: str
    snippet_container: str
    snippet_mcp_url: str
    log_level: str = "INFO"

    # Optional shared secret that authorizes tool invocation (?code=...)
    function_key: str | None = None


class Config:
    """Singleton configuration manager for the snippet MCP."""

    _instance = None
    _settings = None

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def get_settings(self) -> MCPSettings:
        """Get MCP settings, loading from the environment if not already cached."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def reset(self) -> None:
        """Drop cached settings so the next access reloads them."""
        self._settings = None

    def _load_settings(self) -> MCPSettings:
        """Load settings from environment variables."""
        params = get_parameters([
            "redis_url",
            "snippet_container",
            "snippet_mcp_url",
            "snippet_mcp_function_key",
            "log_level",
        ])

        settings = MCPSettings(
            redis_url=params["redis_url"] or DEFAULT_REDIS_URL,
            snippet_container=params["snippet_container"] or DEFAULT_SNIPPET_CONTAINER,
            snippet_mcp_url=(params["snippet_mcp_url"] or DEFAULT_SNIPPET_MCP_URL).rstrip("/"),
            log_level=params["log_level"] or "INFO",
            function_key=params["snippet_mcp_function_key"],
        )

        # Validate settings
        self._validate_settings(settings)

        return settings

    def _validate_settings(self, settings: MCPSettings) -> None:
        """Validate that all required settings have valid values."""
        required_fields = ["redis_url", "snippet_container", "snippet_mcp_url"]

        for field in required_fields:
            if not getattr(settings, field):
                raise ValueError(f"Configuration value is invalid: {field.upper()}")


# Create singleton instance
config = Config()


def get_settings() -> MCPSettings:
    """Get MCP settings from the singleton config."""
    return config.get_settings()
