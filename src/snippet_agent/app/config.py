from dataclasses import dataclass

from snippet_shared.platform_manager import get_parameters

# Constants that don't change
AGENT_NAME = "my-mcp-agent"
AGENT_INSTRUCTIONS = (
    "You are a helpful assistant. Use the tools provided to answer the user's questions. "
    "Be sure to cite your sources."
)
AGENT_TOOL_NAMES = ["get_snippet", "save_snippet"]

# Defaults for environment-sourced settings
DEFAULT_PROJECT_ENDPOINT = (
    "https://your-agent-service-resource.services.ai.azure.com/api/projects/your-project-name"
)
DEFAULT_MODEL_DEPLOYMENT_NAME = "gpt-4.1-mini"
DEFAULT_MCP_SERVER_LABEL = "Azure_Functions_MCP_Server"
DEFAULT_MCP_SERVER_URL = "https://<your-funcappname>.azurewebsites.net/runtime/webhooks/mcp/sse"
DEFAULT_USER_MESSAGE = "Create a snippet called snippet1 that prints 'Hello, World!' in Python."
DEFAULT_API_VERSION = "v1"
DEFAULT_POLL_INTERVAL = 1.0  # seconds
DEFAULT_POLL_TIMEOUT = 300.0  # seconds


class ConfigurationError(ValueError):
    """Raised when a required setting is missing or invalid."""


@dataclass
class AgentSettings:
    """Agent configuration settings loaded from the environment."""

    # Agent service settings
    project_endpoint: str
    model_deployment_name: str
    api_version: str

    # MCP tool settings
    mcp_server_label: str
    mcp_server_url: str
    mcp_extension_key: str

    # Conversation settings
    user_message: str

    # Polling settings
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    poll_max_attempts: int | None = None

    # Optional settings
    agent_service_token: str | None = None
    log_level: str = "INFO"

    @property
    def mcp_tool_url(self) -> str:
        """The tool server URL with the function key appended as a query credential."""
        return f"{self.mcp_server_url}?code={self.mcp_extension_key}"


def _to_float(name: str, value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"Configuration value is invalid: {name.upper()}") from e


def _to_int(name: str, value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"Configuration value is invalid: {name.upper()}") from e


class Config:
    """Singleton configuration manager for the snippet agent."""

    _instance = None
    _settings = None

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def get_settings(self) -> AgentSettings:
        """Get agent settings, loading from the environment if not already cached."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def reset(self) -> None:
        """Drop cached settings so the next access reloads them."""
        self._settings = None

    def _load_settings(self) -> AgentSettings:
        """Load settings from environment variables."""
        # Required secret (no default)
        secrets = get_parameters(["mcp_extension_key", "agent_service_token"])
        if not secrets["mcp_extension_key"]:
            raise ConfigurationError(
                "MCP_EXTENSION_KEY environment variable is required but not set"
            )

        params = get_parameters([
            "project_endpoint",
            "model_deployment_name",
            "agent_api_version",
            "mcp_server_label",
            "mcp_server_url",
            "user_message",
            "run_poll_interval",
            "run_poll_timeout",
            "run_poll_max_attempts",
            "log_level",
        ])

        settings = AgentSettings(
            project_endpoint=(params["project_endpoint"] or DEFAULT_PROJECT_ENDPOINT).rstrip("/"),
            model_deployment_name=params["model_deployment_name"] or DEFAULT_MODEL_DEPLOYMENT_NAME,
            api_version=params["agent_api_version"] or DEFAULT_API_VERSION,
            mcp_server_label=params["mcp_server_label"] or DEFAULT_MCP_SERVER_LABEL,
            mcp_server_url=params["mcp_server_url"] or DEFAULT_MCP_SERVER_URL,
            mcp_extension_key=secrets["mcp_extension_key"] or "",
            user_message=params["user_message"] or DEFAULT_USER_MESSAGE,
            poll_interval=_to_float(
                "run_poll_interval", params["run_poll_interval"], DEFAULT_POLL_INTERVAL
            ),
            poll_timeout=_to_float(
                "run_poll_timeout", params["run_poll_timeout"], DEFAULT_POLL_TIMEOUT
            ),
            poll_max_attempts=_to_int("run_poll_max_attempts", params["run_poll_max_attempts"]),
            agent_service_token=secrets["agent_service_token"],
            log_level=params["log_level"] or "INFO",
        )

        # Validate settings
        self._validate_settings(settings)

        return settings

    def _validate_settings(self, settings: AgentSettings) -> None:
        """Validate that all required settings have valid values."""
        required_fields = [
            "project_endpoint",
            "model_deployment_name",
            "api_version",
            "mcp_server_label",
            "mcp_server_url",
            "mcp_extension_key",
            "user_message",
        ]

        for field in required_fields:
            if not getattr(settings, field):
                raise ConfigurationError(f"Configuration value is invalid: {field.upper()}")

        validate_poll_settings(settings)


def validate_poll_settings(settings: AgentSettings) -> None:
    """Check the polling values, which may also come from command line overrides."""
    if settings.poll_interval <= 0:
        raise ConfigurationError("Configuration value is invalid: RUN_POLL_INTERVAL")
    if settings.poll_timeout <= 0:
        raise ConfigurationError("Configuration value is invalid: RUN_POLL_TIMEOUT")
    if settings.poll_max_attempts is not None and settings.poll_max_attempts <= 0:
        raise ConfigurationError("Configuration value is invalid: RUN_POLL_MAX_ATTEMPTS")


# Create singleton instance
config = Config()


def get_settings() -> AgentSettings:
    """Get agent settings from the singleton config."""
    return config.get_settings()
