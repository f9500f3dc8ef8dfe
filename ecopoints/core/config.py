"""Configuration management for the EcoPoints client."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend API Configuration
    api_base_url: str = Field(default="http://localhost:3000/api", description="Base URL of the EcoPoints API")
    login_path: str = Field(default="/login", description="Login surface to redirect to on a 401 response")

    # Session Storage
    session_file: Path | None = Field(
        default=None, description="JSON file used as local key-value storage (in-memory when unset)"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # GitHub OAuth Configuration
    github_client_id: str | None = Field(default=None, description="GitHub OAuth app client ID")
    github_client_secret: str | None = Field(default=None, description="GitHub OAuth app client secret")
    github_redirect_uri: str = Field(
        default="http://localhost:5173/auth/github/callback", description="Redirect URI registered with GitHub"
    )

    # HTTP Surface
    allowed_origin: str = Field(default="http://localhost:5173", description="Origin allowed by CORS")
    enable_mock_backend: bool = Field(default=True, description="Serve the development mock backend under /api")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_UNAUTHORIZED: int = 401
    HTTP_NOT_FOUND: int = 404
    HTTP_SERVER_ERROR: int = 500
    HTTP_CLIENT_ERROR_START: int = 400

    # Fixed error messages
    GENERIC_ERROR_MESSAGE: str = "An unexpected error occurred"
    NETWORK_ERROR_MESSAGE: str = "Network error. Please check your connection and try again."

    # Local storage keys
    AUTH_TOKEN_KEY: str = "authToken"
    USER_KEY: str = "user"
    CUSTOM_ACTIVITY_FLAG_KEY: str = "hasCreatedCustomActivity"

    # Stats synthesis
    RECENT_ACTIVITIES_LIMIT: int = 10
    WEEKLY_WINDOW_DAYS: int = 7
    MONTHLY_WINDOW_DAYS: int = 30
    WEEKLY_PROGRESS_DAYS: int = 7

    # Leaderboard
    UNKNOWN_USER_NAME: str = "Unknown User"

    # GitHub OAuth endpoints
    GITHUB_TOKEN_URL: str = "https://github.com/login/oauth/access_token"
    GITHUB_USER_URL: str = "https://api.github.com/user"
    GITHUB_EMAILS_URL: str = "https://api.github.com/user/emails"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
