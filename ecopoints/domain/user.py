"""User domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


# Backend identifiers may be strings or numbers; never assume either.
OpaqueId = str | int


class AuthProvider(StrEnum):
    """Where the user's identity comes from."""

    GOOGLE = "google"
    GITHUB = "github"
    LOCAL = "local"


class User(BaseModel):
    """Canonical user record."""

    model_config = ConfigDict(populate_by_name=True)

    id: OpaqueId | None = Field(default=None, description="Opaque backend identifier")
    name: str | None = Field(default=None, description="Display name")
    email: str | None = Field(default=None, description="Email address")
    avatar: str | None = Field(default=None, description="Avatar image URL")
    provider: AuthProvider | None = Field(default=None, description="Identity provider tag")

    @property
    def identity_key(self) -> str | None:
        """Stable de-duplication key: the id, or the email when the backend sent no id."""
        if self.id is not None:
            return str(self.id)
        return self.email
