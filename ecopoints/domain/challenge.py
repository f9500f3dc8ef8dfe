"""Challenge domain models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from ecopoints.domain.user import OpaqueId


class ChallengeStatus(StrEnum):
    """Challenge lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class Challenge(BaseModel):
    """Challenge with progress towards a target."""

    model_config = ConfigDict(populate_by_name=True)

    id: OpaqueId = Field(..., description="Opaque identifier (backend or milestone id)")
    title: str = Field(default="", description="Challenge title")
    description: str = Field(default="", description="What the user has to do")
    points: int = Field(default=0, ge=0, description="Point reward")
    progress: int = Field(default=0, ge=0, description="Progress so far")
    target: int = Field(default=1, gt=0, description="Progress needed to complete")
    status: ChallengeStatus = Field(default=ChallengeStatus.ACTIVE, description="Lifecycle status")
