"""Activity type and activity log domain models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from ecopoints.domain.user import OpaqueId


class ActivityCategory(StrEnum):
    """Category of an eco-friendly activity."""

    TRANSPORTATION = "Transportation"
    RECYCLING = "Recycling"
    ENERGY = "Energy"
    WATER = "Water"
    FOOD = "Food"
    OTHER = "Other"


class ActivityType(BaseModel):
    """An activity users can log, with its point reward."""

    model_config = ConfigDict(populate_by_name=True)

    id: OpaqueId | None = Field(default=None, description="Opaque backend identifier")
    name: str = Field(default="", description="Activity name")
    description: str | None = Field(default=None, description="Activity description")
    points: int = Field(default=0, ge=0, description="Points awarded per log")
    category: ActivityCategory = Field(default=ActivityCategory.OTHER, description="Activity category")
    # The backend column is NOT NULL, so the value is always present.
    co2g_saved: float = Field(default=0.0, ge=0, alias="co2gSaved", description="Grams of CO2 saved per log")
    icon: str | None = Field(default=None, description="Optional icon name")


class ActivityLog(BaseModel):
    """One logged activity, with points denormalized from its activity type."""

    model_config = ConfigDict(populate_by_name=True)

    id: OpaqueId | None = Field(default=None, description="Opaque backend identifier")
    user_id: OpaqueId | None = Field(default=None, alias="userId", description="ID of the user who logged it")
    user_name: str | None = Field(default=None, alias="userName", description="Display name of that user")
    activity_type_id: OpaqueId | None = Field(
        default=None, alias="activityTypeId", description="ID of the referenced activity type"
    )
    activity_type: ActivityType | None = Field(
        default=None, alias="activityType", description="Embedded activity type, when the backend sends one"
    )
    points: int = Field(default=0, ge=0, description="Points copied from the activity type")
    co2g_saved: float = Field(default=0.0, ge=0, alias="co2gSaved", description="CO2 saved copied from the type")
    category: ActivityCategory = Field(default=ActivityCategory.OTHER, description="Category copied from the type")
    created_at: datetime | None = Field(default=None, alias="createdAt", description="When the activity occurred")
    description: str | None = Field(default=None, description="Freeform note")
