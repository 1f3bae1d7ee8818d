# src/planner_client/models.py
"""
Request payloads and validated responses for the travel planner API.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class RefreshResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: str = Field(min_length=1)
    refresh_token: Optional[str] = None


class RegisterRequest(BaseModel):
    email: str
    username: str
    password: str
    nickname: Optional[str] = None


class UpdateProfileRequest(BaseModel):
    # Wire names are camelCase
    model_config = ConfigDict(populate_by_name=True)

    nickname: Optional[str] = None
    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class PlanRequest(BaseModel):
    destination: str
    duration: int
    interests: Optional[str] = None
    start_date: Optional[str] = None
    preferences: Optional[List[str]] = None
    budget: Optional[float] = None


class Activity(BaseModel):
    model_config = ConfigDict(extra="allow")

    time: Optional[str] = None
    location: Optional[str] = None
    activity: Optional[str] = None
    tips: Optional[str] = None


class PlanDay(BaseModel):
    model_config = ConfigDict(extra="allow")

    day: Optional[int] = None
    date: Optional[str] = None
    activities: List[Activity] = Field(default_factory=list)

    @field_validator("activities", mode="before")
    @classmethod
    def default_activities(cls, value: Any) -> Any:
        return [] if value is None else value


class PlanBody(BaseModel):
    model_config = ConfigDict(extra="allow")

    days: List[PlanDay] = Field(default_factory=list)
    summary: Optional[str] = None
    tips: List[Any] = Field(default_factory=list)

    # The model sometimes sends null for empty lists
    @field_validator("days", "tips", mode="before")
    @classmethod
    def default_lists(cls, value: Any) -> Any:
        return [] if value is None else value


class TravelPlan(BaseModel):
    """
    A generated itinerary as returned by POST /ai/plan.

    Only `destination` and a non-empty `plan` are required. `plan` is a
    PlanBody when it parses as one, otherwise it is kept as the server sent
    it (free text, or a shape the client does not know).
    """

    model_config = ConfigDict(extra="allow")

    destination: str = Field(min_length=1)
    duration: Any = None
    plan: Any

    @field_validator("plan")
    @classmethod
    def parse_plan(cls, value: Any) -> Any:
        if not value:
            raise ValueError("plan is empty")
        if isinstance(value, dict):
            try:
                return PlanBody.model_validate(value)
            except ValidationError:
                return value
        return value

    @property
    def details(self) -> Optional[PlanBody]:
        """The structured plan, or None when the server sent something else."""
        return self.plan if isinstance(self.plan, PlanBody) else None


class SuggestionRequest(BaseModel):
    destination: str
    query: str
