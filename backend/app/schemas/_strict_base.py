"""Schema baselines: strict requests, attribute-backed responses."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Neutral strict base for DTOs."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StrictRequestModel(StrictModel):
    """Request DTO base that always forbids unexpected fields."""


class ORMResponseModel(BaseModel):
    """Response DTO populated straight from ORM instances."""

    model_config = ConfigDict(from_attributes=True)
