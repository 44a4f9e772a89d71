from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common fields."""
    model_config = ConfigDict(from_attributes=True)


class FrozenSchema(BaseModel):
    """Immutable value object."""
    model_config = ConfigDict(from_attributes=True, frozen=True)
