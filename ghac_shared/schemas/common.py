from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model for wire schemas: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ResourceType(str, Enum):
    """Conventional resource tags. Audit storage accepts any string."""
    ORGANIZATION = "organization"
    USER = "user"
    TEAM = "team"
    REPOSITORY = "repository"
    POLICY = "policy"
    ROLE = "role"
    PERMISSION = "permission"


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int
    fields: Optional[list[str]] = None


class ErrorResponse(BaseModel):
    error: ErrorBody
