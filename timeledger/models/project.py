"""Client and project models.

A client owns projects; a project carries the hourly rate used when tracked
time is turned into money.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import Field, field_validator

from timeledger.models.base import BaseDataModel, new_id, to_decimal


class ProjectStatus(str, Enum):
    """Lifecycle state of a project."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class Client(BaseDataModel):
    """Represents a client that is invoiced for work.

    Attributes:
        id: Client identifier
        name: Display name
        created_by_id: User who owns the client record
        email: Optional billing email
    """

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, description="Client name")
    created_by_id: str = Field(..., min_length=1)
    email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Validate that the name is not whitespace only."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace")
        return v.strip()


class Project(BaseDataModel):
    """Represents a billable project for a client.

    Attributes:
        id: Project identifier
        name: Project name
        client_id: Owning client
        hourly_rate: Rate applied to billable hours at aggregation time
        status: Project lifecycle state
        created_by_id: User who owns the project record

    Example:
        >>> project = Project(
        ...     name="Website Redesign",
        ...     client_id="c1",
        ...     hourly_rate="85.00",
        ...     created_by_id="u1",
        ... )
        >>> project.hourly_rate
        Decimal('85.00')
    """

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, description="Project name")
    client_id: str = Field(..., min_length=1)
    hourly_rate: Decimal = Field(..., ge=0, description="Hourly billing rate")
    status: ProjectStatus = ProjectStatus.ACTIVE
    created_by_id: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Validate that the name is not whitespace only."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace")
        return v.strip()

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert the rate to Decimal for precision."""
        return to_decimal(v)
