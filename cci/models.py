from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class VcsType(str, Enum):
    """
    Version control providers supported by CircleCI.
    """

    GITHUB = "github"
    BITBUCKET = "bitbucket"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNKNOWN


class PipelineState(str, Enum):
    """
    Represents the state of a pipeline.
    """

    CREATED = "created"
    ERRORED = "errored"
    SETUP_PENDING = "setup-pending"
    SETUP = "setup"
    PENDING = "pending"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


class TriggerType(str, Enum):
    """
    Represents what caused a pipeline to be created.
    """

    API = "api"
    WEBHOOK = "webhook"
    EXPLICIT = "explicit"
    SCHEDULE = "schedule"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


class Remote(BaseModel):
    """
    Identifies a project within a VCS provider's namespace.
    """

    vcs_type: VcsType
    organization: str
    project: str

    model_config = ConfigDict(frozen=True)


class Actor(BaseModel):
    login: str
    avatar_url: str | None = None

    model_config = ConfigDict(frozen=True)


class Trigger(BaseModel):
    type: TriggerType
    received_at: datetime
    actor: Actor

    model_config = ConfigDict(frozen=True)


class Pipeline(BaseModel):
    """
    Represents a single pipeline of a project.

    A freshly triggered pipeline is returned without ``updated_at`` or ``trigger``.
    """

    id: str
    number: int
    state: PipelineState
    created_at: datetime
    updated_at: datetime | None = None
    trigger: Trigger | None = None

    model_config = ConfigDict(frozen=True)


class TriggerParameters(BaseModel):
    """
    Request model for triggering a new pipeline.
    """

    branch: str | None = None

    @field_validator("branch")
    @classmethod
    def _empty_branch_is_absent(cls, value: str | None) -> str | None:
        return value or None


class Context(BaseModel):
    """
    Represents a CircleCI context, a named set of environment variables.
    """

    id: str
    name: str
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class EnvironmentVariable(BaseModel):
    """
    Represents an environment variable stored in a context. Values are never returned.
    """

    variable: str
    context_id: str
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class ContextOwner(BaseModel):
    slug: str
    type: str = "organization"


class CreateContextRequest(BaseModel):
    name: str
    owner: ContextOwner


class EnvironmentVariableValue(BaseModel):
    value: str


class Page(BaseModel, Generic[T]):
    """
    A single page of a paginated collection response.
    """

    items: list[T] = Field(default_factory=list)
    next_page_token: str | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("items", mode="before")
    @classmethod
    def _null_items_are_empty(cls, value):
        return [] if value is None else value
