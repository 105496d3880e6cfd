"""Pydantic data models for the startup directory and scrape pipeline."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


# ---------------------------------------------------------------------------
# Directory models (Supabase rows)
# ---------------------------------------------------------------------------

class StartupEmployee(BaseModel):
    """A person attached to a startup (``startup_employees`` row)."""
    id: str = ""
    name: str = ""
    role: str | None = None
    email: str | None = None
    status: str = ""
    created_at: str | None = None
    startup_id: str = ""
    updated_at: str | None = None
    emails_sent: int = 0
    linkedin_url: str | None = None


class StartupTag(BaseModel):
    tag: str


class Startup(BaseModel):
    """A directory record with its embedded employees and tags."""
    id: str = ""
    name: str
    description: str | None = None
    website: str | None = None
    sector: str | None = None
    location: str | None = None
    funding_round: str | None = None
    funding_amount: str | None = None
    funding_date: str | None = None
    team_size: str | None = None
    logo_url: str | None = None
    is_hiring: bool | None = None
    is_trending: bool | None = None
    status: str = ""
    views_count: int = 0
    saves_count: int = 0
    created_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    slug: str = ""
    startup_employees: list[StartupEmployee] = Field(default_factory=list)
    startup_tags: list[StartupTag] = Field(default_factory=list)

    @field_validator("startup_employees", "startup_tags", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v

    @field_validator("funding_amount", "team_size", mode="before")
    @classmethod
    def coerce_to_str(cls, v):
        if v is not None:
            return str(v)
        return v

    @property
    def tag_names(self) -> list[str]:
        return [t.tag for t in self.startup_tags]


# ---------------------------------------------------------------------------
# Scrape results
# ---------------------------------------------------------------------------

class ScrapeOutcome(BaseModel):
    """Per-target result of one scrape attempt.

    ``content`` is empty on any failure; ``error`` is set exactly when the
    content could not be obtained.
    """
    name: str
    website: str
    content: str = ""
    employees: list[StartupEmployee] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    sector: str | None = None
    location: str | None = None
    funding_round: str | None = None
    funding_amount: str | None = None
    error: str | None = None

    @classmethod
    def for_startup(
        cls, startup: Startup, content: str = "", error: str | None = None,
    ) -> ScrapeOutcome:
        return cls(
            name=startup.name,
            website=startup.website or "",
            content=content,
            employees=startup.startup_employees,
            tags=startup.tag_names,
            sector=startup.sector,
            location=startup.location,
            funding_round=startup.funding_round,
            funding_amount=startup.funding_amount,
            error=error,
        )

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict; ``error`` is omitted when there is none."""
        data = self.model_dump(mode="json")
        if data["error"] is None:
            del data["error"]
        return data


# ---------------------------------------------------------------------------
# Progress stream events
# ---------------------------------------------------------------------------

class _Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class InitEvent(_Event):
    type: Literal["init"] = "init"
    total: int
    skipped: int


class ProgressEvent(_Event):
    type: Literal["progress"] = "progress"
    index: int
    total: int
    name: str
    success: bool
    content_length: int | None = Field(default=None, alias="contentLength")
    error: str | None = None


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str


class DoneEvent(_Event):
    type: Literal["done"] = "done"
    results: list[ScrapeOutcome] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "results": [r.to_payload() for r in self.results]}


ScrapeEvent = Annotated[
    Union[InitEvent, ProgressEvent, ErrorEvent, DoneEvent],
    Field(discriminator="type"),
]

scrape_event_adapter: TypeAdapter[ScrapeEvent] = TypeAdapter(ScrapeEvent)
