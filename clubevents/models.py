import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class PipelineError(Exception):
    """Base class for errors raised by the ingestion pipeline."""


class InvalidUrlError(PipelineError):
    """A club URL that cannot be classified (no http(s) scheme or host)."""


class FetchError(PipelineError):
    """The renderer could not load a page."""


class UrlKind(str, Enum):
    LINK_AGGREGATOR = "link_aggregator"
    """Links-in-bio landing page whose content is outbound links."""

    SITE_SPECIFIC = "site_specific"
    """Known site layout with a deterministic extractor in ``clubevents.sites``."""

    GENERIC = "generic"
    """Any other page: sanitize and send to the LLM."""

    INVALID = "invalid"
    """Malformed URL, skipped."""


class UrlClassification(BaseModel):
    kind: UrlKind
    site_id: Optional[str] = None


class Club(BaseModel):
    """A club whose websites are crawled for events."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    image_url: str = Field(
        "", description="Default banner image, used when an event has no image"
    )
    urls: list[str] = Field(default_factory=list)
    last_checked: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Club":
        """
        Build a Club from a raw ``clubs`` document, accepting legacy keys.

        Hand-edited documents are tolerated: non-string URL entries are dropped,
        a single URL string becomes a one-element list, and a non-string banner
        or name is ignored.
        """
        image_url = next(
            (
                value
                for value in (doc.get("image_url"), doc.get("image"), doc.get("banner"))
                if isinstance(value, str) and value
            ),
            "",
        )

        urls = doc.get("urls") or doc.get("URLS") or []
        if isinstance(urls, str):
            urls = [urls]
        elif not isinstance(urls, list):
            urls = []

        name = doc.get("name")
        last_checked = doc.get("last_checked")
        return cls(
            id=str(doc.get("_id", doc.get("id", ""))),
            name=name if isinstance(name, str) else None,
            image_url=image_url,
            urls=[url for url in urls if isinstance(url, str)],
            last_checked=last_checked if isinstance(last_checked, datetime) else None,
        )


class ClubPolicy(BaseModel):
    """Per-club normalization flags."""

    force_default_image: bool = False


class RawEvent(BaseModel):
    """Untrusted event object as returned by the LLM. Every field may be missing."""

    model_config = ConfigDict(extra="ignore")

    title: Any = None
    startDate: Any = None
    endDate: Any = None
    description: Any = None
    eventURL: Any = None
    image: Any = None


class Event(BaseModel):
    """A normalized event attributed to one club."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(..., min_length=1)
    start_date: str = Field(..., alias="startDate", description="ISO date YYYY-MM-DD")
    end_date: Optional[str] = Field(None, alias="endDate")
    description: str = ""
    event_url: str = Field("", alias="eventURL")
    image: str = ""
    club_id: str = Field(..., alias="clubID")

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title is blank")
        return v

    @field_validator("start_date")
    @classmethod
    def _start_date_iso(cls, v: str) -> str:
        if not ISO_DATE_RE.match(v):
            raise ValueError(f"startDate is not YYYY-MM-DD: {v!r}")
        return v

    @field_validator("end_date")
    @classmethod
    def _end_date_iso(cls, v: Optional[str]) -> Optional[str]:
        # A bad end date is not worth losing the event over
        if v is not None and not ISO_DATE_RE.match(v):
            return None
        return v

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.club_id, self.title.lower())

    def to_document(self) -> dict[str, Any]:
        """Serialize with the camelCase field names used in storage and the API."""
        return self.model_dump(by_alias=True)


class UrlResult(BaseModel):
    """Outcome of processing a single URL for a club."""

    url: str
    events: list[Event] = Field(default_factory=list)
    filtered_existing: int = 0
    error: Optional[str] = None


class RunSummary(BaseModel):
    success: bool = True
    total_events: int = 0
    clubs_processed: int = 0
    events_by_club: dict[str, int] = Field(default_factory=dict)
    saved_by_club: dict[str, int] = Field(default_factory=dict)
    failed_clubs: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    message: Optional[str] = None

    def to_response(self) -> dict[str, Any]:
        """Shape returned by the ``/scrape-events`` endpoint."""
        if not self.success:
            return {"success": False, "error": self.error, "message": self.message}
        return {
            "success": True,
            "totalEvents": self.total_events,
            "clubsProcessed": self.clubs_processed,
            "eventsByClub": self.events_by_club,
        }
