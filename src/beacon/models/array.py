"""Pydantic models for The Array HTTP API."""

from pydantic import BaseModel, Field


class ArrayStatus(BaseModel):
    """Snapshot of backend health returned by /api/v1/status."""

    status: str = Field(..., description="Service status string")
    version: str = Field(..., description="Backend version")
    hostname: str = Field(..., description="Host serving the request")
    uptime_seconds: float = Field(..., description="Process uptime")

    model_config = {"frozen": True}


class IngestRequest(BaseModel):
    """One artifact to be archived by The Array.

    source_type is an open set: "note", "voice_note", "session_trace",
    "url", "pdf", ...
    """

    source_type: str = Field(default="note")
    title: str
    content: str | None = None
    summary: str | None = None
    source_url: str | None = None
    device: str = Field(default="beacon")
    tags: list[str] | None = None

    model_config = {"frozen": True}

    def to_payload(self) -> dict:
        """JSON body for POST /api/v1/ingest, omitting unset optionals."""
        return self.model_dump(exclude_none=True)


class IngestResponse(BaseModel):
    """Outcome of an ingest call.

    success=False is a normal response; it is not raised as an error.
    """

    success: bool
    message: str
    file_path: str | None = None
    item_id: str | None = None

    model_config = {"frozen": True}


class QueueItem(BaseModel):
    """A pending or recently archived item. Identity is the file name."""

    file: str
    title: str
    source_type: str
    captured_at: str = Field(..., description="ISO-8601 capture time")
    device: str | None = None
    status: str | None = None

    model_config = {"frozen": True}

    @property
    def id(self) -> str:
        return self.file


class QueueResponse(BaseModel):
    """Snapshot listing of the ingest queue (no pagination)."""

    count: int
    items: list[QueueItem] = Field(default_factory=list)

    model_config = {"frozen": True}
