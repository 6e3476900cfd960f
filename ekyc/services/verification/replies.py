"""
Service reply models.

Remote services answer with loosely typed JSON. Replies are validated here and
their string status is parsed into the closed ``ServiceStatus`` enum; any
value outside it becomes UNKNOWN instead of an error.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServiceStatus(StrEnum):
    PASS = "PASS"
    FAIL = "FAIL"
    CLEAR = "CLEAR"
    HIT = "HIT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> "ServiceStatus":
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.UNKNOWN


class SanctionsMatch(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = "Unknown"
    list_name: str = Field(default="Unknown List", alias="list")

    @field_validator("name", "list_name", mode="before")
    @classmethod
    def _stringify(cls, value, info):
        if value is None:
            return cls.model_fields[info.field_name].default
        return value if isinstance(value, str) else str(value)

    def describe(self) -> str:
        return f"Match found: {self.name} on {self.list_name}"


class ServiceReply(BaseModel):
    """Union of the fields the four verification services report."""

    model_config = ConfigDict(extra="ignore")

    status: str | None = None
    confidence: float = Field(default=0, ge=0, le=100)
    similarity_score: float = Field(default=0, ge=0, le=100)
    reasons: list[str] = Field(default_factory=list)
    match_count: int = Field(default=0, ge=0)
    matches: list[SanctionsMatch | str] = Field(default_factory=list)

    # Detail fields accept any shape; only status and scores can invalidate a reply
    @field_validator("status", mode="before")
    @classmethod
    def _status_text(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("reasons", mode="before")
    @classmethod
    def _reason_list(cls, value):
        if not isinstance(value, list):
            return []
        return [item if isinstance(item, str) else str(item) for item in value if item is not None]

    @field_validator("match_count", mode="before")
    @classmethod
    def _match_count(cls, value):
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            return 0

    @field_validator("matches", mode="before")
    @classmethod
    def _match_list(cls, value):
        if not isinstance(value, list):
            return []
        return [
            item if isinstance(item, (dict, str)) else str(item)
            for item in value
            if item is not None
        ]

    @property
    def service_status(self) -> ServiceStatus:
        return ServiceStatus.parse(self.status)

    @property
    def confidence_score(self) -> int:
        return int(self.confidence)

    @property
    def similarity(self) -> int:
        return int(self.similarity_score)

    def match_reasons(self) -> list[str]:
        return [
            match.describe() if isinstance(match, SanctionsMatch) else f"Match: {match}"
            for match in self.matches
        ]


def parse_reply(body: str | bytes | None) -> ServiceReply:
    """
    Validate a reply body.

    Raises:
        ValueError: Body is empty, not a JSON object, or out of range
            (pydantic's ValidationError is a ValueError)
    """
    if not body:
        raise ValueError("Empty response body")
    return ServiceReply.model_validate_json(body)
