"""
Data models for the Tech Incidents catalog using Pydantic for validation.
"""
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .constants import UNKNOWN_LABEL
from .dates import decade_of, get_year


class Severity(str, Enum):
    """Incident severity levels, lowest first."""
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"


class SortKey(str, Enum):
    """Sort orders understood by the filter/sort engine."""
    YEAR_ASC = "year-asc"
    YEAR_DESC = "year-desc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    SEVERITY_ASC = "severity-asc"
    SEVERITY_DESC = "severity-desc"

    @property
    def field(self) -> str:
        """Incident attribute this key orders by ('year', 'name', 'severity')."""
        return self.value.split("-", 1)[0]

    @property
    def descending(self) -> bool:
        return self.value.endswith("-desc")


class ArtifactType(str, Enum):
    """Kind of artifact attached to an incident exhibit."""
    CODE = "code"
    IMAGE = "image"


class Incident(BaseModel):
    """
    A single cataloged technology-failure record.

    Only ``id`` and ``name`` are required. Every other field may be absent;
    absent fields render as "Unknown" through :meth:`display`. Fields the
    backend adds beyond these are kept and relayed unchanged.

    Attributes:
        id: Unique identifier (string or number, as the backend issues it)
        name: Incident name
        category: Category such as "Software" or "Hardware"
        severity: One of Low/Moderate/High/Critical, or anything else (Unknown)
        incident_date: ISO date string (YYYY-MM-DD or full timestamp)
        description: Free-text description
        cause: What caused the incident
        consequences: What happened as a result
        time_to_resolve: How long recovery took
        artifactType: "code" or "image"
        artifactContent: Code listing or image URL
    """
    model_config = ConfigDict(extra="allow")

    id: Union[int, str]
    name: str
    category: Optional[str] = None
    severity: Optional[str] = None
    incident_date: Optional[str] = None
    description: Optional[str] = None
    cause: Optional[str] = None
    consequences: Optional[str] = None
    time_to_resolve: Optional[str] = None
    artifactType: Optional[str] = None
    artifactContent: Optional[str] = None

    @field_validator("severity")
    @classmethod
    def normalize_severity(cls, v: Optional[str]) -> Optional[str]:
        """Normalize known severities to their canonical capitalization.

        Example:
            >>> Incident(id=1, name="x", severity="critical").severity
            'Critical'
            >>> Incident(id=1, name="x", severity="Catastrophic").severity
            'Catastrophic'
        """
        if v is None:
            return None
        stripped = v.strip()
        for level in Severity:
            if stripped.lower() == level.value.lower():
                return level.value
        return stripped or None

    @field_validator("incident_date", mode="before")
    @classmethod
    def coerce_incident_date(cls, v: Any) -> Optional[str]:
        """Keep dates as strings; blank values become None."""
        if v is None:
            return None
        if hasattr(v, "isoformat"):
            return v.isoformat()
        text = str(v).strip()
        return text or None

    @property
    def year(self) -> Optional[int]:
        """Year of ``incident_date``, or None when missing or malformed."""
        return get_year(self.incident_date)

    @property
    def decade(self) -> Optional[int]:
        return decade_of(self.year)

    def display(self, field: str) -> str:
        """Return a field for rendering, substituting "Unknown" when absent."""
        value = getattr(self, field, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            return UNKNOWN_LABEL
        return str(value)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON responses, extra backend fields included."""
        return self.model_dump(mode="json")
