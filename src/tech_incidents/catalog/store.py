"""
In-memory incident store.

Holds the flat incident list as fetched from the backend and the
groupings derived from it (incidents by decade, and by year within a
decade). The groupings are rebuilt every time the list is replaced; the
store never edits records itself.
"""
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import IncidentNotFoundError, ValidationError
from ..models import Incident
from .slugs import find_incident_by_slug

logger = logging.getLogger(__name__)

IncidentLike = Union[Incident, Mapping[str, Any]]


def coerce_incident(record: IncidentLike, position: Optional[int] = None) -> Incident:
    """
    Turn a raw backend record into an Incident.

    Raises:
        ValidationError: If the record lacks an id or a name
    """
    if isinstance(record, Incident):
        return record
    try:
        return Incident.model_validate(dict(record))
    except (PydanticValidationError, TypeError, ValueError) as e:
        where = f" at position {position}" if position is not None else ""
        raise ValidationError(f"Invalid incident record{where}: {e}") from e


def group_by_decade(incidents: Iterable[Incident]) -> Dict[int, List[Incident]]:
    """
    Group incidents by decade, keeping collection order inside each group.

    Incidents without a parseable date are left out.
    """
    grouped: Dict[int, List[Incident]] = {}
    for incident in incidents:
        decade = incident.decade
        if decade is None:
            continue
        grouped.setdefault(decade, []).append(incident)
    return dict(sorted(grouped.items()))


def group_by_year(incidents: Iterable[Incident]) -> Dict[int, List[Incident]]:
    """Group dated incidents by year, ascending."""
    grouped: Dict[int, List[Incident]] = {}
    for incident in incidents:
        year = incident.year
        if year is None:
            continue
        grouped.setdefault(year, []).append(incident)
    return dict(sorted(grouped.items()))


class IncidentStore:
    """
    The incident collection plus its decade/year groupings.

    Example:
        >>> store = IncidentStore(records)
        >>> store.decades()
        [1980, 1990, 2000]
        >>> store.years_in_decade(1990)
        [1996, 1999]
    """

    def __init__(self, records: Iterable[IncidentLike] = ()):
        self._incidents: Tuple[Incident, ...] = ()
        self._by_decade: Dict[int, List[Incident]] = {}
        self._by_year: Dict[int, List[Incident]] = {}
        self.replace(records)

    def replace(self, records: Iterable[IncidentLike]) -> None:
        """
        Replace the whole collection and rebuild the groupings.

        Raises:
            ValidationError: If a record is malformed or an id repeats
        """
        incidents = [coerce_incident(record, i) for i, record in enumerate(records)]

        seen: Dict[str, int] = {}
        for i, incident in enumerate(incidents):
            key = str(incident.id)
            if key in seen:
                raise ValidationError(
                    f"Duplicate incident id '{key}' at positions {seen[key]} and {i}"
                )
            seen[key] = i

        self._incidents = tuple(incidents)
        self._by_decade = group_by_decade(self._incidents)
        self._by_year = group_by_year(self._incidents)

        logger.info(
            f"Loaded {len(self._incidents)} incidents across "
            f"{len(self._by_decade)} decades ({len(self.undated())} undated)"
        )

    @property
    def incidents(self) -> Tuple[Incident, ...]:
        return self._incidents

    @property
    def by_decade(self) -> Dict[int, List[Incident]]:
        return self._by_decade

    def __len__(self) -> int:
        return len(self._incidents)

    def __iter__(self) -> Iterator[Incident]:
        return iter(self._incidents)

    def __contains__(self, incident_id: object) -> bool:
        return any(str(i.id) == str(incident_id) for i in self._incidents)

    def decades(self) -> List[int]:
        """Decades that contain at least one incident, ascending."""
        return list(self._by_decade)

    def years_in_decade(self, decade: int) -> List[int]:
        """Years inside ``decade`` that contain incidents, ascending."""
        return [year for year in self._by_year if decade <= year < decade + 10]

    def incidents_in_decade(self, decade: int) -> List[Incident]:
        return list(self._by_decade.get(decade, []))

    def incidents_in_year(self, year: int) -> List[Incident]:
        return list(self._by_year.get(year, []))

    def undated(self) -> List[Incident]:
        """Incidents whose date is missing or malformed."""
        return [incident for incident in self._incidents if incident.year is None]

    def get(self, incident_id: Union[int, str]) -> Incident:
        """
        Look up an incident by id.

        Raises:
            IncidentNotFoundError: If no incident has that id
        """
        for incident in self._incidents:
            if str(incident.id) == str(incident_id):
                return incident
        raise IncidentNotFoundError(f"Incident '{incident_id}' not found")

    def index_of(self, incident_id: Union[int, str]) -> int:
        """Position of an incident in the collection, or -1."""
        for index, incident in enumerate(self._incidents):
            if str(incident.id) == str(incident_id):
                return index
        return -1

    def find(self, reference: Union[int, str]) -> Incident:
        """
        Resolve an id or a slug to an incident.

        Raises:
            IncidentNotFoundError: If neither matches
        """
        try:
            return self.get(reference)
        except IncidentNotFoundError:
            incident = find_incident_by_slug(self._incidents, str(reference))
            if incident is None:
                raise
            return incident

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [incident.to_dict() for incident in self._incidents]
