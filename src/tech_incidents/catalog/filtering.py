"""
Filter/sort engine for incident collections.

Pure functions: nothing here mutates the incoming collection, and every
result preserves the original relative order of incidents that compare
equal.

Example:
    >>> criteria = FilterCriteria(search="mars", categories={"Software"},
    ...                           sort=SortKey.YEAR_ASC)
    >>> visible = apply_filters(incidents, criteria)
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Union

from ..constants import ALL_SENTINEL, DEFAULT_SORT, SEVERITY_ORDER
from ..exceptions import ValidationError
from ..models import Incident, SortKey

logger = logging.getLogger(__name__)

Selection = Union[str, Iterable[str], None]


def normalize_selection(selection: Selection) -> Optional[Set[str]]:
    """
    Normalize a multi-select value.

    Returns None for "everything" (the ``"all"`` sentinel, None, an empty
    selection, or any selection that contains ``"all"``), else the set of
    selected values.
    """
    if selection is None:
        return None
    if isinstance(selection, str):
        selection = [selection]
    values = {str(value) for value in selection}
    if not values or ALL_SENTINEL in values:
        return None
    return values


def parse_sort_key(value: Union[str, SortKey, None]) -> SortKey:
    """
    Resolve a sort key, falling back to the default for empty input.

    Raises:
        ValidationError: If the key is not one of the known orders
    """
    if isinstance(value, SortKey):
        return value
    if not value:
        return SortKey(DEFAULT_SORT)
    try:
        return SortKey(value)
    except ValueError:
        valid = ", ".join(key.value for key in SortKey)
        raise ValidationError(
            f"Unknown sort order '{value}'. Expected one of: {valid}"
        )


def matches_search(incident: Incident, query: str) -> bool:
    """Case-insensitive substring match against name and description."""
    needle = (query or "").strip().casefold()
    if not needle:
        return True
    if incident.name and needle in incident.name.casefold():
        return True
    if incident.description and needle in incident.description.casefold():
        return True
    return False


def matches_category(incident: Incident, categories: Optional[Set[str]]) -> bool:
    if categories is None:
        return True
    return incident.category is not None and incident.category in categories


def matches_year(incident: Incident, years: Optional[Set[str]]) -> bool:
    if years is None:
        return True
    year = incident.year
    return year is not None and str(year) in years


def severity_rank(severity: Optional[str]) -> Optional[int]:
    """Ordinal of a severity (Low=1 .. Critical=4), None when unknown."""
    if severity is None:
        return None
    return SEVERITY_ORDER.get(severity)


def _sort_value(incident: Incident, sort_field: str):
    if sort_field == "year":
        return incident.year
    if sort_field == "severity":
        return severity_rank(incident.severity)
    return incident.name.casefold()


def sort_incidents(
    incidents: Sequence[Incident],
    sort_key: Union[str, SortKey, None] = None,
) -> List[Incident]:
    """
    Sort incidents by one of the six sort orders.

    Incidents without a usable sort value (no parseable date for year
    orders, an unknown severity for severity orders) are placed after all
    others regardless of direction, in their original order.

    Args:
        incidents: Collection to sort
        sort_key: Sort order, e.g. "year-desc" (default) or a SortKey

    Returns:
        New sorted list
    """
    key = parse_sort_key(sort_key)

    ranked = []
    unranked = []
    for incident in incidents:
        value = _sort_value(incident, key.field)
        if value is None:
            unranked.append(incident)
        else:
            ranked.append((value, incident))

    # sorted() is stable for reverse=True as well
    ranked.sort(key=lambda pair: pair[0], reverse=key.descending)
    return [incident for _, incident in ranked] + unranked


def filter_incidents(
    incidents: Sequence[Incident],
    search: str = "",
    categories: Selection = ALL_SENTINEL,
    years: Selection = ALL_SENTINEL,
) -> List[Incident]:
    """
    Keep incidents matching the search text, category and year selections.

    Args:
        incidents: Collection to filter
        search: Substring to look for in name or description
        categories: Category names, or "all"
        years: Year strings such as "1996", or "all"

    Returns:
        Matching incidents in their original order
    """
    category_set = normalize_selection(categories)
    year_set = normalize_selection(years)

    return [
        incident
        for incident in incidents
        if incident is not None
        and matches_category(incident, category_set)
        and matches_year(incident, year_set)
        and matches_search(incident, search)
    ]


@dataclass
class FilterCriteria:
    """
    Everything the catalog filter bar can select.

    Attributes:
        search: Free-text search
        categories: Selected categories, or "all"
        years: Selected years, or "all"
        sort: Sort order
    """
    search: str = ""
    categories: Selection = ALL_SENTINEL
    years: Selection = ALL_SENTINEL
    sort: Union[str, SortKey] = DEFAULT_SORT

    def is_default(self) -> bool:
        return (
            not self.search.strip()
            and normalize_selection(self.categories) is None
            and normalize_selection(self.years) is None
        )


def apply_filters(incidents: Sequence[Incident], criteria: FilterCriteria) -> List[Incident]:
    """Filter, then sort, a collection according to ``criteria``."""
    filtered = filter_incidents(
        incidents,
        search=criteria.search,
        categories=criteria.categories,
        years=criteria.years,
    )
    result = sort_incidents(filtered, criteria.sort)
    logger.debug(
        f"Filtered {len(incidents)} incidents down to {len(result)} "
        f"(sort={parse_sort_key(criteria.sort).value})"
    )
    return result


def available_categories(incidents: Iterable[Incident]) -> List[str]:
    """Distinct categories present in a collection, alphabetically."""
    return sorted(
        {incident.category for incident in incidents if incident.category},
        key=str.casefold,
    )


def available_years(incidents: Iterable[Incident]) -> List[int]:
    """Distinct years present in a collection, ascending."""
    return sorted({incident.year for incident in incidents if incident.year is not None})
