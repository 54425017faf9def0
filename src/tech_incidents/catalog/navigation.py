"""
Folder navigation over the incident catalog.

The catalog is browsed like a file explorer::

    ROOT      decades shown as folders          C:\\Technology Incidents\\
    DECADE    years of one decade as folders    C:\\Technology Incidents\\1990s\\
    YEAR      incidents of one year             C:\\Technology Incidents\\1990s\\1996\\
    INCIDENT  a single incident's detail view

Opening a folder descends one level, ``back()`` ascends one level and
``navigate_to_root()`` returns to ROOT from anywhere. Opening an incident
remembers its index in the filtered collection so ``next()`` and
``previous()`` can step through it.

Selection mode is independent of the level: while it is on, clicking an
incident toggles it in the selected set instead of opening it, and turning
it off empties the set.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from ..exceptions import CatalogError, FolderNotFoundError, IncidentNotFoundError
from ..models import Incident
from .store import IncidentStore

logger = logging.getLogger(__name__)

ROOT_PATH = "C:\\Technology Incidents\\"
ROOT_TITLE = "Technology Incidents"

IncidentRef = Union[Incident, int, str]


class ViewLevel(str, Enum):
    """Navigation levels, outermost first."""
    ROOT = "root"
    DECADE = "decade"
    YEAR = "year"
    INCIDENT = "incident"


def _ref_id(ref: IncidentRef) -> str:
    return str(ref.id) if isinstance(ref, Incident) else str(ref)


@dataclass
class NavigationView:
    """Snapshot of what the explorer window should show."""
    level: ViewLevel
    path: str
    title: str
    folders: List[int] = field(default_factory=list)
    incidents: List[Incident] = field(default_factory=list)
    displayed: Optional[Incident] = None
    index: Optional[int] = None
    has_previous: bool = False
    has_next: bool = False
    selection_mode: bool = False
    selected: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "path": self.path,
            "title": self.title,
            "folders": self.folders,
            "incidents": [incident.to_dict() for incident in self.incidents],
            "displayed": self.displayed.to_dict() if self.displayed else None,
            "index": self.index,
            "has_previous": self.has_previous,
            "has_next": self.has_next,
            "selection_mode": self.selection_mode,
            "selected": list(self.selected),
        }


class NavigationState:
    """
    Explorer-style navigation state for one browsing session.

    Args:
        store: The incident store supplying the decade/year groupings
        filtered: The currently filtered (and sorted) incidents; defaults
            to the whole collection

    Example:
        >>> nav = NavigationState(store)
        >>> nav.open_folder(1990)
        >>> nav.open_folder(1996)
        >>> nav.open_incident(nav.visible_incidents()[0])
        >>> nav.next()
    """

    def __init__(self, store: IncidentStore, filtered: Optional[Sequence[Incident]] = None):
        self.store = store
        self._filtered: List[Incident] = list(store.incidents if filtered is None else filtered)

        self.level = ViewLevel.ROOT
        self.current_decade: Optional[int] = None
        self.current_year: Optional[int] = None
        self.displayed_incident: Optional[Incident] = None
        self.current_index: Optional[int] = None

        self.selection_mode = False
        self.selected: List[str] = []
        self.last_clicked_index: Optional[int] = None

    # Filtered collection

    @property
    def filtered(self) -> List[Incident]:
        return list(self._filtered)

    def set_filtered(self, filtered: Sequence[Incident]) -> None:
        """
        Swap in a new filtered collection (after a search/filter/sort change).

        The displayed incident stays displayed; its index is recomputed and
        becomes None if the new collection no longer contains it.
        """
        self._filtered = list(filtered)
        if self.displayed_incident is not None:
            index = self._index_in_filtered(self.displayed_incident.id)
            self.current_index = index if index >= 0 else None

    def _index_in_filtered(self, incident_id) -> int:
        for index, incident in enumerate(self._filtered):
            if str(incident.id) == str(incident_id):
                return index
        return -1

    def _filtered_ids(self) -> set:
        return {str(incident.id) for incident in self._filtered}

    # Visible items

    def visible_decades(self) -> List[int]:
        """Decade folders containing at least one filtered incident."""
        ids = self._filtered_ids()
        return [
            decade
            for decade in self.store.decades()
            if any(str(incident.id) in ids for incident in self.store.incidents_in_decade(decade))
        ]

    def visible_years(self, decade: Optional[int] = None) -> List[int]:
        """Year folders of a decade (default: current) with filtered incidents."""
        decade = self.current_decade if decade is None else decade
        if decade is None:
            return []
        ids = self._filtered_ids()
        return [
            year
            for year in self.store.years_in_decade(decade)
            if any(str(incident.id) in ids for incident in self.store.incidents_in_year(year))
        ]

    def visible_incidents(self) -> List[Incident]:
        """Filtered incidents of the current year, in filtered order."""
        if self.current_year is None:
            return []
        return [
            incident
            for incident in self._filtered
            if incident.year == self.current_year
        ]

    # Transitions

    def open_folder(self, key: int) -> ViewLevel:
        """
        Descend into a decade (from ROOT) or a year (from DECADE).

        Raises:
            FolderNotFoundError: If the folder is not in the grouping
            CatalogError: If the current level has no folders
        """
        key = int(key)
        if self.level == ViewLevel.ROOT:
            if key not in self.store.by_decade:
                raise FolderNotFoundError(f"No incidents from the {key}s")
            self.current_decade = key
            self.current_year = None
            self.level = ViewLevel.DECADE
        elif self.level == ViewLevel.DECADE:
            if key not in self.store.years_in_decade(self.current_decade):
                raise FolderNotFoundError(
                    f"No incidents from {key} in the {self.current_decade}s"
                )
            self.current_year = key
            self.level = ViewLevel.YEAR
        else:
            raise CatalogError(f"There are no folders to open at the {self.level.value} level")

        logger.debug(f"Opened folder {key}, now at {self.level.value}")
        return self.level

    def open_incident(self, ref: IncidentRef) -> Incident:
        """
        Show an incident's detail view.

        Raises:
            IncidentNotFoundError: If the incident is not in the filtered collection
        """
        index = self._index_in_filtered(_ref_id(ref))
        if index < 0:
            raise IncidentNotFoundError(f"Incident '{_ref_id(ref)}' is not in the current view")
        self._display(index)
        return self.displayed_incident

    def _display(self, index: int) -> None:
        incident = self._filtered[index]
        self.current_index = index
        self.displayed_incident = incident
        self.level = ViewLevel.INCIDENT
        if incident.year is not None:
            self.current_year = incident.year
            self.current_decade = incident.decade
        else:
            logger.warning(f"Incident has no date: {incident.id}")

    def go_to_index(self, index: int) -> Optional[Incident]:
        """
        Display the incident at ``index`` of the filtered collection.

        Out-of-range indices are ignored; the current incident is returned.
        """
        if not self._filtered:
            logger.warning("Cannot navigate: no incidents in the current view")
            return self.displayed_incident
        if index < 0 or index >= len(self._filtered):
            logger.warning(
                f"Invalid index: {index}. Valid range is 0-{len(self._filtered) - 1}"
            )
            return self.displayed_incident
        self._display(index)
        return self.displayed_incident

    def next(self) -> Optional[Incident]:
        if self.current_index is None:
            return self.displayed_incident
        return self.go_to_index(self.current_index + 1)

    def previous(self) -> Optional[Incident]:
        if self.current_index is None:
            return self.displayed_incident
        return self.go_to_index(self.current_index - 1)

    def has_next(self) -> bool:
        return self.current_index is not None and self.current_index < len(self._filtered) - 1

    def has_previous(self) -> bool:
        return self.current_index is not None and self.current_index > 0

    def back(self) -> ViewLevel:
        """Ascend one level."""
        if self.level == ViewLevel.INCIDENT:
            self.displayed_incident = None
            self.current_index = None
            if self.current_year is not None:
                self.level = ViewLevel.YEAR
            elif self.current_decade is not None:
                self.level = ViewLevel.DECADE
            else:
                self.level = ViewLevel.ROOT
        elif self.level == ViewLevel.YEAR:
            self.current_year = None
            self.level = ViewLevel.DECADE
        elif self.level == ViewLevel.DECADE:
            self.current_decade = None
            self.level = ViewLevel.ROOT
        return self.level

    def navigate_to_root(self) -> None:
        """Return to ROOT and clear the selection."""
        self.level = ViewLevel.ROOT
        self.current_decade = None
        self.current_year = None
        self.displayed_incident = None
        self.current_index = None
        self.selected = []
        self.last_clicked_index = None

    # Selection

    def toggle_selection_mode(self) -> bool:
        """Flip selection mode; leaving it empties the selected set."""
        self.selection_mode = not self.selection_mode
        if not self.selection_mode:
            self.selected = []
            self.last_clicked_index = None
        return self.selection_mode

    def toggle_selected(self, ref: IncidentRef) -> bool:
        """Add or remove an incident from the selected set; True if now selected."""
        incident_id = _ref_id(ref)
        if incident_id in self.selected:
            self.selected.remove(incident_id)
            return False
        self.selected.append(incident_id)
        return True

    def select_range(self, index: int) -> List[str]:
        """
        Select every visible incident between the last clicked one and ``index``.

        Without a previous click only the incident at ``index`` is selected.
        """
        visible = self.visible_incidents()
        if not 0 <= index < len(visible):
            raise IncidentNotFoundError(f"No visible incident at position {index}")
        if self.last_clicked_index is None or self.last_clicked_index >= len(visible):
            start = end = index
        else:
            start, end = sorted((self.last_clicked_index, index))
        self.selected = [str(incident.id) for incident in visible[start:end + 1]]
        return list(self.selected)

    def click_incident(self, ref: IncidentRef, shift: bool = False) -> Optional[Incident]:
        """
        Handle a click on an incident.

        In selection mode the click toggles membership (or, with shift,
        selects a range); otherwise the incident is opened.
        """
        if not self.selection_mode:
            return self.open_incident(ref)

        incident_id = _ref_id(ref)
        visible_ids = [str(incident.id) for incident in self.visible_incidents()]
        position = visible_ids.index(incident_id) if incident_id in visible_ids else None

        if shift and position is not None:
            self.select_range(position)
        else:
            self.toggle_selected(incident_id)
        if position is not None:
            self.last_clicked_index = position
        return None

    def selected_incidents(self) -> List[Incident]:
        """Selected incidents, in selection order."""
        by_id = {str(incident.id): incident for incident in self.store.incidents}
        return [by_id[i] for i in self.selected if i in by_id]

    # View model

    @property
    def path(self) -> str:
        path = ROOT_PATH
        if self.current_decade is not None:
            path += f"{self.current_decade}s\\"
        if self.current_year is not None and self.level in (ViewLevel.YEAR, ViewLevel.INCIDENT):
            path += f"{self.current_year}\\"
        return path

    @property
    def title(self) -> str:
        if self.level == ViewLevel.INCIDENT and self.displayed_incident is not None:
            return f"{ROOT_TITLE} - {self.displayed_incident.name}"
        if self.current_decade is not None:
            return f"{ROOT_TITLE} - {self.current_decade}s"
        return ROOT_TITLE

    def view(self) -> NavigationView:
        """Build the view model for the current level."""
        folders: List[int] = []
        incidents: List[Incident] = []
        if self.level == ViewLevel.ROOT:
            folders = self.visible_decades()
        elif self.level == ViewLevel.DECADE:
            folders = self.visible_years()
        elif self.level == ViewLevel.YEAR:
            incidents = self.visible_incidents()

        return NavigationView(
            level=self.level,
            path=self.path,
            title=self.title,
            folders=folders,
            incidents=incidents,
            displayed=self.displayed_incident,
            index=self.current_index,
            has_previous=self.has_previous(),
            has_next=self.has_next(),
            selection_mode=self.selection_mode,
            selected=list(self.selected),
        )
