"""
Read-only catalog routes: filtered listing, folder browsing and incident
detail.

These routes are stateless: each request fetches the collection, rebuilds
the store and replays the navigation from the query parameters.
"""
import logging
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request

from ..catalog import (
    FilterCriteria,
    IncidentStore,
    NavigationState,
    apply_filters,
    decade_label,
    generate_slug,
    resolve_theme,
)
from ..catalog.filtering import available_categories, available_years, parse_sort_key
from ..constants import ALL_SENTINEL
from ..dates import decade_of
from ..exceptions import BackendError, ValidationError
from ..metrics import track_incidents_loaded
from ..models import Incident
from ..session import get_state

logger = logging.getLogger(__name__)


def load_store() -> IncidentStore:
    """
    Fetch the collection from the backend into a fresh store.

    Raises:
        BackendError: If the backend returned records the store rejects
    """
    records = get_state(current_app).backend.fetch_incidents()
    track_incidents_loaded(len(records))
    try:
        return IncidentStore(records)
    except ValidationError as e:
        logger.error(f"Backend returned an invalid incident collection: {e}")
        raise BackendError(
            "The incident service returned invalid data",
            status=502,
            error_type="service_unavailable",
        ) from e


def criteria_from_args(args, year_filter: bool = True) -> FilterCriteria:
    """
    Build filter criteria from query parameters.

    ``category`` and ``year`` may repeat; absent means all. With
    ``year_filter`` off, ``year`` is left to the caller.
    """
    default_sort = get_state(current_app).config.default_sort
    years = args.getlist("year") if year_filter else []
    return FilterCriteria(
        search=args.get("search", ""),
        categories=args.getlist("category") or ALL_SENTINEL,
        years=years or ALL_SENTINEL,
        sort=parse_sort_key(args.get("sort") or default_sort),
    )


def _int_arg(args, name: str) -> Optional[int]:
    raw = args.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"'{name}' must be a number, got '{raw}'")


def _neighbour(incident: Optional[Incident]) -> Optional[Dict[str, Any]]:
    if incident is None:
        return None
    return {"id": incident.id, "name": incident.name, "slug": generate_slug(incident.name)}


def register_catalog_routes(app: Flask) -> None:
    """Attach the catalog listing and browsing routes to ``app``."""

    @app.route('/api/catalog', methods=['GET'])
    def catalog():
        """Filtered and sorted listing plus the filter bar's choices."""
        store = load_store()
        criteria = criteria_from_args(request.args)
        incidents = apply_filters(store.incidents, criteria)

        return jsonify({
            "incidents": [incident.to_dict() for incident in incidents],
            "count": len(incidents),
            "total": len(store),
            "sort": parse_sort_key(criteria.sort).value,
            "categories": available_categories(store.incidents),
            "years": available_years(store.incidents),
            "decades": store.decades(),
            "undated": len(store.undated()),
        })

    @app.route('/api/catalog/browse', methods=['GET'])
    def browse():
        """
        Explorer view for a folder or an incident.

        Query parameters ``decade`` and ``year`` open folders (a year alone
        implies its decade); ``incident`` (id or slug) opens a detail view.
        Filter parameters restrict what is visible.
        """
        store = load_store()
        criteria = criteria_from_args(request.args, year_filter=False)
        nav = NavigationState(store, apply_filters(store.incidents, criteria))

        decade = _int_arg(request.args, "decade")
        year = _int_arg(request.args, "year")
        reference = request.args.get("incident")

        if reference:
            nav.open_incident(store.find(reference))
        else:
            if year is not None and decade is None:
                decade = decade_of(year)
            if decade is not None:
                nav.open_folder(decade)
            if year is not None:
                nav.open_folder(year)

        view = nav.view().to_dict()
        if nav.displayed_incident is not None:
            view["theme"] = resolve_theme(nav.displayed_incident).to_dict()
        return jsonify(view)

    @app.route('/api/incidents/<reference>', methods=['GET'])
    def incident_detail(reference: str):
        """One incident with its era theme and previous/next neighbours."""
        store = load_store()
        incident = store.find(reference)
        filtered = apply_filters(store.incidents, criteria_from_args(request.args))

        nav = NavigationState(store, filtered)
        previous = following = None
        if any(str(item.id) == str(incident.id) for item in filtered):
            nav.open_incident(incident)
            if nav.has_previous():
                previous = filtered[nav.current_index - 1]
            if nav.has_next():
                following = filtered[nav.current_index + 1]
        else:
            logger.debug(f"Incident {incident.id} is hidden by the current filters")
        index = nav.current_index

        logger.debug(f"Detail view for incident {incident.id} at index {index}")
        return jsonify({
            "incident": incident.to_dict(),
            "slug": generate_slug(incident.name),
            "decade": decade_label(incident),
            "theme": resolve_theme(incident).to_dict(),
            "index": index,
            "count": len(filtered),
            "previous": _neighbour(previous),
            "next": _neighbour(following),
        })
