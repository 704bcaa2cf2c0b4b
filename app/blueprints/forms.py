"""Request parsing shared by the customer and ticket form endpoints."""
import json
from typing import Any, Dict, List, Optional

from flask import request

from app.exceptions import BusinessLogicError
from app.services.location_service import PlaceResult


def form_text(name: str) -> str:
    return request.form.get(name, '').strip()


def form_id_list(name: str) -> List[int]:
    """Integer ids posted as repeated fields or a comma separated value."""
    ids = []
    for raw in request.form.getlist(name):
        for part in raw.split(','):
            part = part.strip()
            if part.isdigit():
                ids.append(int(part))
    return ids


def form_optional_id(name: str) -> Optional[int]:
    raw = form_text(name)
    return int(raw) if raw.isdigit() else None


def _place_from_dict(data: Dict[str, Any]) -> PlaceResult:
    try:
        return PlaceResult(
            name=str(data.get('name') or '').strip(),
            latitude=float(data['latitude']),
            longitude=float(data['longitude']),
            address=str(data.get('address') or ''),
        )
    except (KeyError, TypeError, ValueError):
        raise BusinessLogicError('Invalid location: name, latitude and longitude are required')


def form_places(name: str) -> List[PlaceResult]:
    """Picked places posted as a JSON object or list of objects."""
    raw = form_text(name)
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        raise BusinessLogicError(f"Field '{name}' must be valid JSON")
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise BusinessLogicError(f"Field '{name}' must be a JSON object or list")
    places = [_place_from_dict(item if isinstance(item, dict) else {}) for item in data]
    for place in places:
        if not place.name:
            raise BusinessLogicError('Location name is required')
    return places


def uploaded_files():
    return [f for f in request.files.getlist('files') if f and f.filename is not None]
