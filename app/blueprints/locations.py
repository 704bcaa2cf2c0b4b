from flask import Blueprint, request, current_app
from typing import Any, Dict, Optional
from app.exceptions import BusinessLogicError
from app.services.location_service import get_location_search_service, RegionHint


locations_bp = Blueprint('locations', __name__, url_prefix='/locations')


def _region_from_args() -> Optional[RegionHint]:
    """Region hint from ?lat=&lon=[&span=]; None uses the configured default."""
    lat = request.args.get('lat', type=float)
    lon = request.args.get('lon', type=float)
    if lat is None or lon is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise BusinessLogicError('Invalid coordinates')
    span = request.args.get('span', type=float) or current_app.config['LOCATION_DEFAULT_REGION'][2]
    return (lat, lon, span, span)


@locations_bp.route('/search')
def search() -> Dict[str, Any]:
    """Search places for the location picker (empty list on any failure)."""
    query = request.args.get('q', '').strip()
    if not query:
        return {'query': query, 'results': []}

    places = get_location_search_service().search(query, region_hint=_region_from_args())
    return {'query': query, 'results': [p.to_dict() for p in places]}
