"""Nearby venue lookup through OpenStreetMap.

Nominatim geocodes the district/city/province triple, Overpass lists food
amenities around it. One attempt per room creation; any failure surfaces as
``UpstreamUnavailable`` so the caller can fall back to the built-in list.
"""

import asyncio
import json
import random
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from bukber.errors import UpstreamUnavailable

AMENITY_PATTERN = 'restaurant|cafe|food_court|fast_food'
OVERPASS_RESULT_CAP = 30
RADIUS_LABEL = '10KM Radius'


def build_query(location: Dict[str, Any]) -> str:
    parts = [location.get('district'), location.get('city'), location.get('prov')]
    if not all(parts):
        raise UpstreamUnavailable('Incomplete location data')
    return ', '.join(str(p) for p in parts) + ', Indonesia'


def build_overpass_query(lat, lon, radius_m: int = 10000) -> str:
    around = f"around:{radius_m},{lat},{lon}"
    return f"""
[out:json][timeout:15];
(
  node["amenity"~"{AMENITY_PATTERN}"]({around});
  way["amenity"~"{AMENITY_PATTERN}"]({around});
  relation["amenity"~"{AMENITY_PATTERN}"]({around});
);
out center {OVERPASS_RESULT_CAP};
"""


def parse_elements(elements: List[Dict[str, Any]], lat, lon, limit: int = 10,
                   rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """Turn Overpass elements into venue records.

    Unnamed elements are skipped; the remainder is shuffled so repeated
    lookups for the same district do not always offer the same venues.
    """
    named = [e for e in elements if (e.get('tags') or {}).get('name')]
    (rng or random).shuffle(named)
    venues = []
    for element in named[:limit]:
        tags = element['tags']
        center = element.get('center') or {}
        venues.append({
            'id': f"r_osm_{element.get('id')}",
            'name': tags['name'],
            'lat': element.get('lat') or center.get('lat') or lat,
            'lon': element.get('lon') or center.get('lon') or lon,
            'price_range': RADIUS_LABEL,
            'menu_highlights': tags.get('cuisine') or ('Cafe/Coffee' if tags.get('amenity') == 'cafe' else 'Kuliner Lokal'),
        })
    return venues


async def _geocode(http: aiohttp.ClientSession, url: str, query: str) -> Tuple[Any, Any]:
    async with http.get(url, params={'format': 'json', 'q': query}, headers={'Accept-Language': 'id'}) as resp:
        if resp.status != 200:
            raise UpstreamUnavailable(f'Nominatim returned {resp.status}')
        places = json.loads(await resp.text())
    if not places:
        raise UpstreamUnavailable(f'No geocoding match for {query!r}')
    return places[0]['lat'], places[0]['lon']


async def _amenities(http: aiohttp.ClientSession, url: str, lat, lon, radius_m: int) -> List[Dict[str, Any]]:
    form = {'data': build_overpass_query(lat, lon, radius_m)}
    async with http.post(url, data=form) as resp:
        body = await resp.text()
        if resp.status != 200:
            raise UpstreamUnavailable(f'Overpass returned {resp.status}: {body[:100]}')
    try:
        payload = json.loads(body)
    except ValueError:
        raise UpstreamUnavailable(f'Overpass sent malformed JSON: {body[:100]}')
    return (payload or {}).get('elements') or []


async def fetch_nearby_restaurants(location: Dict[str, Any], *, nominatim_url: str, overpass_url: str,
                                   radius_m: int = 10000, limit: int = 10, timeout_sec: int = 15,
                                   user_agent: str = 'BukberChampionshipServer/1.0') -> List[Dict[str, Any]]:
    query = build_query(location)
    timeout = aiohttp.ClientTimeout(total=timeout_sec)
    try:
        async with aiohttp.ClientSession(timeout=timeout, headers={'User-Agent': user_agent}) as http:
            lat, lon = await _geocode(http, nominatim_url, query)
            elements = await _amenities(http, overpass_url, lat, lon, radius_m)
    except (aiohttp.ClientError, asyncio.TimeoutError, KeyError, IndexError, TypeError, ValueError) as exc:
        raise UpstreamUnavailable(f'Venue lookup failed: {exc}') from exc
    venues = parse_elements(elements, lat, lon, limit)
    if not venues:
        raise UpstreamUnavailable(f'No named venues near {query!r}')
    return venues


def lookup_nearby_restaurants(location: Dict[str, Any], config) -> List[Dict[str, Any]]:
    """Blocking wrapper used from Socket.IO handlers."""
    if not config.get('VENUE_LOOKUP_ENABLED', True):
        raise UpstreamUnavailable('Venue lookup disabled')
    if not isinstance(location, dict):
        raise UpstreamUnavailable('Location data must be an object')
    return asyncio.run(fetch_nearby_restaurants(
        location,
        nominatim_url=config['NOMINATIM_URL'],
        overpass_url=config['OVERPASS_URL'],
        radius_m=int(config.get('VENUE_LOOKUP_RADIUS_M', 10000)),
        limit=int(config.get('VENUE_LOOKUP_LIMIT', 10)),
        timeout_sec=int(config.get('VENUE_LOOKUP_TIMEOUT_SEC', 15)),
        user_agent=config.get('VENUE_USER_AGENT', 'BukberChampionshipServer/1.0'),
    ))
