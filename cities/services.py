# cities/services.py
import unicodedata

from .data import ALGERIAN_CITIES

MIN_QUERY_LENGTH = 2
DEFAULT_SEARCH_LIMIT = 10


def remove_accents(value):
    """'Béjaïa' -> 'Bejaia', so unaccented queries still match."""
    normalized = unicodedata.normalize('NFD', value)
    return ''.join(ch for ch in normalized if unicodedata.category(ch) != 'Mn')


def fold(value):
    return remove_accents(value.lower().strip())


def serialize_city(city):
    return {
        'id': city.id,
        'name': city.name,
        'name_ar': city.name_ar,
        'wilaya': city.wilaya,
        'wilaya_code': city.wilaya_code,
        'coordinates': list(city.coordinates),  # [lat, lng]
        'population': city.population,
        'formatted_address': f"{city.name}, {city.wilaya}, Algeria",
        'display': f"{city.name}, {city.wilaya}",
    }


def _matches(city, term, folded_term):
    name = city.name.lower()
    wilaya = city.wilaya.lower()
    return (
        term in name
        or term in wilaya
        or folded_term in remove_accents(name)
        or folded_term in remove_accents(wilaya)
        or term in city.name_ar
    )


def search_cities(query, limit=DEFAULT_SEARCH_LIMIT):
    """
    Search by French or Arabic name, or by wilaya, with or without accents.
    Results are sorted by population so the main cities come first.
    """
    if not query or len(query.strip()) < MIN_QUERY_LENGTH:
        return []

    term = query.lower().strip()
    folded_term = remove_accents(term)
    results = [c for c in ALGERIAN_CITIES if _matches(c, term, folded_term)]
    results.sort(key=lambda c: c.population, reverse=True)
    return [serialize_city(c) for c in results[:limit]]


def list_cities(wilaya_code=None, limit=None):
    results = ALGERIAN_CITIES
    if wilaya_code is not None:
        results = [c for c in results if c.wilaya_code == wilaya_code]
    results = sorted(results, key=lambda c: c.population, reverse=True)
    if limit is not None:
        results = results[:limit]
    return [serialize_city(c) for c in results]


def get_city(city_id):
    for city in ALGERIAN_CITIES:
        if city.id == city_id:
            return serialize_city(city)
    return None


def list_wilayas():
    wilayas = {}
    for city in ALGERIAN_CITIES:
        wilayas.setdefault(city.wilaya_code, city.wilaya)
    return [{'code': code, 'name': name} for code, name in sorted(wilayas.items())]


def place_names_matching(query):
    """
    Every city and wilaya spelling that matches `query` accent-insensitively.
    Used by listing search so "bejaia" also finds listings stored as "Béjaïa".
    """
    folded = fold(query)
    names = {query.strip()}
    for city in ALGERIAN_CITIES:
        if fold(city.name) == folded or fold(city.wilaya) == folded:
            names.add(city.name)
            names.add(city.wilaya)
        elif city.name_ar == query.strip():
            names.add(city.name)
    return names
