# listings/utils.py

import logging
import random

import cloudinary.uploader
import requests
from django.conf import settings
from django.utils.translation import gettext as _

logger = logging.getLogger(__name__)

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
OPENCAGE_URL = "https://api.opencagedata.com/geocode/v1/json"

ALLOWED_IMAGE_TYPES = ['image/jpeg', 'image/jpg', 'image/png', 'image/webp']
MAX_IMAGE_SIZE = 10 * 1024 * 1024

# Used when Cloudinary is not configured (local development)
MOCK_IMAGE_URLS = [
    "https://via.placeholder.com/800x600.png?text=Living+Room",
    "https://via.placeholder.com/800x600.png?text=Bedroom",
    "https://via.placeholder.com/800x600.png?text=Exterior",
    "https://via.placeholder.com/800x600.png?text=Vehicle",
]


def _headers():
    # Nominatim refuses requests without a User-Agent
    return {'User-Agent': settings.GEOCODER_USER_AGENT}


def geocode_address(address):
    """
    Geocode an Algerian address using Nominatim (OpenStreetMap).
    Returns {'lat', 'lng'} or None.
    """
    params = {
        'q': address.strip(),
        'format': 'json',
        'limit': 1,
        'countrycodes': 'dz',
    }
    try:
        response = requests.get(NOMINATIM_SEARCH_URL, params=params, headers=_headers(), timeout=10)
    except requests.RequestException:
        logger.exception(f"Geocoding request failed for {address!r}")
        return None

    if response.status_code != 200:
        logger.warning(f"Geocoding failed. Status: {response.status_code}")
        return None

    results = response.json()
    if not results:
        logger.info(f"No geocoding results found for {address!r}")
        return None

    loc = results[0]
    return {'lat': float(loc['lat']), 'lng': float(loc['lon'])}


def reverse_geocode(lat, lng):
    """
    Returns {'city': ..., 'state': ...} from latitude and longitude.
    Uses OpenCage (if API key is set), otherwise falls back to Nominatim.
    """
    opencage_key = getattr(settings, 'OPENCAGE_API_KEY', None)
    if opencage_key:
        try:
            response = requests.get(OPENCAGE_URL, params={
                'q': f"{lat}+{lng}",
                'key': opencage_key,
                'countrycode': 'dz',
                'language': 'fr',
            }, timeout=5)
            if response.status_code == 200:
                data = response.json()
                if data.get('results'):
                    comp = data['results'][0]['components']
                    city = comp.get('city') or comp.get('town') or comp.get('village')
                    state = comp.get('state') or comp.get('region')
                    return {'city': city, 'state': state}
        except requests.RequestException:
            logger.exception("[OpenCage] Reverse geocoding failed")

    try:
        response = requests.get(NOMINATIM_REVERSE_URL, params={
            'format': 'json',
            'lat': lat,
            'lon': lng,
            'accept-language': 'fr',
        }, headers=_headers(), timeout=5)
        if response.status_code == 200:
            addr = response.json().get('address', {})
            city = addr.get('city') or addr.get('town') or addr.get('village')
            return {'city': city, 'state': addr.get('state')}
    except requests.RequestException:
        logger.exception("[Nominatim] Reverse geocoding failed")

    return {'city': None, 'state': None}


def check_image_file(file):
    """Error message for an unacceptable upload, or None."""
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        return _("Invalid file type. Supported: JPEG, PNG, WebP.")
    if file.size > MAX_IMAGE_SIZE:
        return _("File too large. Maximum 10MB allowed.")
    return None


def upload_listing_image(file):
    """
    Upload to Cloudinary and return (url, service).
    Falls back to a placeholder URL if Cloudinary is unavailable.
    """
    try:
        upload_result = cloudinary.uploader.upload(
            file,
            folder="baytup/listings",
            resource_type="image",
            overwrite=False,
            unique_filename=True,
        )
        image_url = upload_result.get('secure_url')
        if image_url:
            return image_url, 'cloudinary'
    except Exception:
        logger.exception("Cloudinary upload failed, using placeholder image")

    base = random.choice(MOCK_IMAGE_URLS).split('?')[0]
    name = file.name.rsplit('.', 1)[0] if '.' in file.name else file.name
    return f"{base}?text={name.replace(' ', '+')}", 'mock-development-fallback'
