# cities/views.py
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from . import services


def _int_param(request, name, default=None):
    value = request.query_params.get(name)
    if value in (None, ''):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@api_view(['GET'])
@permission_classes([AllowAny])
def city_list(request):
    """
    API Endpoint: GET /api/cities/?wilaya=16&limit=20
    All cities, most populated first.
    """
    cities = services.list_cities(
        wilaya_code=_int_param(request, 'wilaya'),
        limit=_int_param(request, 'limit'),
    )
    return Response({"count": len(cities), "results": cities})


@api_view(['GET'])
@permission_classes([AllowAny])
def city_search(request):
    """
    API Endpoint: GET /api/cities/search/?q=bej&limit=10
    Autocomplete for the location fields. Queries under 2 characters return nothing.
    """
    query = request.query_params.get('q', '')
    limit = _int_param(request, 'limit', services.DEFAULT_SEARCH_LIMIT)
    results = services.search_cities(query, limit=limit)
    return Response({"query": query, "count": len(results), "results": results})


@api_view(['GET'])
@permission_classes([AllowAny])
def wilaya_list(request):
    return Response({"results": services.list_wilayas()})


@api_view(['GET'])
@permission_classes([AllowAny])
def city_detail(request, city_id):
    city = services.get_city(city_id)
    if city is None:
        return Response({"error": _("City not found")}, status=status.HTTP_404_NOT_FOUND)
    return Response(city)
