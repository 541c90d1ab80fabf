# listings/views.py

import logging
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db.models import F, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from accounts.permissions import IsPlatformAdmin
from bookings.availability import is_available, parse_day, unavailable_listing_ids
from bookings.models import Booking, BookingError
from bookings.pricing import quote, serialize_quote
from cities.services import place_names_matching
from platform_settings.decorators import current_features, feature_disabled_response
from platform_settings.feature_flags import disabled_categories, feature_for_category, vertical_enabled

from .models import SUBCATEGORIES, Listing
from .serializers import (
    BlockedPeriodSerializer,
    ListingCardSerializer,
    ListingDetailSerializer,
    ListingDraftSerializer,
)
from .utils import check_image_file, geocode_address, reverse_geocode, upload_listing_image
from .wizard import WizardNavigator, first_invalid_step

logger = logging.getLogger(__name__)

# Statuses a host can still edit through the wizard
EDITABLE_STATUSES = ('draft', 'inactive')

SORT_OPTIONS = {
    'price': ['base_price'],
    '-price': ['-base_price'],
    'rating': ['-average_rating', '-review_count'],
    'newest': ['-created_at'],
}


def host_required_response():
    return Response({
        "error": _("Only hosts can create listings. Upgrade your account to become a host."),
        "code": "HOST_REQUIRED",
        "upgrade_url": "/api/auth/become-host/",
    }, status=status.HTTP_403_FORBIDDEN)


def _check_vertical(request, category):
    """403 response when `category`'s vertical is switched off, else None."""
    if category and not vertical_enabled(category, current_features(request)):
        return feature_disabled_response(feature_for_category(category))
    return None


def _get_draft(request, draft_id):
    return get_object_or_404(Listing, id=draft_id, host=request.user, status__in=EDITABLE_STATUSES)


def parse_amount(value):
    """Decimal from a query parameter. Raises ValueError for anything that is not a finite number."""
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount


def _paginate(request, queryset, serializer_class):
    paginator = PageNumberPagination()
    page = paginator.paginate_queryset(queryset, request)
    serializer = serializer_class(page, many=True)
    return paginator.get_paginated_response(serializer.data)


# --- Drafts & wizard ---

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def drafts(request):
    """
    API Endpoint: /api/listings/drafts/
    GET  → the host's drafts
    POST → start a new draft, optionally with {"category": "stay"|"vehicle"}
    """
    if not request.user.is_host:
        return host_required_response()

    if request.method == 'GET':
        queryset = Listing.objects.filter(host=request.user, status__in=EDITABLE_STATUSES).order_by('-updated_at')
        return Response(ListingDraftSerializer(queryset, many=True).data)

    category = request.data.get('category') or ''
    if category and category not in SUBCATEGORIES:
        return Response({"error": _("Invalid category")}, status=status.HTTP_400_BAD_REQUEST)
    blocked = _check_vertical(request, category)
    if blocked:
        return blocked

    draft = Listing.objects.create(host=request.user, category=category)
    logger.info(f"Draft listing {draft.id} started by {request.user.email}")
    return Response(ListingDraftSerializer(draft).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def draft_detail(request, draft_id):
    """Read, autosave (partial update) or discard a draft."""
    draft = _get_draft(request, draft_id)

    if request.method == 'GET':
        return Response(ListingDraftSerializer(draft).data)

    if request.method == 'DELETE':
        draft.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    blocked = _check_vertical(request, request.data.get('category'))
    if blocked:
        return blocked

    serializer = ListingDraftSerializer(draft, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wizard_state(request, draft_id):
    draft = _get_draft(request, draft_id)
    return Response(WizardNavigator(draft).state())


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def wizard_next(request, draft_id):
    draft = _get_draft(request, draft_id)
    navigator = WizardNavigator(draft)
    code = navigator.go_next()
    if code:
        return Response({
            "error": _("Complete this step before continuing"),
            "step": navigator.current_step,
            "code": code,
            "wizard": navigator.state(),
        }, status=status.HTTP_400_BAD_REQUEST)
    navigator.save()
    return Response(navigator.state())


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def wizard_back(request, draft_id):
    draft = _get_draft(request, draft_id)
    navigator = WizardNavigator(draft)
    navigator.go_back()
    navigator.save()
    return Response(navigator.state())


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def wizard_goto(request, draft_id):
    """Body: {"index": n}. The index is clamped to the step list."""
    draft = _get_draft(request, draft_id)
    try:
        index = int(request.data.get('index'))
    except (TypeError, ValueError):
        return Response({"error": _("index must be an integer")}, status=status.HTTP_400_BAD_REQUEST)
    navigator = WizardNavigator(draft)
    navigator.go_to(index)
    navigator.save()
    return Response(navigator.state())


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def draft_images(request, draft_id):
    """
    POST   multipart "image" → upload one photo (Cloudinary, placeholder fallback)
    DELETE {"url": ...}      → remove a photo
    """
    draft = _get_draft(request, draft_id)

    if request.method == 'DELETE':
        url = request.data.get('url')
        if not url or not draft.remove_image(url):
            return Response({"error": _("Image not found")}, status=status.HTTP_404_NOT_FOUND)
        return Response({"images": draft.images, "primary_image": draft.primary_image})

    file = request.FILES.get('image')
    if not file:
        return Response({"error": _("No image provided")}, status=status.HTTP_400_BAD_REQUEST)

    error = check_image_file(file)
    if error:
        return Response({"error": error}, status=status.HTTP_400_BAD_REQUEST)

    url, service = upload_listing_image(file)
    draft.add_image(url, caption=request.data.get('caption', ''))
    return Response({
        "url": url,
        "service": service,
        "images": draft.images,
        "primary_image": draft.primary_image,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def draft_geocode(request, draft_id):
    """Fill coordinates (and missing city/state) from an address in Algeria."""
    draft = _get_draft(request, draft_id)
    address = (request.data.get('address') or '').strip()
    if not address:
        return Response({"error": _("Address is required")}, status=status.HTTP_400_BAD_REQUEST)

    coords = geocode_address(address)
    if not coords:
        return Response({
            "error": _("Could not find coordinates for this address. Please try being more specific.")
        }, status=status.HTTP_400_BAD_REQUEST)

    draft.street = draft.street or address
    draft.latitude = coords['lat']
    draft.longitude = coords['lng']
    if not draft.city or not draft.state:
        location = reverse_geocode(coords['lat'], coords['lng'])
        draft.city = draft.city or location['city'] or ''
        draft.state = draft.state or location['state'] or ''
    draft.save()

    return Response({
        "street": draft.street,
        "city": draft.city,
        "state": draft.state,
        "latitude": draft.latitude,
        "longitude": draft.longitude,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def draft_submit(request, draft_id):
    """Submit the draft for admin approval."""
    draft = _get_draft(request, draft_id)

    failure = first_invalid_step(draft)
    if failure is not None:
        step_id, code = failure
        return Response({
            "error": _("Complete every step before submitting"),
            "step": step_id,
            "code": code,
        }, status=status.HTTP_400_BAD_REQUEST)

    blocked = _check_vertical(request, draft.category)
    if blocked:
        return blocked

    draft.status = 'pending'
    draft.rejection_reason = ''
    try:
        draft.save()
    except ValidationError as e:
        return Response({
            "error": " ".join(e.messages),
            "step": "location",
            "code": "placeMarker",
        }, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"Listing {draft.id} submitted for review by {request.user.email}")

    return Response({
        "message": _("Your listing has been submitted and is awaiting approval."),
        "listing": ListingDraftSerializer(draft).data,
    })


# --- Host management ---

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_listings(request):
    queryset = Listing.objects.filter(host=request.user)

    status_filter = request.query_params.get('status')
    search = (request.query_params.get('search') or '').strip()
    if status_filter:
        queryset = queryset.filter(status=status_filter)
    if search:
        queryset = queryset.filter(Q(title__icontains=search) | Q(city__icontains=search))

    return _paginate(request, queryset.order_by('-updated_at'), ListingCardSerializer)


def _toggle_status(request, listing_id, from_status, to_status):
    listing = get_object_or_404(Listing, id=listing_id, host=request.user)
    if listing.status != from_status:
        return Response({
            "error": _("Only %(from)s listings can be set to %(to)s") % {'from': from_status, 'to': to_status}
        }, status=status.HTTP_400_BAD_REQUEST)
    listing.status = to_status
    try:
        listing.save()
    except ValidationError as e:
        return Response({"error": " ".join(e.messages)}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"Listing {listing.id} {from_status} → {to_status}")
    return Response(ListingCardSerializer(listing).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def listing_pause(request, listing_id):
    return _toggle_status(request, listing_id, 'active', 'paused')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def listing_activate(request, listing_id):
    return _toggle_status(request, listing_id, 'paused', 'active')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def blocked_periods(request, listing_id):
    """Manually blocked dates for one of the host's listings."""
    listing = get_object_or_404(Listing, id=listing_id, host=request.user)

    if request.method == 'GET':
        return Response(BlockedPeriodSerializer(listing.blocked_periods.all(), many=True).data)

    serializer = BlockedPeriodSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(listing=listing)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def blocked_period_delete(request, listing_id, period_id):
    listing = get_object_or_404(Listing, id=listing_id, host=request.user)
    period = get_object_or_404(listing.blocked_periods, id=period_id)
    period.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsPlatformAdmin])
def moderate(request, listing_id):
    """
    API Endpoint: POST /api/listings/<id>/moderate/
    Body: {"action": "approve"|"reject"|"block", "reason": str}
    """
    listing = get_object_or_404(Listing, id=listing_id)
    action = request.data.get('action')
    reason = request.data.get('reason', '')

    try:
        if action == 'approve':
            if not listing.approve():
                return Response({"error": _("Only pending listings can be approved")}, status=status.HTTP_400_BAD_REQUEST)
        elif action == 'reject':
            if not reason:
                return Response({"error": _("A rejection reason is required")}, status=status.HTTP_400_BAD_REQUEST)
            if not listing.reject(reason):
                return Response({"error": _("Only pending listings can be rejected")}, status=status.HTTP_400_BAD_REQUEST)
        elif action == 'block':
            listing.block(reason)
        else:
            return Response({"error": _("action must be approve, reject or block")}, status=status.HTTP_400_BAD_REQUEST)
    except ValidationError as e:
        return Response({"error": " ".join(e.messages)}, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"Listing {listing.id} moderated ({action}) by admin {request.user.email}")
    return Response(ListingCardSerializer(listing).data)


# --- Public ---

@api_view(['GET'])
@permission_classes([AllowAny])
def listing_search(request):
    """
    API Endpoint: GET /api/listings/
    Active listings only; listings of a disabled vertical are hidden.
    """
    params = request.query_params
    queryset = Listing.objects.live().select_related('host')

    hidden = disabled_categories(current_features(request))
    if hidden:
        queryset = queryset.exclude(category__in=hidden)

    category = params.get('category')
    subcategory = params.get('subcategory')
    city = (params.get('city') or '').strip()
    min_price = params.get('min_price')
    max_price = params.get('max_price')
    guests = params.get('guests')
    instant_book = params.get('instant_book')

    if category:
        queryset = queryset.filter(category=category)
    if subcategory:
        queryset = queryset.filter(subcategory=subcategory)
    if city:
        place_filter = Q()
        for name in place_names_matching(city):
            place_filter |= Q(city__iexact=name) | Q(state__iexact=name)
        queryset = queryset.filter(place_filter)
    try:
        if min_price:
            queryset = queryset.filter(base_price__gte=parse_amount(min_price))
        if max_price:
            queryset = queryset.filter(base_price__lte=parse_amount(max_price))
        if guests:
            guests = int(guests)
            queryset = queryset.filter(
                Q(category='stay', capacity__gte=guests) | Q(category='vehicle', seats__gte=guests)
            )
    except (TypeError, ValueError):
        return Response({"error": _("Invalid numeric filter")}, status=status.HTTP_400_BAD_REQUEST)
    if instant_book in ('true', '1'):
        queryset = queryset.filter(instant_book=True)

    amenities = [a.strip() for a in (params.get('amenities') or '').split(',') if a.strip()]
    if amenities:
        wanted = set(amenities)
        ids = [pk for pk, have in queryset.values_list('id', 'amenities') if wanted <= set(have or [])]
        queryset = queryset.filter(id__in=ids)

    check_in = parse_day(params.get('check_in'))
    check_out = parse_day(params.get('check_out'))
    if check_in and check_out and check_in < check_out:
        queryset = queryset.exclude(id__in=unavailable_listing_ids(check_in, check_out))

    ordering = SORT_OPTIONS.get(params.get('sort'), ['-featured', '-created_at'])
    return _paginate(request, queryset.order_by(*ordering), ListingCardSerializer)


def _public_detail(request, listing):
    if listing.status != 'active' and listing.host_id != request.user.id:
        return Response({"error": _("Listing not found")}, status=status.HTTP_404_NOT_FOUND)
    if not vertical_enabled(listing.category, current_features(request)):
        return feature_disabled_response(feature_for_category(listing.category))

    Listing.objects.filter(pk=listing.pk).update(views=F('views') + 1)
    listing.views += 1
    return Response(ListingDetailSerializer(listing).data)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticatedOrReadOnly])
def listing_detail(request, listing_id):
    """
    GET    → public detail (increments views)
    DELETE → soft delete by the owner
    """
    listing = get_object_or_404(Listing.objects.select_related('host'), id=listing_id)

    if request.method == 'GET':
        return _public_detail(request, listing)

    if listing.host_id != request.user.id and not request.user.is_platform_admin:
        return Response({"error": _("You can only delete your own listings")}, status=status.HTTP_403_FORBIDDEN)

    upcoming = Booking.objects.filter(
        listing=listing,
        status__in=['confirmed', 'paid'],
        end_date__gte=timezone.localdate(),
    )
    if upcoming.exists():
        return Response({
            "error": _("This listing has upcoming bookings and cannot be deleted")
        }, status=status.HTTP_400_BAD_REQUEST)

    listing.soft_delete(request.user)
    logger.info(f"Listing {listing.id} soft-deleted by {request.user.email}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([AllowAny])
def listing_detail_by_slug(request, slug):
    listing = get_object_or_404(Listing.objects.select_related('host'), slug=slug)
    return _public_detail(request, listing)


@api_view(['GET'])
@permission_classes([AllowAny])
def listing_availability(request, listing_id):
    """
    API Endpoint: GET /api/listings/<id>/availability/?start=YYYY-MM-DD&end=YYYY-MM-DD
    """
    listing = get_object_or_404(Listing.objects.live(), id=listing_id)
    start = parse_day(request.query_params.get('start'))
    end = parse_day(request.query_params.get('end'))
    if not start or not end:
        return Response({"error": _("start and end dates are required (YYYY-MM-DD)")}, status=status.HTTP_400_BAD_REQUEST)

    try:
        breakdown = quote(listing, start, end)
    except BookingError as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        "available": is_available(listing, start, end),
        "quote": serialize_quote(breakdown),
    })
