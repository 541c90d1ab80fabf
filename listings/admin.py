# listings/admin.py

from django.contrib import admin
from django.core.exceptions import ValidationError
from django.utils.html import format_html, format_html_join

from .models import BlockedPeriod, Listing


class BlockedPeriodInline(admin.TabularInline):
    model = BlockedPeriod
    extra = 0


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):

    # === CUSTOM COLUMNS FOR LIST VIEW ===

    def host_name(self, obj):
        host = obj.host
        return f"{host.get_full_name() or host.username} ({host.email})"
    host_name.short_description = "Host"

    def status_badge(self, obj):
        colors = {
            'active': 'green',
            'pending': 'orange',
            'paused': 'gray',
            'inactive': 'red',
            'blocked': 'red',
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, 'black'),
            obj.get_status_display(),
        )
    status_badge.short_description = "Status"
    status_badge.admin_order_field = 'status'

    def price(self, obj):
        return f"{obj.base_price:,.0f} {obj.currency} / {obj.get_pricing_type_display().lower()}"
    price.short_description = "Price"
    price.admin_order_field = 'base_price'

    def image_thumbnail(self, obj):
        if not obj.images:
            return "❌ No"
        return format_html(
            '<img src="{}" style="width: 80px; height: 60px; object-fit: cover; border-radius: 4px;" />',
            obj.primary_image,
        )
    image_thumbnail.short_description = "Image"

    def image_gallery(self, obj):
        if not obj.images:
            return "No images uploaded."
        return format_html(
            "<div style='display: flex; gap: 10px; flex-wrap: wrap;'>{}</div>",
            format_html_join(
                '',
                "<img src='{}' style='width: 150px; height: 120px; object-fit: cover; border-radius: 6px;' />",
                ((img['url'],) for img in obj.images),
            ),
        )
    image_gallery.short_description = "Image Gallery"

    list_display = (
        'title',
        'host_name',
        'category',
        'subcategory',
        'city',
        'state',
        'price',
        'status_badge',
        'image_thumbnail',
        'featured',
        'average_rating',
        'created_at',
    )

    list_filter = (
        'status',
        'category',
        'subcategory',
        'featured',
        'instant_book',
        'cancellation_policy',
        'currency',
        'created_at',
    )

    search_fields = (
        'title',
        'description',
        'city',
        'state',
        'street',
        'host__email',
        'host__first_name',
        'host__last_name',
    )

    date_hierarchy = 'created_at'
    inlines = [BlockedPeriodInline]

    fieldsets = (
        ("📋 Listing Overview", {
            "fields": ("host", "category", "subcategory", "title", "description", "slug"),
        }),
        ("📍 Location", {
            "fields": ("street", "city", "state", "postal_code", "country", "latitude", "longitude"),
        }),
        ("🏠 Stay Details", {
            "fields": ("bedrooms", "beds", "bathrooms", "area", "floor", "furnished", "capacity", "amenities"),
            "classes": ("collapse",),
        }),
        ("🚗 Vehicle Details", {
            "fields": ("make", "model", "year", "transmission", "fuel_type", "seats", "features"),
            "classes": ("collapse",),
        }),
        ("💰 Pricing & Availability", {
            "fields": (
                "base_price", "currency", "pricing_type", "cleaning_fee", "security_deposit",
                "instant_book", "min_stay", "max_stay", "cancellation_policy",
            ),
        }),
        ("🖼 Images", {
            "fields": ("image_gallery",),
        }),
        ("✅ Moderation", {
            "fields": ("status", "rejection_reason", "featured", "is_deleted", "deleted_at"),
        }),
        ("📊 Stats", {
            "fields": ("views", "bookings_count", "average_rating", "review_count"),
            "classes": ("collapse",),
        }),
    )

    readonly_fields = (
        'slug',
        'image_gallery',
        'views',
        'bookings_count',
        'average_rating',
        'review_count',
        'is_deleted',
        'deleted_at',
    )

    def has_add_permission(self, request):
        return False

    actions = ['approve_selected_listings', 'reject_selected_listings', 'block_selected_listings']

    def approve_selected_listings(self, request, queryset):
        updated = 0
        for listing in queryset:
            try:
                if listing.approve():
                    updated += 1
            except ValidationError as e:
                self.message_user(request, f"⚠️ {listing.title}: {'; '.join(e.messages)}", level='warning')
        self.message_user(request, f"✅ Successfully approved {updated} listing(s).")

    approve_selected_listings.short_description = "✅ Approve selected listings"

    def reject_selected_listings(self, request, queryset):
        updated = 0
        for listing in queryset:
            if listing.reject(reason="Not specified"):
                updated += 1
        self.message_user(request, f"❌ Rejected {updated} listing(s).")

    reject_selected_listings.short_description = "❌ Reject selected listings"

    def block_selected_listings(self, request, queryset):
        for listing in queryset:
            listing.block()
        self.message_user(request, f"⛔ Blocked {queryset.count()} listing(s).")

    block_selected_listings.short_description = "⛔ Block selected listings"
