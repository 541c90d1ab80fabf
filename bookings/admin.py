# bookings/admin.py

from django.contrib import admin
from django.utils.html import format_html

from .models import Booking, BookingError
from .services import cancel_booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):

    def status_badge(self, obj):
        if obj.status in ('confirmed', 'paid', 'active', 'completed'):
            color = 'green'
        elif obj.status == 'pending':
            color = 'orange'
        else:
            color = 'red'
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, obj.get_status_display())
    status_badge.short_description = "Status"
    status_badge.admin_order_field = 'status'

    def stay(self, obj):
        return f"{obj.start_date:%b %d} → {obj.end_date:%b %d, %Y} ({obj.nights} nights)"
    stay.short_description = "Stay"

    def amount(self, obj):
        return f"{obj.total_amount:,.0f} {obj.currency}"
    amount.short_description = "Total"
    amount.admin_order_field = 'total_amount'

    list_display = ('id', 'listing', 'guest', 'host', 'stay', 'amount', 'status_badge', 'payment_status', 'created_at')
    list_filter = ('status', 'payment_status', 'payment_method', 'created_at')
    search_fields = ('listing__title', 'guest__email', 'host__email')
    date_hierarchy = 'created_at'
    raw_id_fields = ('listing', 'guest', 'host')

    readonly_fields = (
        'base_price', 'nights', 'subtotal', 'cleaning_fee', 'service_fee', 'host_commission',
        'total_amount', 'paid_amount', 'paid_at', 'refund_amount', 'refunded_at',
        'cancelled_by', 'cancelled_at', 'cancellation_details', 'completed_at',
        'created_at', 'updated_at',
    )

    actions = ['mark_paid_cash', 'cancel_as_admin']

    def mark_paid_cash(self, request, queryset):
        updated = 0
        for booking in queryset.filter(status='confirmed'):
            booking.record_payment('cash')
            updated += 1
        self.message_user(request, f"✅ Recorded cash payment for {updated} booking(s).")

    mark_paid_cash.short_description = "💵 Record cash payment"

    def cancel_as_admin(self, request, queryset):
        cancelled = 0
        for booking in queryset:
            try:
                cancel_booking(booking, 'admin', reason="Cancelled from admin")
                cancelled += 1
            except BookingError as e:
                self.message_user(request, f"⚠️ Booking {booking.id}: {e}", level='warning')
        self.message_user(request, f"🚫 Cancelled {cancelled} booking(s).")

    cancel_as_admin.short_description = "🚫 Cancel selected bookings (admin)"
