# support/admin.py

from django.contrib import admin
from django.utils.html import format_html

from .models import Ticket, TicketMessage

PRIORITY_COLORS = {
    'low': '#6c757d',
    'normal': '#0d6efd',
    'high': '#fd7e14',
    'urgent': '#dc3545',
}


class TicketMessageInline(admin.TabularInline):
    model = TicketMessage
    extra = 0
    raw_id_fields = ('sender',)
    readonly_fields = ('created_at',)


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ('ticket_number', 'subject', 'user', 'category', 'status', 'priority_badge', 'assigned_to', 'last_activity_at')
    list_filter = ('status', 'priority', 'category')
    search_fields = ('ticket_number', 'subject', 'description', 'user__email')
    raw_id_fields = ('user', 'assigned_to', 'related_booking', 'related_listing')
    readonly_fields = ('ticket_number', 'resolution_time', 'resolved_at', 'closed_at', 'rated_at', 'created_at', 'updated_at')
    inlines = [TicketMessageInline]

    actions = ['mark_resolved', 'mark_closed']

    def priority_badge(self, obj):
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            PRIORITY_COLORS.get(obj.priority, '#000'),
            obj.get_priority_display(),
        )

    priority_badge.short_description = "Priority"

    def _set_status(self, request, queryset, new_status):
        for ticket in queryset:
            ticket.set_status(new_status)
            ticket.save()
        self.message_user(request, f"✅ {queryset.count()} ticket(s) marked {new_status}.")

    def mark_resolved(self, request, queryset):
        self._set_status(request, queryset, 'resolved')

    mark_resolved.short_description = "✅ Mark selected tickets as resolved"

    def mark_closed(self, request, queryset):
        self._set_status(request, queryset, 'closed')

    mark_closed.short_description = "🔒 Close selected tickets"
