# reviews/admin.py

from django.contrib import admin

from .models import Review
from .services import hide_review, publish_review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('id', 'listing', 'reviewer', 'reviewee', 'type', 'overall', 'status', 'blind_status', 'created_at')
    list_filter = ('status', 'type', 'blind_status', 'overall', 'language')
    search_fields = ('comment', 'title', 'reviewer__email', 'reviewee__email', 'listing__title')
    raw_id_fields = ('listing', 'booking', 'reviewer', 'reviewee', 'paired_review')
    readonly_fields = ('helpful_count', 'auto_publish_at', 'published_at', 'created_at', 'updated_at')
    exclude = ('helpful_users',)

    actions = ['publish_selected', 'hide_selected']

    def publish_selected(self, request, queryset):
        for review in queryset:
            publish_review(review)
        self.message_user(request, f"✅ Published {queryset.count()} review(s).")

    publish_selected.short_description = "✅ Publish selected reviews"

    def hide_selected(self, request, queryset):
        for review in queryset:
            hide_review(review)
        self.message_user(request, f"🙈 Hidden {queryset.count()} review(s).")

    hide_selected.short_description = "🙈 Hide selected reviews"
