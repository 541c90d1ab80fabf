from django.contrib import admin
from django.contrib.auth import get_user_model

User = get_user_model()


@admin.register(User)
class CustomUserAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "username",
        "email",
        "first_name",
        "last_name",
        "role",
        "preferred_language",
        "is_verified",
        "is_staff",
        "is_active",
        "date_joined",
    )
    search_fields = ("username", "email", "first_name", "last_name", "phone")
    list_filter = ("role", "is_verified", "is_staff", "is_active", "preferred_language", "date_joined")
    ordering = ("-date_joined",)
    readonly_fields = ("average_rating", "total_reviews", "verification_sent_at")
    actions = ["make_host", "deactivate_users"]

    def make_host(self, request, queryset):
        updated = queryset.filter(role="guest").update(role="host")
        self.message_user(request, f"✅ Upgraded {updated} user(s) to host.")
    make_host.short_description = "✅ Upgrade selected users to host"

    def deactivate_users(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"❌ Deactivated {updated} user(s).")
    deactivate_users.short_description = "❌ Deactivate selected users"
