from django.contrib import admin

from . import feature_flags
from .models import FeatureChange, SystemSettings


class FeatureChangeInline(admin.TabularInline):
    model = FeatureChange
    extra = 0
    fields = ('field', 'old_value', 'new_value', 'changed_by', 'changed_at', 'reason')
    readonly_fields = fields
    can_delete = False


@admin.register(SystemSettings)
class SystemSettingsAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'vehicles_enabled', 'accommodations_enabled', 'version', 'last_modified', 'modified_by')
    readonly_fields = ('version', 'last_modified', 'modified_by')
    inlines = [FeatureChangeInline]

    def has_add_permission(self, request):
        return not SystemSettings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False

    def save_model(self, request, obj, form, change):
        # Route flag edits through update_feature so the audit trail stays complete
        if change:
            current = SystemSettings.load()
            for name, field in (('vehiclesEnabled', 'vehicles_enabled'),
                                ('accommodationsEnabled', 'accommodations_enabled')):
                new_value = form.cleaned_data.get(field)
                if new_value is not None and new_value != getattr(current, field):
                    current.update_feature(name, new_value, request.user, reason='Changed in admin')
        else:
            super().save_model(request, obj, form, change)
        feature_flags.invalidate()
