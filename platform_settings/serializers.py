# platform_settings/serializers.py
from rest_framework import serializers

from .models import FeatureChange, SystemSettings


class FeatureChangeSerializer(serializers.ModelSerializer):
    changed_by = serializers.SerializerMethodField()

    class Meta:
        model = FeatureChange
        fields = ['field', 'old_value', 'new_value', 'changed_by', 'changed_at', 'reason']

    def get_changed_by(self, obj):
        if not obj.changed_by:
            return None
        return {"id": obj.changed_by.id, "email": obj.changed_by.email}


class SystemSettingsSerializer(serializers.ModelSerializer):
    features = serializers.DictField(child=serializers.BooleanField(), read_only=True)
    change_history = FeatureChangeSerializer(source='history', many=True, read_only=True)

    class Meta:
        model = SystemSettings
        fields = ['features', 'version', 'last_modified', 'modified_by', 'change_history']
