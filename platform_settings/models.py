# platform_settings/models.py
from django.conf import settings
from django.db import models, transaction
from django.utils import timezone

# Feature flag name (API / cache key) -> model field
FEATURE_FIELDS = {
    'vehiclesEnabled': 'vehicles_enabled',
    'accommodationsEnabled': 'accommodations_enabled',
}

DEFAULT_FEATURES = {name: True for name in FEATURE_FIELDS}

MAX_HISTORY_ENTRIES = 100


class SystemSettings(models.Model):
    """Singleton row holding the platform-wide feature flags."""

    SINGLETON_ID = 1

    vehicles_enabled = models.BooleanField(default=True)
    accommodations_enabled = models.BooleanField(default=True)

    version = models.PositiveIntegerField(default=1)
    last_modified = models.DateTimeField(default=timezone.now)
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )

    class Meta:
        verbose_name = "System Settings"
        verbose_name_plural = "System Settings"

    def __str__(self):
        return f"System settings v{self.version}"

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=cls.SINGLETON_ID)
        return obj

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_ID
        super().save(*args, **kwargs)

    @property
    def features(self):
        return {name: getattr(self, field) for name, field in FEATURE_FIELDS.items()}

    def update_feature(self, feature_name, value, user=None, reason=''):
        if feature_name not in FEATURE_FIELDS:
            raise ValueError(f"Unknown feature: {feature_name}")

        field = FEATURE_FIELDS[feature_name]
        old_value = getattr(self, field)

        with transaction.atomic():
            setattr(self, field, value)
            self.last_modified = timezone.now()
            self.modified_by = user
            self.version += 1
            self.save()

            FeatureChange.objects.create(
                system_settings=self,
                field=f"features.{feature_name}",
                old_value=old_value,
                new_value=value,
                changed_by=user,
                reason=reason or '',
            )
            FeatureChange.trim(self)

        return self


class FeatureChange(models.Model):
    system_settings = models.ForeignKey(SystemSettings, on_delete=models.CASCADE, related_name='history')
    field = models.CharField(max_length=100)
    old_value = models.BooleanField(null=True)
    new_value = models.BooleanField()
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    changed_at = models.DateTimeField(default=timezone.now)
    reason = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ['-changed_at', '-id']

    def __str__(self):
        return f"{self.field}: {self.old_value} → {self.new_value}"

    @classmethod
    def trim(cls, system_settings, keep=MAX_HISTORY_ENTRIES):
        stale_ids = list(
            cls.objects.filter(system_settings=system_settings)
            .order_by('-changed_at', '-id')
            .values_list('id', flat=True)[keep:]
        )
        if stale_ids:
            cls.objects.filter(id__in=stale_ids).delete()
