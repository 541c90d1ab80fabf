import uuid
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone

ROLE_CHOICES = [
    ('guest', 'Guest'),
    ('host', 'Host'),
    ('admin', 'Admin'),
]

LANGUAGE_CHOICES = [
    ('en', 'English'),
    ('fr', 'Français'),
    ('ar', 'العربية'),
]


def unique_username_from_email(email, model):
    base_username = email.split('@')[0]
    username = base_username
    counter = 1
    while model.objects.filter(username=username).exists():
        username = f"{base_username}_{counter}"
        counter += 1
    return username


class UserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        extra_fields.setdefault('username', unique_username_from_email(email, self.model))
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('is_verified', True)
        extra_fields.setdefault('role', 'admin')

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    # Auto-filled from the email local part
    username = models.CharField(max_length=150, unique=True, blank=True)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=15, blank=True)

    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='guest')
    preferred_language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default='en')

    # Email verification
    is_verified = models.BooleanField(default=False)
    verification_token = models.CharField(max_length=64, blank=True, null=True, unique=True)
    verification_sent_at = models.DateTimeField(blank=True, null=True)

    # Review aggregates, refreshed when a review about this user is published
    average_rating = models.DecimalField(max_digits=2, decimal_places=1, default=0)
    total_reviews = models.PositiveIntegerField(default=0)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    objects = UserManager()

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        if not self.username and self.email:
            self.username = unique_username_from_email(self.email, User)
        super().save(*args, **kwargs)

    @property
    def is_host(self):
        return self.role in ('host', 'admin')

    @property
    def is_platform_admin(self):
        return self.role == 'admin' or self.is_superuser

    def generate_verification_token(self):
        token = str(uuid.uuid4())
        while User.objects.filter(verification_token=token).exists():
            token = str(uuid.uuid4())
        self.verification_token = token
        self.verification_sent_at = timezone.now()
        self.save(update_fields=['verification_token', 'verification_sent_at'])
        return token

    def verification_expired(self):
        if not self.verification_sent_at:
            return False
        ttl = timedelta(hours=settings.EMAIL_VERIFICATION_TTL_HOURS)
        return timezone.now() - self.verification_sent_at > ttl

    def mark_verified(self):
        self.is_verified = True
        self.verification_token = None
        self.save(update_fields=['is_verified', 'verification_token'])
