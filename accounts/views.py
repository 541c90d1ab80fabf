# accounts/views.py
import logging

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.core.mail import EmailMultiAlternatives
from django.http import HttpResponseRedirect
from django.template.loader import render_to_string
from django.urls import reverse
from django.utils import translation
from django.utils.encoding import force_bytes, force_str
from django.utils.html import strip_tags
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .serializers import PasswordChangeSerializer, PasswordResetSerializer, ProfileSerializer, UserSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


def send_verification_email(request, user):
    """Render and send the verification email. Raises on SMTP failure."""
    token = user.generate_verification_token()
    verify_url = request.build_absolute_uri(reverse('verify-email', args=[token]))

    with translation.override(user.preferred_language):
        html_content = render_to_string('emails/verify_email.html', {
            'user': user,
            'verify_url': verify_url,
            'frontend_url': settings.FRONTEND_URL,
        })
        subject = _("Confirm your email address")
    text_content = strip_tags(html_content)

    msg = EmailMultiAlternatives(
        subject=subject,
        body=text_content,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[user.email],
    )
    msg.attach_alternative(html_content, "text/html")
    msg.send()


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """
    API Endpoint: POST /api/auth/register/
    Registers a new (unverified) user and emails a verification link.
    - If verified user exists with same email → reject
    - If unverified user exists → delete and replace
    """
    email = (request.data.get('email') or '').strip().lower()

    existing_user = User.objects.filter(email__iexact=email).first() if email else None
    if existing_user:
        if existing_user.is_verified:
            return Response({
                "error": _("This email is already registered and verified.")
            }, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Replacing unverified account for {email}")
        existing_user.delete()

    data = request.data.copy()
    if email:
        data['email'] = email
    serializer = UserSerializer(data=data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = serializer.save(is_verified=False)

    try:
        send_verification_email(request, user)
    except Exception:
        logger.exception(f"Verification email failed for {user.email}")
        user.delete()  # Avoid orphaned account
        return Response({
            "error": _("Failed to send verification email. Please try again.")
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"User registered: {user.email}")
    return Response({
        "message": _("Registration successful. Please check your email to verify your account.")
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """
    API Endpoint: POST /api/auth/login/
    Authenticates user by email and password.
    Blocks login if email is not verified.
    """
    email = (request.data.get('email') or '').strip().lower()
    password = request.data.get('password')

    if not email or not password:
        return Response({
            "error": _("Email and password are required.")
        }, status=status.HTTP_400_BAD_REQUEST)

    user = authenticate(request, email=email, password=password)
    if not user:
        inactive = User.objects.filter(email__iexact=email, is_active=False).first()
        if inactive and inactive.check_password(password):
            return Response({
                "error": _("This account has been deactivated.")
            }, status=status.HTTP_403_FORBIDDEN)
        logger.warning(f"Failed login attempt for {email}")
        return Response({
            "error": _("Invalid credentials.")
        }, status=status.HTTP_401_UNAUTHORIZED)

    if not user.is_verified:
        return Response({
            "error": _("Email not verified. Please check your inbox for the verification link.")
        }, status=status.HTTP_403_FORBIDDEN)

    # One active token per user
    Token.objects.filter(user=user).delete()
    token = Token.objects.create(user=user)

    return Response({
        "token": token.key,
        "user": ProfileSerializer(user).data,
    }, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    Token.objects.filter(user=request.user).delete()
    return Response({"message": _("Logged out.")}, status=status.HTTP_200_OK)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def profile(request):
    """
    API Endpoint: GET/PATCH /api/auth/profile/
    Returns or updates the authenticated user's profile.
    """
    if request.method == 'GET':
        return Response(ProfileSerializer(request.user).data)

    serializer = ProfileSerializer(request.user, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([AllowAny])
def verify_email(request, token):
    """
    API Endpoint: GET /api/auth/verify-email/<token>/
    Verifies user's email using token and redirects to the frontend
    /verify-email page with ?status=success|expired|invalid.
    """
    try:
        user = User.objects.get(verification_token=token)
    except User.DoesNotExist:
        return HttpResponseRedirect(f"{settings.FRONTEND_URL}/verify-email?status=invalid")

    if user.verification_expired():
        logger.info(f"Expired verification token used for {user.email}")
        return HttpResponseRedirect(f"{settings.FRONTEND_URL}/verify-email?status=expired")

    user.mark_verified()
    logger.info(f"Email verified: {user.email}")
    return HttpResponseRedirect(f"{settings.FRONTEND_URL}/verify-email?status=success")


@api_view(['POST'])
@permission_classes([AllowAny])
def resend_verification(request):
    """
    API Endpoint: POST /api/auth/resend-verification/
    Always answers 200, whether or not the email has an account.
    """
    email = (request.data.get('email') or '').strip().lower()
    user = User.objects.filter(email__iexact=email, is_verified=False).first() if email else None
    if user:
        try:
            send_verification_email(request, user)
        except Exception:
            logger.exception(f"Resending verification email failed for {email}")

    return Response({
        "message": _("If an unverified account exists for this email, a new link has been sent.")
    }, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def become_host(request):
    """API Endpoint: POST /api/auth/become-host/"""
    user = request.user
    if user.role == 'guest':
        user.role = 'host'
        user.save(update_fields=['role'])
        logger.info(f"User {user.email} upgraded to host")
    return Response(ProfileSerializer(user).data, status=status.HTTP_200_OK)


# --- Passwords ---

def make_password_reset_token(user):
    """Single URL-safe token: "<uidb64>.<token>". Invalid once the password changes or after PASSWORD_RESET_TIMEOUT."""
    uidb64 = urlsafe_base64_encode(force_bytes(user.pk))
    return f"{uidb64}.{default_token_generator.make_token(user)}"


def user_for_password_reset_token(reset_token):
    uidb64, _sep, token = (reset_token or '').partition('.')
    try:
        user = User.objects.get(pk=force_str(urlsafe_base64_decode(uidb64)), is_active=True)
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        return None
    if not default_token_generator.check_token(user, token):
        return None
    return user


def send_password_reset_email(user):
    """Render and send the reset link. Raises on SMTP failure."""
    reset_url = f"{settings.FRONTEND_URL}/reset-password/{make_password_reset_token(user)}"

    with translation.override(user.preferred_language):
        html_content = render_to_string('emails/password_reset.html', {
            'user': user,
            'reset_url': reset_url,
            'expires_minutes': settings.PASSWORD_RESET_TIMEOUT // 60,
            'frontend_url': settings.FRONTEND_URL,
        })
        subject = _("Reset your password")

    msg = EmailMultiAlternatives(
        subject=subject,
        body=strip_tags(html_content),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[user.email],
    )
    msg.attach_alternative(html_content, "text/html")
    msg.send()


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    """
    API Endpoint: POST /api/auth/change-password/
    Body: {"current_password", "new_password"}. Issues a fresh token; older ones stop working.
    """
    serializer = PasswordChangeSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = request.user
    if not user.check_password(serializer.validated_data['current_password']):
        return Response({
            "error": _("Current password is incorrect.")
        }, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password'])

    Token.objects.filter(user=user).delete()
    token = Token.objects.create(user=user)
    logger.info(f"Password changed for {user.email}")
    return Response({
        "message": _("Password updated successfully."),
        "token": token.key,
    }, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([AllowAny])
def forgot_password(request):
    """
    API Endpoint: POST /api/auth/forgot-password/
    Emails a reset link. Like resend-verification, the answer does not reveal whether the account exists.
    """
    email = (request.data.get('email') or '').strip().lower()
    if not email:
        return Response({"error": _("Email is required.")}, status=status.HTTP_400_BAD_REQUEST)

    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user:
        try:
            send_password_reset_email(user)
        except Exception:
            logger.exception(f"Password reset email failed for {email}")
            return Response({
                "error": _("Password reset email could not be sent. Please try again later.")
            }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        logger.info(f"Password reset requested for {email}")

    return Response({
        "message": _("If an account exists for this email, a password reset link has been sent.")
    }, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password(request, token):
    """
    API Endpoint: POST /api/auth/reset-password/<token>/
    Body: {"password"}. Signs the user out everywhere; they log in again with the new password.
    """
    user = user_for_password_reset_token(token)
    if user is None:
        return Response({
            "error": _("Invalid or expired reset token.")
        }, status=status.HTTP_400_BAD_REQUEST)

    serializer = PasswordResetSerializer(data=request.data, context={'user': user})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(serializer.validated_data['password'])
    user.save(update_fields=['password'])
    Token.objects.filter(user=user).delete()
    logger.info(f"Password reset completed for {user.email}")
    return Response({
        "message": _("Your password has been reset. You can now log in.")
    }, status=status.HTTP_200_OK)
