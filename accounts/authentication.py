# accounts/authentication.py
from django.utils import translation
from rest_framework.authentication import TokenAuthentication


class LanguageTokenAuthentication(TokenAuthentication):
    """
    Token authentication that also activates the user's preferred language.

    An explicit Accept-Language header always wins, so a client can still
    switch language per request.
    """

    def authenticate(self, request):
        result = super().authenticate(request)
        if result is not None:
            user = result[0]
            if 'HTTP_ACCEPT_LANGUAGE' not in request.META and user.preferred_language:
                translation.activate(user.preferred_language)
                request.LANGUAGE_CODE = user.preferred_language
        return result
