"""
================================================================================
BOSS-Y CAMPUS NETWORK - CUSTOM MIDDLEWARE
================================================================================

@file        middleware.py
@description Timezone activation and the admin-approval gate

MODULE PURPOSE
================================================================================
1. TimezoneMiddleware
   - Activates the user's profile timezone for datetime display
   - Falls back to UTC for anonymous users or invalid timezones

2. ApprovalRequiredMiddleware
   - Keeps signed-in but unapproved users on the pending-approval page
   - Admins and superusers are never held

MIDDLEWARE ORDER
================================================================================
Both classes read request.user, so they must sit after
django.contrib.auth.middleware.AuthenticationMiddleware.

================================================================================
"""

import pytz
from django.conf import settings
from django.shortcuts import redirect
from django.urls import reverse
from django.utils import timezone


# ============================================================================
# TIMEZONE MIDDLEWARE
# ============================================================================

class TimezoneMiddleware:
    """
    Activate user-specific timezone for datetime display.

    Error Handling:
        - pytz.UnknownTimeZoneError: Invalid timezone string -> UTC
        - AttributeError: User has no timezone attribute -> UTC
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.user.is_authenticated:
            try:
                timezone.activate(pytz.timezone(request.user.timezone))
            except (pytz.UnknownTimeZoneError, AttributeError):
                timezone.activate(pytz.UTC)
        else:
            timezone.activate(pytz.UTC)

        return self.get_response(request)


# ============================================================================
# APPROVAL GATE MIDDLEWARE
# ============================================================================

class ApprovalRequiredMiddleware:
    """
    Redirect unapproved accounts to the pending-approval page.

    Self-registered users start with is_approved=False. Until an admin
    approves them they can only reach the pending page, log out, or load
    static/media files.

    Flow:
        1. Anonymous or approved user -> continue
        2. Path is exempt -> continue
        3. Otherwise -> 302 to 'pending_approval'
    """

    EXEMPT_URL_NAMES = ('pending_approval', 'logout')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated and not user.can_use_site:
            if not self._is_exempt(request.path):
                return redirect('pending_approval')
        return self.get_response(request)

    def _is_exempt(self, path):
        exempt_paths = [reverse(name) for name in self.EXEMPT_URL_NAMES]
        prefixes = [settings.STATIC_URL, settings.MEDIA_URL]
        if path in exempt_paths:
            return True
        return any(prefix and path.startswith(prefix) for prefix in prefixes)
