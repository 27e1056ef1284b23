"""
================================================================================
BOSS-Y CAMPUS NETWORK - CONTEXT PROCESSORS
================================================================================

@file        context_processors.py
@description Navbar badge counts available in every template

CONTEXT PROCESSORS DEFINED
================================================================================
1. pending_counts() - Items waiting on the current user's decision

Available in all templates as:
    {{ pending_approvals_count }}      (admins only, else 0)
    {{ pending_join_requests_count }}  (requests to clubs/projects you own)

PERFORMANCE CONSIDERATIONS
================================================================================
Runs on every request: .count() only, early return for anonymous users.

================================================================================
"""

from .models import GroupJoinRequest, ProjectJoinRequest, User, ROLE_ADMIN, STATUS_PENDING


def pending_counts(request):
    """
    Inject pending approval and join request counts into all templates.

    Args:
        request: Django HttpRequest object

    Returns:
        dict: pending_approvals_count, pending_join_requests_count
    """
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return {}

    pending_approvals = 0
    if user.is_admin:
        pending_approvals = (
            User.objects.filter(is_approved=False, is_active=True)
            .exclude(role=ROLE_ADMIN)
            .count()
        )

    pending_requests = (
        GroupJoinRequest.objects.filter(group__creator=user, status=STATUS_PENDING).count()
        + ProjectJoinRequest.objects.filter(project__user=user, status=STATUS_PENDING).count()
    )

    return {
        'pending_approvals_count': pending_approvals,
        'pending_join_requests_count': pending_requests,
    }
