from functools import wraps

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect


def admin_required(view_func):
    """
    Restrict a view to admins (role 'admin' or superuser).

    Anonymous users go to the login page; signed-in non-admins are sent back
    to the feed with an error message.
    """

    @wraps(view_func)
    @login_required
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_admin:
            messages.error(request, "Unauthorized: admin access required.")
            return redirect('feed')
        return view_func(request, *args, **kwargs)

    return _wrapped
