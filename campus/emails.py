"""
Transactional emails: sign-up acknowledgement and account approval.

Send failures are logged and reported as a False return value.
"""

import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


def _send(to, subject, template_name, context):
    context = {
        'site_name': settings.SITE_NAME,
        'support_email': settings.DEFAULT_FROM_EMAIL,
        **context,
    }
    try:
        html_content = render_to_string(template_name, context)
        msg = EmailMultiAlternatives(
            subject, strip_tags(html_content), settings.DEFAULT_FROM_EMAIL, [to]
        )
        msg.attach_alternative(html_content, "text/html")
        msg.send()
        return True
    except Exception:
        logger.exception("Failed to send '%s' email to %s", subject, to)
        return False


def send_welcome_email(user):
    return _send(
        user.email,
        f"Welcome to {settings.SITE_NAME} - Account Pending Approval",
        'campus/emails/welcome.html',
        {'user': user},
    )


def send_approval_email(user, login_url):
    return _send(
        user.email,
        f"Your {settings.SITE_NAME} Account Has Been Approved!",
        'campus/emails/approved.html',
        {'user': user, 'login_url': login_url},
    )
