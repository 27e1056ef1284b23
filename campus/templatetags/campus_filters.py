from django import template

from campus.models import youtube_embed_url

register = template.Library()


@register.filter
def youtube_embed(url):
    return youtube_embed_url(url) or ''


@register.filter
def humanize_action(action_type):
    """'approve_user' -> 'Approve user'"""
    if not action_type:
        return ''
    return str(action_type).replace('_', ' ').capitalize()


@register.filter
def initials(name):
    parts = (name or '').split()
    return ''.join(p[0] for p in parts[:2]).upper() or '?'
