import logging
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from campus.models import Post

logger = logging.getLogger(__name__)


def delete_old_posts(days=None):
    """
    Delete main-feed posts older than ``days`` (default POST_RETENTION_DAYS).

    Club posts are kept.

    Returns:
        int: Number of posts deleted
    """
    if days is None:
        days = settings.POST_RETENTION_DAYS
    cutoff = timezone.now() - timedelta(days=days)
    old_posts = Post.objects.filter(group__isnull=True, created_at__lt=cutoff)

    count = 0
    for post in old_posts.iterator():
        if post.image:
            post.image.delete(save=False)
        post.delete()
        count += 1

    logger.info("Deleted %s posts older than %s days", count, days)
    return count


class Command(BaseCommand):
    help = "Delete feed posts older than the retention period"

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help=f"Retention in days (default: {settings.POST_RETENTION_DAYS})",
        )

    def handle(self, *args, **options):
        days = options['days']
        if days is not None and days < 1:
            raise CommandError("--days must be at least 1")
        count = delete_old_posts(days)
        self.stdout.write(self.style.SUCCESS(f"Deleted {count} old posts"))
