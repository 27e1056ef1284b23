from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from campus.models import ROLE_ADMIN, User


class Command(BaseCommand):
    help = "Create admin accounts, or promote existing accounts to admin"

    def add_arguments(self, parser):
        parser.add_argument('emails', nargs='+', help="Admin email addresses")
        parser.add_argument(
            '--password',
            required=True,
            help="Initial password for accounts that do not exist yet",
        )

    def handle(self, *args, **options):
        for email in options['emails']:
            email = email.strip().lower()
            user = User.objects.filter(email__iexact=email).first()
            if user:
                user.role = ROLE_ADMIN
                user.is_approved = True
                user.save(update_fields=['role', 'is_approved'])
                self.stdout.write(f"Promoted {email} to admin")
                continue

            try:
                User.objects.provision(
                    email=email,
                    password=options['password'],
                    name=email.split('@')[0],
                    role=ROLE_ADMIN,
                )
            except ValidationError as exc:
                raise CommandError(f"{email}: {'; '.join(exc.messages)}")
            self.stdout.write(self.style.SUCCESS(f"Created admin {email}"))
