from django.conf import settings
from django.core.management.base import BaseCommand

from inventra.core.models import User
from inventra.core.roles import Role


class Command(BaseCommand):
    help = 'Create the default admin account if it does not exist yet'

    def add_arguments(self, parser):
        parser.add_argument('--email', type=str, default=None, help='Admin email (default: DEFAULT_ADMIN_EMAIL)')
        parser.add_argument('--password', type=str, default=None, help='Admin password (default: DEFAULT_ADMIN_PASSWORD)')
        parser.add_argument('--name', type=str, default='Admin User', help='Display name')

    def handle(self, *args, **options):
        email = (options.get('email') or settings.DEFAULT_ADMIN_EMAIL).strip().lower()
        password = options.get('password') or settings.DEFAULT_ADMIN_PASSWORD

        if User.objects.filter(email__iexact=email).exists():
            self.stdout.write(self.style.WARNING(f'Admin {email} already exists'))
            return

        User.objects.create_user(
            username=email,
            email=email,
            password=password,
            name=options.get('name') or 'Admin User',
            role=Role.ADMIN,
            is_staff=True,
            is_superuser=True,
        )
        self.stdout.write(self.style.SUCCESS(f'Default admin created: {email}'))
