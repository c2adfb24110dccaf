import os

from django.core.management.base import BaseCommand
from django.utils.crypto import get_random_string

from apps.users.models import FestUser


class Command(BaseCommand):
    help = 'Create the first admin account (ADMIN_EMAIL / ADMIN_PASSWORD from the environment)'

    def add_arguments(self, parser):
        parser.add_argument('--email', default=os.environ.get('ADMIN_EMAIL', 'admin@felicity.fest'))
        parser.add_argument('--password', default=os.environ.get('ADMIN_PASSWORD'))

    def handle(self, *args, **options):
        email = options['email'].lower()
        password = options['password']

        if FestUser.objects.filter(email=email).exists():
            self.stdout.write(self.style.WARNING(f'Admin already exists: {email}'))
            return

        if not password:
            password = get_random_string(16)
            self.stdout.write(f'Generated password: {password}')

        FestUser.objects.create_superuser(email=email, password=password)
        self.stdout.write(self.style.SUCCESS(f'Admin user created: {email}'))
        self.stdout.write(self.style.WARNING('Change the password after the first login!'))
