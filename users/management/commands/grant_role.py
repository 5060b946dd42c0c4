"""
Users — Management Command: grant_role

Grants (or with --revoke, withdraws) a role for the user with the given
phone number.

Usage::

    python manage.py grant_role +25761000000 SALESPERSON
    python manage.py grant_role +25761000000 SALESPERSON --revoke

@file users/management/commands/grant_role.py
"""

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import ResourceNotFoundError
from users.models import User
from users.services import RoleService


class Command(BaseCommand):
    help = 'Grant or revoke a role for a user.'

    def add_arguments(self, parser):
        parser.add_argument('phone')
        parser.add_argument('role')
        parser.add_argument('--revoke', action='store_true')

    def handle(self, *args, **options):
        try:
            user = User.objects.get(phone=options['phone'])
        except User.DoesNotExist:
            raise CommandError(f'No user with phone {options["phone"]}.')

        try:
            if options['revoke']:
                RoleService.revoke_role(user=user, role_name=options['role'])
                self.stdout.write(self.style.SUCCESS(f'Revoked {options["role"]} from {user.phone}.'))
            else:
                RoleService.assign_role(user=user, role_name=options['role'])
                self.stdout.write(self.style.SUCCESS(f'Granted {options["role"]} to {user.phone}.'))
        except ResourceNotFoundError as exc:
            raise CommandError(str(exc.detail))
