"""
Users — Management Command: seed_roles

Populates the Role table with the system-default roles.

Usage::

    python manage.py seed_roles

Idempotent: safe to re-run (uses get_or_create).

@file users/management/commands/seed_roles.py
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from users.models import Role


SYSTEM_ROLES = [
    {'name': 'SALESPERSON', 'description': 'Records out-of-stock requests and processes returns'},
    {'name': 'WAREHOUSE_KEEPER', 'description': 'Read-only access to the out-of-stock dashboard'},
    {'name': 'ADMINISTRATOR', 'description': 'Full access, including batch delete'},
]


class Command(BaseCommand):
    help = 'Seed system-default RBAC roles.'

    @transaction.atomic
    def handle(self, *args, **options):
        created_count = 0
        for role_data in SYSTEM_ROLES:
            _, created = Role.objects.get_or_create(
                name=role_data['name'],
                defaults={
                    'description': role_data['description'],
                    'is_system': True,
                },
            )
            if created:
                created_count += 1
                self.stdout.write(f'  Created role: {role_data["name"]}')
            else:
                self.stdout.write(f'  Exists: {role_data["name"]}')

        self.stdout.write(self.style.SUCCESS(
            f'Done. {created_count} new roles created, {len(SYSTEM_ROLES) - created_count} already existed.'
        ))
