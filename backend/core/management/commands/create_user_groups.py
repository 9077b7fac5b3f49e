from django.core.management.base import BaseCommand
from django.contrib.auth.models import Group, Permission
from backend.core.permissions import ADMIN_GROUP

SHOP_GROUP = 'Shop'

# Apps whose records shop staff receive, ship, move and import day to day
SHOP_APPS = ('boms', 'containers', 'locations', 'catalog')


class Command(BaseCommand):
    help = 'Create the user groups: Shop (receive, ship, import) and Admin (may also delete shared records)'

    def handle(self, *args, **options):
        groups_config = [
            {
                'name': SHOP_GROUP,
                'description': 'Shop staff - receive/ship containers, import BOMs, manage shelves, no deletes',
            },
            {
                'name': ADMIN_GROUP,
                'description': 'Shop leads and developers - full access including deletes',
            },
        ]

        created_count = 0
        existing_count = 0

        for group_config in groups_config:
            group, created = Group.objects.get_or_create(name=group_config['name'])

            if created:
                self.stdout.write(self.style.SUCCESS(f'Created group: {group_config["name"]}'))
                created_count += 1
            else:
                self.stdout.write(f'  Group already exists: {group_config["name"]}')
                existing_count += 1

            if group_config['name'] == ADMIN_GROUP:
                group.permissions.set(Permission.objects.all())
                self.stdout.write('  Added all permissions to Admin group')
            else:
                permissions = Permission.objects.filter(
                    content_type__app_label__in=SHOP_APPS,
                ).exclude(codename__startswith='delete_')
                group.permissions.set(permissions)
                self.stdout.write(f'  Added {permissions.count()} permissions to {group_config["name"]} group')

        self.stdout.write(self.style.SUCCESS(
            f'\nCompleted: {created_count} groups created, {existing_count} groups already existed'
        ))
