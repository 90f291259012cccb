from django.core.management.base import BaseCommand
from django.contrib.auth.models import Group

from proxyauth.config import get_auth_config
from proxyauth.constants.config_keys import ConfigKeys


class Command(BaseCommand):
    help = 'Show the loaded proxyauth configuration and the groups it assigns'

    def add_arguments(self, parser):
        parser.add_argument(
            '--create',
            action='store_true',
            help='Create configured groups that do not exist yet',
        )

    def handle(self, *args, **options):
        from django.apps import apps

        app_config = apps.get_app_config('proxyauth')
        config = get_auth_config()

        if app_config.config_error is not None:
            self.stdout.write(self.style.WARNING(f'Using fallback configuration: {app_config.config_error}'))

        flags = {
            ConfigKeys.CREATE_USERS: config.create_users,
            ConfigKeys.UPDATE_INFO: config.update_info,
            ConfigKeys.UPDATE_ROLES: config.update_roles,
            ConfigKeys.CONVERT_TO_UTF8: config.convert_to_utf8,
        }
        for key in ConfigKeys.get_flag_keys():
            self.stdout.write(f'{key}: {flags[key]}')

        self.stdout.write(f'{ConfigKeys.FULLNAME_HEADER}: {config.full_name_header or "-"}')
        self.stdout.write(f'{ConfigKeys.EMAIL_HEADER}: {config.email_header or "-"}')

        if config.role_mapping_enabled:
            self.stdout.write(
                f'{ConfigKeys.ROLE_ATTRIBUTE_NAMES}: {", ".join(sorted(config.attribute_headers))}'
            )
            for attribute_value in sorted(config.role_mapping):
                groups = ', '.join(config.role_mapping[attribute_value])
                self.stdout.write(f'  {attribute_value} -> {groups}')
        else:
            self.stdout.write('Attribute to group mapping disabled')

        self.stdout.write('')
        self.stdout.write('Configured groups:')

        existing = set(
            Group.objects.filter(name__in=config.referenced_groups()).values_list('name', flat=True)
        )
        missing = sorted(config.referenced_groups() - existing)

        for name in sorted(existing):
            self.stdout.write(f'  ✓ {name}')
        for name in missing:
            self.stdout.write(self.style.WARNING(f'  ✗ {name} (missing, assignments will be skipped)'))

        if missing and options['create']:
            for name in missing:
                Group.objects.get_or_create(name=name)
            self.stdout.write(self.style.SUCCESS(f'Created {len(missing)} missing groups'))
        elif missing:
            self.stdout.write('Run with --create to add the missing groups')
