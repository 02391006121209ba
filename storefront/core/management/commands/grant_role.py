from django.core.management.base import BaseCommand, CommandError
from django.contrib.auth import get_user_model
from django.db.models import Q

from storefront.core.models import UserRole
from storefront.core.roles import assign_role

User = get_user_model()


class Command(BaseCommand):
    help = 'Assign a store role (admin, staff or customer) to an existing account'

    def add_arguments(self, parser):
        parser.add_argument('user', help='Username or email of the account')
        parser.add_argument(
            'role',
            choices=[choice for choice, _ in UserRole.ROLE_CHOICES],
            help='Role to grant',
        )
        parser.add_argument(
            '--revoke',
            action='store_true',
            help='Remove the role instead of granting it',
        )

    def handle(self, *args, **options):
        identifier = options['user']
        role = options['role']

        user = User.objects.filter(Q(username__iexact=identifier) | Q(email__iexact=identifier)).first()
        if not user:
            raise CommandError(f'No account found for {identifier}')

        if options['revoke']:
            deleted, _ = UserRole.objects.filter(user=user, role=role).delete()
            if deleted:
                self.stdout.write(self.style.SUCCESS(f'✓ Revoked {role} from {user.username}'))
            else:
                self.stdout.write(f'  {user.username} did not have the {role} role')
            return

        _, created = assign_role(user, role)
        if created:
            self.stdout.write(self.style.SUCCESS(f'✓ Granted {role} to {user.username}'))
        else:
            self.stdout.write(f'  {user.username} already has the {role} role')
