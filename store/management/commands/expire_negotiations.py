# Expire Negotiations Management Command
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from store.models import Bargain, Challenge


class Command(BaseCommand):
    help = 'Marks overdue bargains and challenges as expired.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report what would expire without saving changes to the database.',
        )
        parser.add_argument(
            '--bargains-only',
            action='store_true',
            help='Expire only bargains.',
        )
        parser.add_argument(
            '--challenges-only',
            action='store_true',
            help='Expire only challenges.',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=1000,
            help='Number of rows updated per statement.',
        )

    def handle(self, *args, **options):
        if options['bargains_only'] and options['challenges_only']:
            raise CommandError('--bargains-only and --challenges-only cannot be combined.')

        if options['batch_size'] < 1:
            raise CommandError('--batch-size must be a positive integer.')

        now = timezone.now()
        dry_run = options['dry_run']
        batch_size = options['batch_size']

        if not options['challenges_only']:
            overdue = Bargain.objects.filter(status__in=Bargain.ACTIVE_STATUSES, expires_at__lte=now)
            count = self.expire(
                Bargain, overdue, Bargain.ACTIVE_STATUSES, batch_size, dry_run,
                {'status': 'expired', 'updated_at': now}
            )
            self.stdout.write(f'Bargains expired: {count}')

        if not options['bargains_only']:
            overdue = Challenge.objects.filter(status='active', expires_at__lte=now)
            count = self.expire(Challenge, overdue, ['active'], batch_size, dry_run, {'status': 'expired'})
            self.stdout.write(f'Challenges expired: {count}')

        if dry_run:
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
        else:
            self.stdout.write(self.style.SUCCESS('Expiry sweep completed successfully.'))

    def expire(self, model, queryset, active_statuses, batch_size, dry_run, changes):
        ids = list(queryset.order_by('pk').values_list('pk', flat=True))
        if dry_run:
            return len(ids)

        total = 0
        for start in range(0, len(ids), batch_size):
            batch = ids[start:start + batch_size]
            with transaction.atomic():
                # Rows answered since the scan are no longer active and stay untouched
                total += model.objects.filter(pk__in=batch, status__in=active_statuses).update(**changes)
        return total
