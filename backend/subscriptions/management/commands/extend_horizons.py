from datetime import timedelta

from django.core.management.base import BaseCommand

from core_backend.clock import system_clock
from subscriptions.models import Subscription
from subscriptions.services import HorizonService, SubscriptionScheduleService


class Command(BaseCommand):
    help = "Materialize planned deliveries inside the horizon for active subscriptions"

    def add_arguments(self, parser):
        parser.add_argument(
            "--subscription",
            help="Only extend this subscription (UUID)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show which deliveries would be created without writing them",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        subscriptions = Subscription.objects.filter(status=Subscription.Status.ACTIVE)
        if options["subscription"]:
            subscriptions = subscriptions.filter(id=options["subscription"])

        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE - No changes will be made"))

        horizon_end = system_clock.today() + timedelta(days=HorizonService.horizon_days())
        total = 0
        for subscription in subscriptions:
            if dry_run:
                planned = [
                    entry
                    for entry in SubscriptionScheduleService.project(subscription, None)
                    if entry.is_planned and entry.date <= horizon_end
                ]
                for entry in planned:
                    self.stdout.write(f"Subscription {subscription.id}: would create {entry.date} {entry.time}")
                total += len(planned)
            else:
                created = HorizonService.extend(subscription)
                if created:
                    self.stdout.write(f"Subscription {subscription.id}: created {len(created)} deliveries")
                total += len(created)

        if dry_run:
            self.stdout.write(
                self.style.WARNING(f"DRY RUN: Would create {total} deliveries across {subscriptions.count()} subscriptions")
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(f"Created {total} deliveries across {subscriptions.count()} subscriptions")
            )
