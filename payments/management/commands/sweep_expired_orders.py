from django.core.management.base import BaseCommand

from payments.lifecycle import get_orchestrator


class Command(BaseCommand):
    help = "Decline and remove orders whose TTL passed without anybody polling them"

    def add_arguments(self, parser):
        parser.add_argument("--max", type=int, default=100, help="Max orders to process")
        parser.add_argument("--dry-run", action="store_true", help="Only list what would be cancelled")

    def handle(self, *args, **opts):
        reconciler = get_orchestrator().expiry
        expired = reconciler.sweep(limit=opts["max"], dry_run=opts["dry_run"])

        if not expired:
            self.stdout.write(self.style.SUCCESS("No expired orders to cancel."))
            return

        for order_number in expired:
            verb = "would cancel" if opts["dry_run"] else "cancelled"
            self.stdout.write(f"{order_number}: {verb}")
        self.stdout.write(self.style.SUCCESS(f"Processed {len(expired)} expired orders."))
