from django.core.management.base import BaseCommand, CommandError

from payments.services.reconciler import BookingPaymentReconciler


class Command(BaseCommand):
    help = "Re-pair every booking with its authoritative payment."

    def add_arguments(self, parser):
        parser.add_argument(
            "--fail-on-errors",
            action="store_true",
            help="Exit with an error when any payment could not be reconciled.",
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING("Synchronizing payments with bookings"))
        report = BookingPaymentReconciler().resync_all()

        self.stdout.write(f"  Checked: {report.checked}")
        self.stdout.write(self.style.SUCCESS(f"  Corrected: {report.corrected_count}"))
        for booking_id in report.corrected:
            self.stdout.write(f"    booking {booking_id}")
        self.stdout.write(f"  Unchanged: {report.unchanged}")
        self.stdout.write(f"  Superseded: {len(report.superseded)}")

        if report.orphaned:
            self.stdout.write(
                self.style.WARNING(
                    "  Orphaned payments: " + ", ".join(str(payment_id) for payment_id in report.orphaned)
                )
            )
        for payment_id, message in report.errors.items():
            self.stderr.write(self.style.ERROR(f"  Payment {payment_id}: {message}"))

        if report.errors and options["fail_on_errors"]:
            raise CommandError(f"{len(report.errors)} payment(s) could not be reconciled.")
        self.stdout.write(self.style.SUCCESS("Done."))
