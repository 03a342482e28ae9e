"""orders.management.commands.seed_vouchers"""

from decimal import Decimal as D

from django.core.management.base import BaseCommand

from orders.models import Voucher
from orders.vouchers import FOUNDING_MEMBER_VOUCHER


class Command(BaseCommand):
    help = "Seed the storefront vouchers. Idempotent, safe to run multiple times."

    def add_arguments(self, parser):
        parser.add_argument(
            "--with-samples",
            action="store_true",
            help="Also create sample percentage / fixed vouchers for local testing.",
        )

    def handle(self, *args, **opts):
        fm, created = Voucher.objects.get_or_create(
            code=FOUNDING_MEMBER_VOUCHER,
            defaults={
                "description": "Founding member: app subscription included",
                "discount_type": Voucher.DiscountType.FIXED,
                "discount_value": D("120.00"),
                "founding_members_only": True,
            },
        )
        self.stdout.write(f"{'Created' if created else 'Kept'} {fm.code}")

        if opts["with_samples"]:
            samples = [
                ("WELCOME10", Voucher.DiscountType.PERCENTAGE, D("10.00"), D("50.00")),
                ("FLAT25", Voucher.DiscountType.FIXED, D("25.00"), None),
            ]
            for code, kind, value, cap in samples:
                v, created = Voucher.objects.get_or_create(
                    code=code,
                    defaults={"discount_type": kind, "discount_value": value, "max_discount_amount": cap},
                )
                self.stdout.write(f"{'Created' if created else 'Kept'} {v.code}")

        self.stdout.write(self.style.SUCCESS("Vouchers seeded."))
