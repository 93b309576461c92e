from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.catalog.models import Product


class Command(BaseCommand):
    help = "Seed database with a storefront catalog and demo accounts."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset-catalog",
            action="store_true",
            help="Delete products that have never been ordered before seeding.",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        if options["reset_catalog"]:
            removed, _ = Product.objects.filter(order_lines__isnull=True).delete()
            self.stdout.write(self.style.WARNING(f"Removed {removed} products."))

        users_created = self._seed_users()
        products = self._seed_products()

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: users={users_created}, products={len(products)}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin", email="admin@example.com", password="admin123"
            )
            created += 1
        if not User.objects.filter(username="shopper").exists():
            User.objects.create_user(
                "shopper", email="shopper@example.com", password="shopper123"
            )
            created += 1
        return created

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("SFT-001", "Premium E-Commerce Platform", "E-Commerce", Decimal("2999.00")),
            ("SFT-002", "Business Management System", "Business", Decimal("4599.00")),
            ("SFT-003", "Restaurant Ordering App", "Food & Beverage", Decimal("1899.00")),
            ("SFT-004", "Fitness Tracking Dashboard", "Health", Decimal("1499.00")),
            ("SFT-005", "Real Estate Listing Portal", "Real Estate", Decimal("3499.00")),
            ("SFT-006", "Learning Management System", "Education", Decimal("3999.00")),
            ("SFT-007", "Event Booking Platform", "Events", Decimal("2299.00")),
            ("SFT-008", "Portfolio Website Template", "Design", Decimal("49.00")),
            ("SFT-009", "Newsletter Starter Kit", "Marketing", Decimal("19.00")),
            ("SFT-010", "Analytics Widget Pack", "Marketing", Decimal("29.00")),
        ]
        for sku, title, category, price in catalog:
            inventory = random.randint(0, 25)
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "title": title,
                    "description": f"{title} ({category})",
                    "category": category,
                    "price": price,
                    "inventory": inventory,
                    "in_stock": inventory > 0,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products
