"""
Management command to seed the database with demo data for an event stall.

Generates:
- A handful of merchandise categories
- Inventory items in several sizes with random stock levels
- One admin and one POS operator account

Usage:
    python manage.py seed_data
    python manage.py seed_data --clear  # Clear existing data first
"""
import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import Profile, Role
from inventory.models import Category, InventoryItem

CATALOG = {
    'Apparel': [
        ('Event T-Shirt', 'Stagewear', ['S', 'M', 'L', 'XL'], Decimal('499.00')),
        ('Hoodie', 'Stagewear', ['M', 'L', 'XL'], Decimal('1299.00')),
        ('Cap', 'HeadRoom', ['Free'], Decimal('349.00')),
    ],
    'Accessories': [
        ('Wristband', 'Loopline', ['Free'], Decimal('99.00')),
        ('Tote Bag', 'Carryall', ['Free'], Decimal('299.00')),
        ('Sticker Pack', 'Papercut', ['Free'], Decimal('79.00')),
    ],
    'Beverages': [
        ('Mineral Water', 'ClearSpring', ['500ml', '1L'], Decimal('30.00')),
        ('Cold Coffee', 'BrewCo', ['250ml'], Decimal('120.00')),
    ],
}

DEMO_PASSWORD = 'changeme'


class Command(BaseCommand):
    help = 'Seed the database with demo categories, inventory and user accounts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding',
        )
        parser.add_argument(
            '--max-stock',
            type=int,
            default=40,
            help='Upper bound for random stock levels (default: 40)',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self._clear_data()

        self.stdout.write('Starting database seeding...')

        with transaction.atomic():
            categories = self._create_categories()
            self._create_items(categories, options['max_stock'])
            self._create_users()

        self.stdout.write(self.style.SUCCESS('Database seeding completed successfully!'))

    def _clear_data(self):
        """Clear all existing data."""
        from orders.models import OrderItem, Order

        OrderItem.objects.all().delete()
        Order.objects.all().delete()
        InventoryItem.objects.all().delete()
        Category.objects.all().delete()

        self.stdout.write(self.style.WARNING('All existing data cleared.'))

    def _create_categories(self):
        categories = {}
        for name in CATALOG:
            category, created = Category.objects.get_or_create(name=name)
            categories[name] = category
            if created:
                self.stdout.write(f'  Created category: {name}')
        return categories

    def _create_items(self, categories, max_stock):
        items = []
        for category_name, entries in CATALOG.items():
            for name, brand, sizes, price in entries:
                for size in sizes:
                    items.append(InventoryItem(
                        name=name,
                        brand=brand,
                        category=categories[category_name],
                        size=size,
                        price=price,
                        cost=(price * Decimal('0.6')).quantize(Decimal('0.01')),
                        quantity=random.randint(0, max_stock),
                        min_stock=5,
                    ))

        InventoryItem.objects.bulk_create(items)
        self.stdout.write(self.style.SUCCESS(f'Created {len(items)} inventory items'))

    def _create_users(self):
        User = get_user_model()
        for email, name, role in (
            ('admin@example.com', 'Event Admin', Role.ADMIN),
            ('pos@example.com', 'Counter One', Role.POS),
        ):
            if User.objects.filter(username=email).exists():
                continue
            user = User.objects.create_user(username=email, email=email, password=DEMO_PASSWORD)
            Profile.objects.create(user=user, name=name, role=role)
            self.stdout.write(f'  Created {role} account {email} (password: {DEMO_PASSWORD})')
