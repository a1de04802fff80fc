"""
Management command to seed a fresh database with a demo catalogue:
a retail price type, two stores with a cashbox each, a category tree and
products with random retail prices.
"""
import random

from django.core.management.base import BaseCommand
from django.db import transaction

from trade3.catalog.models import Category, PriceType, Product, Price
from trade3.core.utils import get_next_code
from trade3.documents.models import STATUS_COMPLETED
from trade3.documents.services import price_change_workflow
from trade3.locations.models import Store, Cashbox

RETAIL_PRICE_TYPE = 'Retail'

STORES = [
    ('Stationery', 'Main cashbox (Stationery)'),
    ('Toys', 'Main cashbox (Toys)'),
]

# name -> children; leaves carry the product name prefix
CATEGORY_TREE = [
    ('Stationery (Category)', [
        ('Writing supplies', [('Pens', 'Smooth'), ('Pencils', 'Simple'), ('Markers', 'Bright')]),
        ('Paper products', [('Notebooks', 'Notebook'), ('Notepads', 'Notepad'), ('Sticky notes', 'Pack')]),
        ('Office supplies', [('Staplers', 'Stapler'), ('Paper clips', 'Box'), ('Folders', 'Folder')]),
    ]),
    ('All toys', [
        ('Soft toys', [('Bears', 'Bear'), ('Bunnies', 'Bunny'), ('Cats', 'Cat')]),
        ('Construction sets', [('Bricks', 'Set'), ('Magnetic', 'Magnet'), ('Wooden', 'Blocks')]),
        ('Educational', [('Puzzles', 'Puzzle'), ('Board games', 'Game'), ('Craft kits', 'Kit')]),
    ]),
]


class Command(BaseCommand):
    help = 'Seed price types, stores, categories and products (safe to run repeatedly)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--products-per-category',
            type=int,
            default=12,
            help='Number of products per leaf category (default: 12)',
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Random seed for reproducible prices',
        )

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        per_category = options['products_per_category']

        with transaction.atomic():
            retail, _ = PriceType.objects.get_or_create(name=RETAIL_PRICE_TYPE)

            for store_name, cashbox_name in STORES:
                store, created = Store.objects.get_or_create(name=store_name)
                Cashbox.objects.get_or_create(store=store, name=cashbox_name)
                if created:
                    self.stdout.write(f"Created store {store_name}")

            leaves = []
            for name, children in CATEGORY_TREE:
                self._create_categories(name, children, None, leaves)

            new_prices = []
            created_products = 0
            for category, prefix in leaves:
                for number in range(1, per_category + 1):
                    product_name = f"{prefix} {category.name} {number}"
                    product = Product.objects.filter(category=category, name=product_name).first()
                    if product is None:
                        product = Product.objects.create(
                            category=category, name=product_name, code=get_next_code('product'),
                        )
                        created_products += 1
                    if not Price.objects.filter(product=product, price_type=retail).exists():
                        new_prices.append({
                            'product': product,
                            'price_type': retail,
                            'new_value': rng.randint(50, 1050),
                        })

            if new_prices:
                document = price_change_workflow.create(
                    {'notes': 'Initial retail prices'},
                    items=new_prices,
                    status=STATUS_COMPLETED,
                )
                self.stdout.write(f"Priced {len(new_prices)} products with {document.code}")

        self.stdout.write(self.style.SUCCESS(
            f"Seeding finished: {len(leaves)} leaf categories, {created_products} new products"
        ))

    def _create_categories(self, name, children, parent, leaves):
        category, created = Category.objects.get_or_create(name=name, defaults={'parent': parent})
        if not created and category.parent_id != (parent.pk if parent else None):
            category.parent = parent
            category.save(update_fields=['parent', 'updated_at'])
        for child in children:
            child_name, payload = child
            if isinstance(payload, str):
                leaf, leaf_created = Category.objects.get_or_create(name=child_name, defaults={'parent': category})
                if not leaf_created and leaf.parent_id != category.pk:
                    leaf.parent = category
                    leaf.save(update_fields=['parent', 'updated_at'])
                leaves.append((leaf, payload))
            else:
                self._create_categories(child_name, payload, category, leaves)
