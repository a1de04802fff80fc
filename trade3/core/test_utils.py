"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from trade3.core.utils import get_next_code
from trade3.locations.models import Store, Cashbox
from trade3.catalog.models import Category, Product, Barcode, PriceType, Price
from trade3.parties.models import Vendor, Client
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', role=User.ROLE_USER, **extra_fields):
        """Create a test user"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(email=email, password=password, role=role, **extra_fields)

    @staticmethod
    def create_admin(email=None, password='testpass123'):
        """Create a user with the ADMIN role"""
        return TestDataFactory.create_user(email=email, password=password, role=User.ROLE_ADMIN)

    @staticmethod
    def create_store(name=None, address=None, is_active=True):
        """Create a test store"""
        if not name:
            name = f'Store_{TestDataFactory.random_string(6)}'
        return Store.objects.create(
            name=name,
            address=address or f'Test Address {name}',
            phone='1234567890',
            is_active=is_active,
        )

    @staticmethod
    def create_cashbox(store=None, name=None):
        """Create a test cashbox"""
        if not store:
            store = TestDataFactory.create_store()
        if not name:
            name = f'Cashbox_{TestDataFactory.random_string(4)}'
        return Cashbox.objects.create(store=store, name=name)

    @staticmethod
    def create_category(name=None, parent=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(name=name, parent=parent)

    @staticmethod
    def create_product(name=None, category=None, article='', barcodes=None):
        """Create a test product with a generated code"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not category:
            category = TestDataFactory.create_category()
        product = Product.objects.create(
            name=name,
            code=get_next_code('product'),
            article=article,
            category=category,
        )
        for value in barcodes or []:
            Barcode.objects.create(product=product, value=value)
        return product

    @staticmethod
    def create_price_type(name=None):
        """Create a test price type"""
        if not name:
            name = f'PriceType_{TestDataFactory.random_string(6)}'
        return PriceType.objects.create(name=name)

    @staticmethod
    def create_price(product, price_type, value=Decimal('100.00')):
        """Set a current price directly, bypassing price-change documents"""
        return Price.objects.create(product=product, price_type=price_type, value=value)

    @staticmethod
    def create_vendor(name=None, **extra_fields):
        """Create a test vendor"""
        if not name:
            name = f'Vendor_{TestDataFactory.random_string(6)}'
        return Vendor.objects.create(name=name, phone='1234567890', **extra_fields)

    @staticmethod
    def create_client(name=None, **extra_fields):
        """Create a test client"""
        if not name:
            name = f'Client_{TestDataFactory.random_string(6)}'
        return Client.objects.create(name=name, phone='1234567890', **extra_fields)

    @staticmethod
    def create_purchase(store, items, status=None, date=None, vendor=None, author=None):
        """
        Create a purchase through its workflow.

        ``items`` is a list of (product, quantity, price) tuples.
        """
        from trade3.documents.models import STATUS_DRAFT
        from trade3.documents.services import purchase_workflow

        data = {'store': store, 'vendor': vendor}
        if date is not None:
            data['date'] = date
        return purchase_workflow.create(
            data,
            items=[
                {'product': product, 'quantity': Decimal(str(quantity)), 'price': Decimal(str(price))}
                for product, quantity, price in items
            ],
            status=status or STATUS_DRAFT,
            author=author,
        )

    @staticmethod
    def create_stock(store, product, quantity, price, date=None):
        """Receive goods into a store with a completed purchase"""
        from trade3.documents.models import STATUS_COMPLETED

        return TestDataFactory.create_purchase(
            store, [(product, quantity, price)], status=STATUS_COMPLETED, date=date,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
