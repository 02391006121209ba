"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from storefront.core.models import Setting, UserRole, SavedAddress
from storefront.catalog.models import Category, Product, Course
from storefront.orders.models import Order
from decimal import Decimal
import random
import string
import uuid

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_role(user, role=UserRole.ROLE_CUSTOMER):
        """Assign a store role to a user"""
        user_role, _ = UserRole.objects.get_or_create(user=user, role=role)
        return user_role

    @staticmethod
    def create_admin(**kwargs):
        user = TestDataFactory.create_user(**kwargs)
        TestDataFactory.create_role(user, UserRole.ROLE_ADMIN)
        return user

    @staticmethod
    def create_staff(**kwargs):
        user = TestDataFactory.create_user(**kwargs)
        TestDataFactory.create_role(user, UserRole.ROLE_STAFF)
        return user

    @staticmethod
    def create_setting(key, value='', description=''):
        setting, _ = Setting.objects.update_or_create(
            key=key, defaults={'value': value, 'description': description}
        )
        return setting

    @staticmethod
    def create_address(user, address='12 MG Road, Kochi', phone='9876543210', pincode='682001',
                       state='Kerala', is_default=False):
        return SavedAddress.objects.create(
            user=user,
            address=address,
            phone=phone,
            pincode=pincode,
            state=state,
            is_default=is_default
        )

    @staticmethod
    def create_category(name=None, slug=None, order_index=0):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            slug=slug or f'category-{TestDataFactory.random_string(8).lower()}',
            description=f'Test category {name}',
            order_index=order_index
        )

    @staticmethod
    def create_product(name=None, sku=None, slug=None, category=None, price=None, mrp=None, stock=10,
                       tags=None, images=None, difficulty=None, is_featured=False):
        """Create a test product"""
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'
        if price is None:
            price = Decimal('100.00')
        return Product.objects.create(
            name=name,
            slug=slug or f'product-{TestDataFactory.random_string(8).lower()}',
            sku=sku,
            category=category,
            price=price,
            mrp=mrp,
            stock=stock,
            tags=tags or [],
            images=images or [],
            difficulty=difficulty,
            is_featured=is_featured
        )

    @staticmethod
    def create_course(name=None, slug=None, price=None, category='Electronics', is_featured=False,
                      order_index=0, syllabus=None):
        """Create a test course"""
        if not name:
            name = f'Course {TestDataFactory.random_string(6)}'
        if price is None:
            price = Decimal('1999.00')
        return Course.objects.create(
            name=name,
            slug=slug or f'course-{TestDataFactory.random_string(8).lower()}',
            duration='4 weeks',
            price=price,
            category=category,
            is_featured=is_featured,
            order_index=order_index,
            syllabus=syllabus or []
        )

    @staticmethod
    def create_order(status=Order.STATUS_PENDING, items=None, user=None, shipping_fee=None, order_number=None):
        """Create a test order with an items snapshot"""
        if items is None:
            items = [{'product_id': 1, 'name': 'Arduino Uno R3', 'quantity': 2, 'price': '649.00', 'image': None}]
        if shipping_fee is None:
            shipping_fee = Decimal('70.00')
        if not order_number:
            order_number = f'ORD{uuid.uuid4().hex[:12].upper()}'
        subtotal = sum((Decimal(item['price']) * item['quantity'] for item in items), Decimal('0.00'))
        return Order.objects.create(
            order_number=order_number,
            customer_name='Ajay Kumar',
            customer_phone='9876543210',
            customer_email='ajay@test.com',
            shipping_address='12 MG Road, Kochi, 682001, Kerala, India',
            items=items,
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            total=subtotal + shipping_fee,
            status=status,
            user=user
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
