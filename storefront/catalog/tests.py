"""
Test suite for the catalog module
Tests: helpers, storefront listings, search, kits, categories, courses, home, admin CRUD
"""
from decimal import Decimal
from io import StringIO
from urllib.parse import unquote

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, SimpleTestCase
from rest_framework import status

from storefront.catalog.models import Category, Product, Course
from storefront.catalog.utils import slugify_name, discount_percent
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class CatalogHelperTests(SimpleTestCase):
    """Test slug and discount helpers"""

    def test_slugify_name(self):
        self.assertEqual(slugify_name('Arduino Uno R3'), 'arduino-uno-r3')
        self.assertEqual(slugify_name('Line   Follower\tKit'), 'line-follower-kit')
        self.assertEqual(slugify_name(''), '')

    def test_discount_percent(self):
        self.assertEqual(discount_percent(Decimal('649.00'), Decimal('799.00')), 19)
        self.assertEqual(discount_percent(Decimal('50'), Decimal('100')), 50)
        # 12.5 rounds half up
        self.assertEqual(discount_percent(Decimal('87.50'), Decimal('100')), 13)

    def test_no_discount_without_higher_mrp(self):
        self.assertIsNone(discount_percent(Decimal('100'), None))
        self.assertIsNone(discount_percent(Decimal('100'), Decimal('100')))
        self.assertIsNone(discount_percent(Decimal('120'), Decimal('100')))


class ProductListingTests(TestCase):
    """Test storefront product endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.boards = TestDataFactory.create_category(name='Boards', slug='boards')
        self.uno = TestDataFactory.create_product(
            name='Arduino Uno R3', sku='EDK-UNO', slug='arduino-uno-r3', category=self.boards,
            price=Decimal('649.00'), mrp=Decimal('799.00'), is_featured=True, tags=['arduino'],
            images=['https://cdn.test/uno-front.jpg', 'https://cdn.test/uno-back.jpg']
        )
        self.servo = TestDataFactory.create_product(
            name='SG90 Servo', sku='EDK-SG90', slug='sg90-servo', stock=0, price=Decimal('129.00')
        )
        self.kit = TestDataFactory.create_product(
            name='Line Follower Kit', sku='EDK-KIT-LFR', slug='line-follower-kit',
            tags=['kit', 'robotics'], difficulty='beginner'
        )

    def test_product_list_newest_first(self):
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['slug'] for p in response.data], ['line-follower-kit', 'sg90-servo', 'arduino-uno-r3'])

    def test_product_list_filters(self):
        response = self.client.get('/api/v1/products/?featured=true')
        self.assertEqual([p['slug'] for p in response.data], ['arduino-uno-r3'])

        response = self.client.get('/api/v1/products/?category=boards')
        self.assertEqual([p['slug'] for p in response.data], ['arduino-uno-r3'])

        response = self.client.get(f'/api/v1/products/?category={self.boards.id}')
        self.assertEqual(len(response.data), 1)

        response = self.client.get('/api/v1/products/?tag=robotics')
        self.assertEqual([p['slug'] for p in response.data], ['line-follower-kit'])

    def test_product_card_fields(self):
        response = self.client.get('/api/v1/products/')
        cards = {p['slug']: p for p in response.data}
        self.assertEqual(cards['arduino-uno-r3']['discount_percent'], 19)
        self.assertEqual(cards['arduino-uno-r3']['image'], 'https://cdn.test/uno-front.jpg')
        self.assertTrue(cards['arduino-uno-r3']['in_stock'])
        self.assertIsNone(cards['sg90-servo']['discount_percent'])
        self.assertFalse(cards['sg90-servo']['in_stock'])
        self.assertEqual(cards['sg90-servo']['stock_label'], 'Out of Stock')

    def test_product_by_slug(self):
        response = self.client.get('/api/v1/products/arduino-uno-r3/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sku'], 'EDK-UNO')
        self.assertEqual(len(response.data['images']), 2)
        self.assertEqual(response.data['category_detail']['slug'], 'boards')

    def test_product_not_found(self):
        response = self.client.get('/api/v1/products/no-such-thing/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Product not found')

    def test_kits_only_tagged_products(self):
        response = self.client.get('/api/v1/kits/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['slug'] for p in response.data], ['line-follower-kit'])

        response = self.client.get('/api/v1/kits/?difficulty=advanced')
        self.assertEqual(response.data, [])

        response = self.client.get('/api/v1/kits/?difficulty=expert')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProductSearchTests(TestCase):
    """Test quick search"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_search_by_name_and_sku(self):
        TestDataFactory.create_product(name='ESP32 DevKit', sku='EDK-ESP32')
        TestDataFactory.create_product(name='Ultrasonic Sensor', sku='EDK-HCSR04')

        response = self.client.get('/api/v1/products/search/?q=esp')
        self.assertEqual([r['name'] for r in response.data['results']], ['ESP32 DevKit'])

        response = self.client.get('/api/v1/products/search/?q=hcsr')
        self.assertEqual([r['name'] for r in response.data['results']], ['Ultrasonic Sensor'])

    def test_search_capped_at_ten(self):
        for index in range(12):
            TestDataFactory.create_product(name=f'Resistor Pack {index:02d}')
        response = self.client.get('/api/v1/products/search/?q=resistor')
        self.assertEqual(len(response.data['results']), 10)

    def test_search_echoes_sequence(self):
        response = self.client.get('/api/v1/products/search/?q=x&seq=7')
        self.assertEqual(response.data['seq'], 7)
        self.assertEqual(response.data['query'], 'x')

    def test_blank_search_returns_nothing(self):
        TestDataFactory.create_product()
        response = self.client.get('/api/v1/products/search/?q=%20')
        self.assertEqual(response.data['results'], [])


class CategoryAndCourseTests(TestCase):
    """Test category and course pages"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def test_categories_in_display_order_with_counts(self):
        sensors = TestDataFactory.create_category(name='Sensors', slug='sensors', order_index=2)
        boards = TestDataFactory.create_category(name='Boards', slug='boards', order_index=1)
        TestDataFactory.create_product(category=sensors)
        TestDataFactory.create_product(category=sensors)

        response = self.client.get('/api/v1/categories/')
        self.assertEqual([c['slug'] for c in response.data], ['boards', 'sensors'])
        self.assertEqual(response.data[0]['product_count'], 0)
        self.assertEqual(response.data[1]['product_count'], 2)
        self.assertEqual(boards.products.count(), 0)

    def test_category_detail(self):
        sensors = TestDataFactory.create_category(name='Sensors', slug='sensors')
        TestDataFactory.create_product(name='PIR Sensor', category=sensors)
        response = self.client.get('/api/v1/categories/sensors/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['category']['name'], 'Sensors')
        self.assertEqual([p['name'] for p in response.data['products']], ['PIR Sensor'])

        response = self.client.get('/api/v1/categories/missing/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_courses(self):
        TestDataFactory.create_course(name='Robotics 101', slug='robotics-101', category='Robotics', order_index=2)
        TestDataFactory.create_course(name='Arduino Basics', slug='arduino-basics', category='Electronics',
                                      order_index=1, is_featured=True,
                                      syllabus=[{'title': 'Intro', 'topics': ['Blink']}])

        response = self.client.get('/api/v1/courses/')
        self.assertEqual([c['slug'] for c in response.data['results']], ['arduino-basics', 'robotics-101'])
        self.assertEqual(response.data['categories'], ['Electronics', 'Robotics'])

        response = self.client.get('/api/v1/courses/?featured=true')
        self.assertEqual([c['slug'] for c in response.data['results']], ['arduino-basics'])

        response = self.client.get('/api/v1/courses/arduino-basics/')
        self.assertEqual(response.data['syllabus'][0]['topics'], ['Blink'])

    def test_course_enrollment_link(self):
        TestDataFactory.create_course(name='Arduino Basics', slug='arduino-basics', price=Decimal('1999.00'))
        response = self.client.get('/api/v1/courses/arduino-basics/')
        url = response.data['enroll_whatsapp_url']
        self.assertTrue(url.startswith('https://wa.me/919876543210?text='))
        self.assertEqual(
            unquote(url.split('?text=', 1)[1]),
            "Hi! I want to enroll in:\n\n*Arduino Basics*\nPrice: ₹1999.00\nDuration: 4 weeks\n\n"
            "Please help me with the enrollment process."
        )

    def test_course_enrollment_uses_store_number(self):
        TestDataFactory.create_setting('whatsapp_number', '+91 90000 11111')
        TestDataFactory.create_course(slug='robotics-101')
        response = self.client.get('/api/v1/courses/robotics-101/')
        self.assertTrue(response.data['enroll_whatsapp_url'].startswith('https://wa.me/919000011111?text='))

    def test_home_payload_and_cache_invalidation(self):
        for index in range(8):
            TestDataFactory.create_product(is_featured=True)
        TestDataFactory.create_course(is_featured=True)

        response = self.client.get('/api/v1/home/')
        self.assertEqual(len(response.data['featured_products']), 6)
        self.assertEqual(len(response.data['featured_courses']), 1)

        TestDataFactory.create_course(is_featured=True)
        response = self.client.get('/api/v1/home/')
        self.assertEqual(len(response.data['featured_courses']), 2)


class CatalogAdminTests(TestCase):
    """Test admin CRUD for products, categories and courses"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff())

    def test_create_product_generates_slug_and_sku(self):
        response = self.client.post('/api/v1/admin/products/', {
            'name': 'Smart Home  Kit',
            'price': '3499.00',
            'stock': 5,
            'tags': 'kit, iot',
            'images': 'https://cdn.test/a.jpg, https://cdn.test/b.jpg',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'smart-home-kit')
        self.assertTrue(response.data['sku'].startswith('SKU-'))
        self.assertEqual(response.data['tags'], ['kit', 'iot'])
        self.assertEqual(response.data['images'], ['https://cdn.test/a.jpg', 'https://cdn.test/b.jpg'])

    def test_create_product_keeps_given_slug_and_sku(self):
        response = self.client.post('/api/v1/admin/products/', {
            'name': 'ESP32', 'slug': 'esp32-devkit', 'sku': 'EDK-ESP32', 'price': '449.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'esp32-devkit')
        self.assertEqual(response.data['sku'], 'EDK-ESP32')

    def test_create_product_rejects_negative_price(self):
        response = self.client.post('/api/v1/admin/products/', {'name': 'Bad', 'price': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data)

    def test_duplicate_slug_rejected(self):
        TestDataFactory.create_product(slug='uno')
        response = self.client.post('/api/v1/admin/products/', {'name': 'Uno', 'slug': 'uno', 'price': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('slug', response.data)

    def test_update_and_delete_product(self):
        product = TestDataFactory.create_product(slug='uno', sku='EDK-UNO')
        response = self.client.patch(f'/api/v1/admin/products/{product.id}/', {'stock': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 0)
        self.assertEqual(response.data['slug'], 'uno')

        response = self.client.put(f'/api/v1/admin/products/{product.id}/', {
            'name': 'Uno Rev 4', 'price': '999.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sku'], 'EDK-UNO')

        response = self.client.delete(f'/api/v1/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.id).exists())

    def test_category_crud(self):
        response = self.client.post('/api/v1/admin/categories/', {'name': 'Motor Drivers', 'order_index': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'motor-drivers')
        category_id = response.data['id']

        response = self.client.patch(f'/api/v1/admin/categories/{category_id}/', {'description': 'H-bridges'}, format='json')
        self.assertEqual(response.data['description'], 'H-bridges')

        response = self.client.delete(f'/api/v1/admin/categories/{category_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Category.objects.filter(pk=category_id).exists())

    def test_deleting_category_keeps_products(self):
        category = TestDataFactory.create_category()
        product = TestDataFactory.create_product(category=category)
        self.client.delete(f'/api/v1/admin/categories/{category.id}/')
        product.refresh_from_db()
        self.assertIsNone(product.category)

    def test_course_syllabus_as_json_text(self):
        response = self.client.post('/api/v1/admin/courses/', {
            'name': 'IoT Bootcamp', 'duration': '6 weeks', 'price': '4999.00', 'category': 'IoT',
            'syllabus': '[{"title": "MQTT", "topics": ["Brokers", "Topics"]}]',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'iot-bootcamp')
        self.assertEqual(response.data['syllabus'][0]['title'], 'MQTT')

    def test_course_malformed_syllabus_rejected(self):
        response = self.client.post('/api/v1/admin/courses/', {
            'name': 'IoT Bootcamp', 'duration': '6 weeks', 'price': '4999.00', 'category': 'IoT',
            'syllabus': '[{"title": ',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('syllabus', response.data)
        self.assertFalse(Course.objects.exists())

    def test_course_update_and_delete(self):
        course = TestDataFactory.create_course(slug='arduino-basics')
        response = self.client.patch(f'/api/v1/admin/courses/{course.id}/', {'syllabus': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.delete(f'/api/v1/admin/courses/{course.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_seed_store_command(self):
        call_command('seed_store', stdout=StringIO())
        self.assertTrue(Product.objects.kits().exists())
        self.assertEqual(Category.objects.count(), 4)
        # Running again creates nothing new
        call_command('seed_store', stdout=StringIO())
        self.assertEqual(Category.objects.count(), 4)
