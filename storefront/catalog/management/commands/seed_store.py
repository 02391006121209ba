"""
Management command to seed demo categories, products, courses and store settings
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from storefront.catalog.models import Category, Product, Course
from storefront.catalog.utils import slugify_name
from storefront.core.models import Setting


CATEGORIES = [
    ('Microcontrollers', 'Development boards and MCUs'),
    ('Sensors', 'Temperature, distance, motion and more'),
    ('Motors & Drivers', 'DC, servo and stepper motors with driver boards'),
    ('DIY Kits', 'Everything in one box to build a project'),
]

PRODUCTS = [
    {
        'name': 'Arduino Uno R3', 'sku': 'EDK-UNO-R3', 'category': 'Microcontrollers',
        'price': '649.00', 'mrp': '799.00', 'stock': 40, 'tags': ['arduino', 'board'],
        'is_featured': True,
    },
    {
        'name': 'ESP32 DevKit V1', 'sku': 'EDK-ESP32', 'category': 'Microcontrollers',
        'price': '449.00', 'mrp': '499.00', 'stock': 25, 'tags': ['wifi', 'board'],
        'is_featured': True,
    },
    {
        'name': 'HC-SR04 Ultrasonic Sensor', 'sku': 'EDK-HCSR04', 'category': 'Sensors',
        'price': '89.00', 'mrp': None, 'stock': 120, 'tags': ['distance'],
    },
    {
        'name': 'SG90 Micro Servo', 'sku': 'EDK-SG90', 'category': 'Motors & Drivers',
        'price': '129.00', 'mrp': '149.00', 'stock': 0, 'tags': ['servo'],
    },
    {
        'name': 'Line Follower Robot Kit', 'sku': 'EDK-KIT-LFR', 'category': 'DIY Kits',
        'price': '1899.00', 'mrp': '2499.00', 'stock': 10, 'tags': ['kit', 'robotics'],
        'difficulty': 'beginner', 'is_featured': True,
        'bom': [
            {'part': 'Arduino Uno R3', 'quantity': 1, 'sku': 'EDK-UNO-R3'},
            {'part': 'IR Sensor Module', 'quantity': 2, 'sku': ''},
            {'part': 'L298N Motor Driver', 'quantity': 1, 'sku': ''},
        ],
    },
    {
        'name': 'Smart Home Automation Kit', 'sku': 'EDK-KIT-HOME', 'category': 'DIY Kits',
        'price': '3499.00', 'mrp': '3999.00', 'stock': 5, 'tags': ['kit', 'iot'],
        'difficulty': 'intermediate',
        'bom': [
            {'part': 'ESP32 DevKit V1', 'quantity': 1, 'sku': 'EDK-ESP32'},
            {'part': '4-Channel Relay Board', 'quantity': 1, 'sku': ''},
        ],
    },
]

COURSES = [
    {
        'name': 'Arduino for Beginners', 'duration': '4 weeks', 'category': 'Electronics',
        'price': '2999.00', 'mrp': '3999.00', 'is_featured': True, 'order_index': 1,
        'syllabus': [
            {'title': 'Getting Started', 'topics': ['Installing the IDE', 'Blink']},
            {'title': 'Inputs and Outputs', 'topics': ['Buttons', 'PWM', 'Serial monitor']},
        ],
    },
    {
        'name': 'Robotics with ESP32', 'duration': '6 weeks', 'category': 'Robotics',
        'price': '4999.00', 'mrp': None, 'is_featured': False, 'order_index': 2,
        'syllabus': [
            {'title': 'Motors', 'topics': ['DC motors', 'Servo control']},
            {'title': 'Wireless Control', 'topics': ['Wi-Fi', 'Bluetooth']},
        ],
    },
]

SETTINGS = [
    ('store_name', 'Edukkit', 'Store name shown in the header and invoices'),
    ('store_email', 'hello@edukkit.example', 'Contact email'),
    ('whatsapp_number', '919876543210', 'WhatsApp number receiving order messages'),
    ('company_website', 'https://edukkit.example', 'Website printed on invoices'),
    ('company_address', 'Kochi, Kerala, India', 'Address printed on invoices'),
]


class Command(BaseCommand):
    help = "Seeds demo categories, products, courses and store settings"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete all existing catalog rows before seeding',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("SEEDING STORE"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        if options['clear']:
            self.stdout.write(self.style.WARNING("Clearing catalog..."))
            Product.objects.all().delete()
            Category.objects.all().delete()
            Course.objects.all().delete()

        categories = {}
        for index, (name, description) in enumerate(CATEGORIES):
            category, created = Category.objects.get_or_create(
                slug=slugify_name(name),
                defaults={'name': name, 'description': description, 'order_index': index},
            )
            categories[name] = category
            self._report('Category', name, created)

        for data in PRODUCTS:
            data = dict(data)
            category = categories[data.pop('category')]
            mrp = data.pop('mrp')
            product, created = Product.objects.get_or_create(
                sku=data.pop('sku'),
                defaults={
                    **data,
                    'slug': slugify_name(data['name']),
                    'price': Decimal(data['price']),
                    'mrp': Decimal(mrp) if mrp else None,
                    'category': category,
                },
            )
            self._report('Product', product.name, created)

        for data in COURSES:
            data = dict(data)
            mrp = data.pop('mrp')
            course, created = Course.objects.get_or_create(
                slug=slugify_name(data['name']),
                defaults={
                    **data,
                    'price': Decimal(data['price']),
                    'mrp': Decimal(mrp) if mrp else None,
                },
            )
            self._report('Course', course.name, created)

        for key, value, description in SETTINGS:
            _, created = Setting.objects.get_or_create(key=key, defaults={'value': value, 'description': description})
            self._report('Setting', key, created)

        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(f"Categories: {Category.objects.count()}")
        self.stdout.write(f"Products: {Product.objects.count()}")
        self.stdout.write(f"Courses: {Course.objects.count()}")

    def _report(self, kind, name, created):
        if created:
            self.stdout.write(self.style.SUCCESS(f"  ✓ Created {kind}: {name}"))
        else:
            self.stdout.write(self.style.WARNING(f"  ⊘ {kind} already exists: {name}"))
