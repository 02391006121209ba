#!/usr/bin/env python
"""
Test runner script for the whole storefront suite
Usage: python run_tests.py [app labels...]
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

DEFAULT_LABELS = [
    'storefront.core',
    'storefront.catalog',
    'storefront.cart',
    'storefront.orders',
    'storefront.reports',
]

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'storefront.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests(sys.argv[1:] or DEFAULT_LABELS)
    sys.exit(bool(failures))
