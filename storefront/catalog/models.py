from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from decimal import Decimal

from .utils import discount_percent, filter_json_list_contains

KIT_TAG = 'kit'


class Category(models.Model):
    """Product categories (flat, no hierarchy)"""
    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True)
    image_url = models.URLField(blank=True)
    order_index = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['order_index', 'name']


class ProductQuerySet(models.QuerySet):
    """Query shapes the storefront pages use"""

    def newest_first(self):
        return self.order_by('-created_at', '-id')

    def featured(self):
        return self.filter(is_featured=True)

    def with_tag(self, tag):
        return filter_json_list_contains(self, 'tags', tag)

    def kits(self):
        return self.with_tag(KIT_TAG)

    def search(self, term, include_description=False):
        """Case-insensitive substring match on name or SKU"""
        condition = Q(name__icontains=term) | Q(sku__icontains=term)
        if include_description:
            condition |= Q(description__icontains=term)
        return self.filter(condition)


class Product(models.Model):
    """Product master - components, boards and DIY kits"""
    DIFFICULTY_CHOICES = [
        ('beginner', 'Beginner'),
        ('intermediate', 'Intermediate'),
        ('advanced', 'Advanced'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=220, unique=True)
    sku = models.CharField(max_length=100, unique=True, db_index=True)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    mrp = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    stock = models.PositiveIntegerField(default=0)
    images = models.JSONField(default=list, blank=True)  # ordered list of URLs
    tags = models.JSONField(default=list, blank=True)
    difficulty = models.CharField(max_length=20, choices=DIFFICULTY_CHOICES, blank=True, null=True)
    is_featured = models.BooleanField(default=False, db_index=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    bom = models.JSONField(default=list, blank=True)  # [{"part": ..., "quantity": ..., "sku": ...}]
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def in_stock(self):
        return (self.stock or 0) > 0

    @property
    def discount_percent(self):
        return discount_percent(self.price, self.mrp)

    @property
    def primary_image(self):
        return self.images[0] if self.images else None

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']


class CourseQuerySet(models.QuerySet):
    def in_display_order(self):
        return self.order_by('order_index', 'name')

    def featured(self):
        return self.filter(is_featured=True)


class Course(models.Model):
    """Training courses"""
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True)
    duration = models.CharField(max_length=100)  # free text, e.g. "6 weeks"
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    mrp = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    category = models.CharField(max_length=100)  # free-text label, not a Category reference
    image_url = models.URLField(blank=True)
    syllabus = models.JSONField(default=list, blank=True)  # [{"title": ..., "topics": [...]}]
    is_featured = models.BooleanField(default=False, db_index=True)
    order_index = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CourseQuerySet.as_manager()

    def __str__(self):
        return self.name

    @property
    def discount_percent(self):
        return discount_percent(self.price, self.mrp)

    class Meta:
        db_table = 'courses'
        ordering = ['order_index', 'name']
