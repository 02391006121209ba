from rest_framework import serializers
from rest_framework.validators import UniqueValidator
import json

from .models import Category, Product, Course
from .utils import slugify_name, generate_sku

OUT_OF_STOCK_LABEL = 'Out of Stock'


class CommaSeparatedListField(serializers.ListField):
    """List of strings that also accepts a comma-separated string"""

    def to_internal_value(self, data):
        if data is None or data == '':
            return []
        if isinstance(data, str):
            data = data.split(',')
        values = super().to_internal_value(data)
        return [value.strip() for value in values if value and value.strip()]


class SlugDefaultsMixin:
    """Fill a blank slug from the name (and a blank SKU where the model has one)"""
    auto_sku = False

    def to_internal_value(self, data):
        data = data.copy() if hasattr(data, 'copy') else dict(data)

        if self._needs_default(data, 'slug'):
            name = data.get('name') or getattr(self.instance, 'name', '')
            data['slug'] = slugify_name(name)
        elif 'slug' not in data and self.instance is not None and not self.partial:
            data['slug'] = self.instance.slug

        if self.auto_sku:
            if self._needs_default(data, 'sku'):
                data['sku'] = generate_sku()
            elif 'sku' not in data and self.instance is not None and not self.partial:
                data['sku'] = self.instance.sku

        return super().to_internal_value(data)

    def _needs_default(self, data, field):
        if field in data:
            return not str(data.get(field) or '').strip()
        return self.instance is None


class CategorySerializer(SlugDefaultsMixin, serializers.ModelSerializer):
    slug = serializers.CharField(
        max_length=220, required=False, allow_blank=True,
        validators=[UniqueValidator(queryset=Category.objects.all())]
    )
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'image_url', 'order_index', 'product_count', 'created_at']
        read_only_fields = ['created_at']

    def get_product_count(self, obj):
        count = getattr(obj, 'annotated_product_count', None)
        if count is not None:
            return count
        return obj.products.count()


class CategoryRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug']


class ProductSerializer(SlugDefaultsMixin, serializers.ModelSerializer):
    auto_sku = True

    slug = serializers.CharField(
        max_length=220, required=False, allow_blank=True,
        validators=[UniqueValidator(queryset=Product.objects.all())]
    )
    sku = serializers.CharField(
        max_length=100, required=False, allow_blank=True,
        validators=[UniqueValidator(queryset=Product.objects.all())]
    )
    images = CommaSeparatedListField(child=serializers.CharField(allow_blank=True), required=False)
    tags = CommaSeparatedListField(child=serializers.CharField(allow_blank=True), required=False)
    category_detail = CategoryRefSerializer(source='category', read_only=True)
    discount_percent = serializers.IntegerField(read_only=True)
    in_stock = serializers.BooleanField(read_only=True)
    stock_label = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'sku', 'description', 'price', 'mrp', 'stock',
            'images', 'tags', 'difficulty', 'is_featured', 'category', 'category_detail',
            'bom', 'discount_percent', 'in_stock', 'stock_label', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_stock_label(self, obj):
        return None if obj.in_stock else OUT_OF_STOCK_LABEL

    def validate_bom(self, value):
        if value in (None, ''):
            return []
        if not isinstance(value, list):
            raise serializers.ValidationError('Bill of materials must be a list')
        for line in value:
            if not isinstance(line, dict):
                raise serializers.ValidationError('Each bill of materials line must be an object')
        return value


class ProductListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for product cards"""
    category_name = serializers.CharField(source='category.name', read_only=True, allow_null=True)
    image = serializers.CharField(source='primary_image', read_only=True, allow_null=True)
    discount_percent = serializers.IntegerField(read_only=True)
    in_stock = serializers.BooleanField(read_only=True)
    stock_label = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'sku', 'price', 'mrp', 'stock', 'image', 'tags',
            'difficulty', 'is_featured', 'category', 'category_name',
            'discount_percent', 'in_stock', 'stock_label', 'created_at'
        ]

    def get_stock_label(self, obj):
        return None if obj.in_stock else OUT_OF_STOCK_LABEL


class SyllabusField(serializers.JSONField):
    """Syllabus as a list of modules, given either as a list or as JSON text"""
    default_error_messages = {
        'invalid': 'Invalid syllabus JSON format',
        'not_a_list': 'Syllabus must be a list of modules',
    }

    def to_internal_value(self, data):
        if isinstance(data, str):
            if not data.strip():
                return []
            try:
                data = json.loads(data)
            except ValueError:
                self.fail('invalid')
        if data is None:
            return []
        if not isinstance(data, list):
            self.fail('not_a_list')
        return data


class CourseSerializer(SlugDefaultsMixin, serializers.ModelSerializer):
    slug = serializers.CharField(
        max_length=220, required=False, allow_blank=True,
        validators=[UniqueValidator(queryset=Course.objects.all())]
    )
    syllabus = SyllabusField(required=False)
    discount_percent = serializers.IntegerField(read_only=True)

    class Meta:
        model = Course
        fields = [
            'id', 'name', 'slug', 'description', 'duration', 'price', 'mrp', 'category',
            'image_url', 'syllabus', 'is_featured', 'order_index', 'discount_percent',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']
