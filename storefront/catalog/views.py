from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from django.db import DatabaseError
from django.db.models import Count
from django.shortcuts import get_object_or_404
import logging

from storefront.core.cache_utils import cached_query, CATALOG_NAMESPACE, HOME_CACHE_TTL
from storefront.core.permissions import IsStoreStaff
from storefront.core.utils import store_config
from storefront.orders.services import build_enrollment_message, build_whatsapp_url, get_whatsapp_number
from .models import Category, Product, Course
from .filters import ProductFilter, CourseFilter
from .serializers import (
    CategorySerializer, ProductSerializer, ProductListSerializer, CourseSerializer
)

logger = logging.getLogger(__name__)


def _categories_with_counts():
    return Category.objects.annotate(annotated_product_count=Count('products')).order_by('order_index', 'name')


def _save_or_error(serializer, label, success_status=status.HTTP_200_OK):
    """Save a validated serializer, turning database failures into a 500 payload"""
    try:
        serializer.save()
    except DatabaseError as e:
        logger.error(f"Error saving {label}: {str(e)}")
        return Response({'error': f'Failed to save {label}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(serializer.data, status=success_status)


def _delete_or_error(instance, label):
    try:
        instance.delete()
    except DatabaseError as e:
        logger.error(f"Error deleting {label} {instance.pk}: {str(e)}")
        return Response({'error': f'Failed to delete {label}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(status=status.HTTP_204_NO_CONTENT)


# Storefront views
@api_view(['GET'])
@permission_classes([AllowAny])
def product_list(request):
    """All products newest first, with optional featured/category/tag/difficulty/search filters"""
    queryset = Product.objects.select_related('category').newest_first()
    filterset = ProductFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    serializer = ProductListSerializer(filterset.qs, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_by_slug(request, slug):
    """Product detail page"""
    product = Product.objects.select_related('category').filter(slug=slug).first()
    if not product:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_search(request):
    """
    Quick search by name or SKU (case-insensitive substring).

    The caller's ``seq`` is echoed back so a client firing one request per
    keystroke can drop responses that arrive after a newer query's.
    """
    query = request.query_params.get('q', '').strip()
    seq = request.query_params.get('seq')
    if seq is not None and seq.isdigit():
        seq = int(seq)

    results = []
    if query:
        limit = store_config('SEARCH_RESULT_LIMIT')
        products = Product.objects.search(query).order_by('name')[:limit]
        results = [
            {
                'id': product.id,
                'name': product.name,
                'slug': product.slug,
                'price': str(product.price),
                'image': product.primary_image,
            }
            for product in products
        ]

    return Response({'query': query, 'seq': seq, 'results': results})


@api_view(['GET'])
@permission_classes([AllowAny])
def kit_list(request):
    """Products tagged as kits, newest first, optionally narrowed by difficulty"""
    queryset = Product.objects.select_related('category').kits().newest_first()

    difficulty = request.query_params.get('difficulty', '').strip()
    if difficulty:
        valid = {choice for choice, _ in Product.DIFFICULTY_CHOICES}
        if difficulty not in valid:
            return Response(
                {'error': f"Invalid difficulty. Must be one of: {', '.join(sorted(valid))}"},
                status=status.HTTP_400_BAD_REQUEST
            )
        queryset = queryset.filter(difficulty=difficulty)

    return Response(ProductListSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def category_list(request):
    """Categories by display order with the number of products in each"""
    return Response(CategorySerializer(_categories_with_counts(), many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def category_by_slug(request, slug):
    """A category and its products, newest first"""
    category = _categories_with_counts().filter(slug=slug).first()
    if not category:
        return Response({'error': 'Category not found'}, status=status.HTTP_404_NOT_FOUND)
    products = category.products.select_related('category').newest_first()
    return Response({
        'category': CategorySerializer(category).data,
        'products': ProductListSerializer(products, many=True).data,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def course_list(request):
    """Courses by display order; ``categories`` lists the distinct labels for filter chips"""
    queryset = Course.objects.in_display_order()
    filterset = CourseFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    categories = sorted(set(Course.objects.values_list('category', flat=True)))
    return Response({
        'categories': categories,
        'results': CourseSerializer(filterset.qs, many=True).data,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def course_by_slug(request, slug):
    """Course detail with a WhatsApp link that opens an enrollment request"""
    course = Course.objects.filter(slug=slug).first()
    if not course:
        return Response({'error': 'Course not found'}, status=status.HTTP_404_NOT_FOUND)
    data = CourseSerializer(course).data
    data['enroll_whatsapp_url'] = build_whatsapp_url(get_whatsapp_number(), build_enrollment_message(course))
    return Response(data)


@cached_query(cache_ttl=HOME_CACHE_TTL, namespace=CATALOG_NAMESPACE)
def get_home_payload(featured_limit):
    featured_products = Product.objects.select_related('category').featured().newest_first()[:featured_limit]
    featured_courses = Course.objects.featured().in_display_order()
    return {
        'featured_products': ProductListSerializer(featured_products, many=True).data,
        'categories': CategorySerializer(_categories_with_counts(), many=True).data,
        'featured_courses': CourseSerializer(featured_courses, many=True).data,
    }


@api_view(['GET'])
@permission_classes([AllowAny])
def home(request):
    """Home page: featured products, categories and featured courses"""
    return Response(get_home_payload(store_config('HOME_FEATURED_LIMIT')))


# Admin views
@api_view(['GET', 'POST'])
@permission_classes([IsStoreStaff])
def admin_product_list_create(request):
    """List all products (newest first) or create a new product"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('category').newest_first()
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(ProductSerializer(filterset.qs, many=True).data)

    serializer = ProductSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    response = _save_or_error(serializer, 'product', status.HTTP_201_CREATED)
    if response.status_code == status.HTTP_201_CREATED:
        logger.info(f"Product created: {serializer.instance.sku} by {request.user.username}")
    return response


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreStaff])
def admin_product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product.objects.select_related('category'), pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return _save_or_error(serializer, 'product')
    else:  # DELETE
        return _delete_or_error(product, 'product')


@api_view(['GET', 'POST'])
@permission_classes([IsStoreStaff])
def admin_category_list_create(request):
    """List all categories or create a new category"""
    if request.method == 'GET':
        return Response(CategorySerializer(_categories_with_counts(), many=True).data)

    serializer = CategorySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return _save_or_error(serializer, 'category', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreStaff])
def admin_category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(_categories_with_counts(), pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return _save_or_error(serializer, 'category')
    else:  # DELETE
        return _delete_or_error(category, 'category')


@api_view(['GET', 'POST'])
@permission_classes([IsStoreStaff])
def admin_course_list_create(request):
    """List all courses or create a new course"""
    if request.method == 'GET':
        courses = Course.objects.in_display_order()
        return Response(CourseSerializer(courses, many=True).data)

    serializer = CourseSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return _save_or_error(serializer, 'course', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStoreStaff])
def admin_course_detail(request, pk):
    """Retrieve, update or delete a course"""
    course = get_object_or_404(Course, pk=pk)

    if request.method == 'GET':
        return Response(CourseSerializer(course).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CourseSerializer(course, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return _save_or_error(serializer, 'course')
    else:  # DELETE
        return _delete_or_error(course, 'course')
