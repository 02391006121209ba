from django.urls import path
from .views import (
    product_list, product_by_slug, product_search, kit_list,
    category_list, category_by_slug, course_list, course_by_slug, home,
    admin_product_list_create, admin_product_detail,
    admin_category_list_create, admin_category_detail,
    admin_course_list_create, admin_course_detail,
)

urlpatterns = [
    # Storefront endpoints
    path('home/', home, name='home'),
    path('products/', product_list, name='product-list'),
    path('products/search/', product_search, name='product-search'),
    path('products/<str:slug>/', product_by_slug, name='product-by-slug'),
    path('kits/', kit_list, name='kit-list'),
    path('categories/', category_list, name='category-list'),
    path('categories/<str:slug>/', category_by_slug, name='category-by-slug'),
    path('courses/', course_list, name='course-list'),
    path('courses/<str:slug>/', course_by_slug, name='course-by-slug'),

    # Admin endpoints
    path('admin/products/', admin_product_list_create, name='admin-product-list-create'),
    path('admin/products/<int:pk>/', admin_product_detail, name='admin-product-detail'),
    path('admin/categories/', admin_category_list_create, name='admin-category-list-create'),
    path('admin/categories/<int:pk>/', admin_category_detail, name='admin-category-detail'),
    path('admin/courses/', admin_course_list_create, name='admin-course-list-create'),
    path('admin/courses/<int:pk>/', admin_course_detail, name='admin-course-detail'),
]
