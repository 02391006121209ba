from django.contrib import admin
from .models import Category, Product, Course


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'order_index', 'created_at']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    ordering = ['order_index', 'name']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'price', 'mrp', 'stock', 'is_featured', 'created_at']
    list_filter = ['is_featured', 'difficulty', 'category', 'created_at']
    search_fields = ['name', 'sku', 'description']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'duration', 'price', 'is_featured', 'order_index']
    list_filter = ['is_featured', 'category']
    search_fields = ['name', 'description']
    ordering = ['order_index', 'name']
    readonly_fields = ['created_at', 'updated_at']
