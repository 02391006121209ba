import django_filters
from .models import Product, Course


class ProductFilter(django_filters.FilterSet):
    """Storefront product listing filters"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    featured = django_filters.BooleanFilter(field_name='is_featured')
    category = django_filters.CharFilter(method='filter_category', label='Category ID or slug')
    tag = django_filters.CharFilter(method='filter_tag', label='Tag')
    difficulty = django_filters.ChoiceFilter(choices=Product.DIFFICULTY_CHOICES)

    class Meta:
        model = Product
        fields = ['search', 'featured', 'category', 'tag', 'difficulty']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.search(value, include_description=True)

    def filter_category(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        if value.isdigit():
            return queryset.filter(category_id=int(value))
        return queryset.filter(category__slug=value)

    def filter_tag(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.with_tag(value)


class CourseFilter(django_filters.FilterSet):
    featured = django_filters.BooleanFilter(field_name='is_featured')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')

    class Meta:
        model = Course
        fields = ['featured', 'category']
