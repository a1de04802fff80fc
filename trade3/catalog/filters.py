import django_filters
from django.db.models import Q
from .models import Product, Category


class ProductFilter(django_filters.FilterSet):
    """Product search used by the catalogue and document item pickers"""

    query = django_filters.CharFilter(method='filter_query', label='Search')
    category = django_filters.NumberFilter(method='filter_category', label='Category (with subcategories)')
    barcode = django_filters.CharFilter(field_name='barcodes__value', lookup_expr='exact', distinct=True)

    class Meta:
        model = Product
        fields = ['query', 'category', 'barcode']

    def filter_query(self, queryset, name, value):
        """
        Every whitespace-separated token must match the name, article, code
        or one of the barcodes (in any order, case-insensitive).
        """
        tokens = [t for t in (value or '').split() if t]
        if not tokens:
            return queryset
        for token in tokens:
            queryset = queryset.filter(
                Q(name__icontains=token) |
                Q(article__icontains=token) |
                Q(code__icontains=token) |
                Q(barcodes__value__icontains=token)
            )
        return queryset.distinct()

    def filter_category(self, queryset, name, value):
        category = Category.objects.filter(pk=value).first()
        if category is None:
            return queryset.none()
        return queryset.filter(category_id__in=category.get_descendant_ids())
