import django_filters
from django.db.models import Q
from backend.boms.models import BomItem


class BomItemFilter(django_filters.FilterSet):
    """Filter for the flattened inventory item list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    my_jobs = django_filters.BooleanFilter(method='filter_my_jobs', label='My jobs')
    job_number = django_filters.CharFilter(field_name='bom__job_number', lookup_expr='iexact')
    in_stock = django_filters.BooleanFilter(method='filter_in_stock', label='In stock')

    class Meta:
        model = BomItem
        fields = ['search', 'my_jobs', 'job_number', 'in_stock']

    def filter_search(self, queryset, name, value):
        """Case-insensitive substring over job fields, description and shelf locations"""
        value = (value or '').strip()
        if not value:
            return queryset
        text_match = (
            Q(bom__job_number__icontains=value)
            | Q(bom__job_name__icontains=value)
            | Q(bom__project_manager__icontains=value)
            | Q(bom__primary_field_leader__icontains=value)
            | Q(description__icontains=value)
        )
        # Shelves are compared one name at a time, not against the stored JSON text
        term = value.casefold()
        shelf_ids = [
            pk for pk, shelves in queryset.exclude(text_match).values_list('pk', 'shelf_locations')
            if any(term in str(shelf).casefold() for shelf in shelves or ())
        ]
        return queryset.filter(text_match | Q(pk__in=shelf_ids))

    def filter_my_jobs(self, queryset, name, value):
        """Items of BOMs where the requesting user is PM or field leader"""
        if not value or self.request is None:
            return queryset
        user = self.request.user
        names = {n for n in (user.get_full_name().strip(), user.username) if n}
        condition = Q()
        for user_name in names:
            condition |= Q(bom__project_manager__iexact=user_name) | Q(bom__primary_field_leader__iexact=user_name)
        return queryset.filter(condition)

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(on_hand_quantity__gt=0) if value else queryset.filter(on_hand_quantity=0)
