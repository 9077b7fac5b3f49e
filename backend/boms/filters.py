import django_filters
from django.db.models import Q
from .models import Bom


class BomFilter(django_filters.FilterSet):
    """Filter for the BOM list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    job_number = django_filters.CharFilter(field_name='job_number', lookup_expr='iexact')
    type = django_filters.ChoiceFilter(choices=Bom.TYPE_CHOICES)
    work_category = django_filters.NumberFilter(field_name='work_category_id', lookup_expr='exact')

    class Meta:
        model = Bom
        fields = ['search', 'job_number', 'type', 'work_category']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on the job fields"""
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(job_number__icontains=value)
            | Q(job_name__icontains=value)
            | Q(project_manager__icontains=value)
            | Q(primary_field_leader__icontains=value)
        )
