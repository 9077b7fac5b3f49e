import django_filters
from .models import Container


class ContainerFilter(django_filters.FilterSet):
    job_number = django_filters.CharFilter(field_name='job_number', lookup_expr='iexact')
    shelf_location = django_filters.CharFilter(field_name='shelf_location', lookup_expr='exact')
    container_type = django_filters.ChoiceFilter(choices=Container.TYPE_CHOICES)
    unshelved = django_filters.BooleanFilter(field_name='shelf_location', lookup_expr='isnull')

    class Meta:
        model = Container
        fields = ['job_number', 'shelf_location', 'container_type', 'unshelved']
