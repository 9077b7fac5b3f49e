import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Sum
from backend.boms.models import Bom, BomItem, Job
from backend.containers.models import Container
from backend.core.cache_utils import DASHBOARD_SUMMARY_PREFIX, cached_query
from backend.locations.models import ShelfLocation
from .filters import BomItemFilter
from .listing import LOCATION_SORT_COLUMNS, item_row, location_rows, matches_search, sort_location_rows
from .rules import occupied_locations
from .services import get_reconciliation_service

logger = logging.getLogger('backend.inventory')


def _bom_items():
    return BomItem.objects.select_related('bom').order_by('bom__job_number', 'bom_id', 'id')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_items(request):
    """Every BOM item across all BOMs with its job fields; filters: search, my_jobs, job_number, in_stock"""
    filterset = BomItemFilter(request.query_params, queryset=_bom_items(), request=request)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response([item_row(item) for item in filterset.qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_inventory(request):
    """
    One row per (shelf location, item) pair.

    Query params: ``search``, ``my_jobs``, ``sort`` (one of
    LOCATION_SORT_COLUMNS, default ``location``) and ``direction`` (asc/desc).
    """
    sort_column = request.query_params.get('sort', 'location')
    direction = request.query_params.get('direction', 'asc')
    if sort_column not in LOCATION_SORT_COLUMNS:
        return Response(
            {'error': f"sort must be one of: {', '.join(LOCATION_SORT_COLUMNS)}"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if direction not in ('asc', 'desc'):
        return Response({'error': "direction must be 'asc' or 'desc'"}, status=status.HTTP_400_BAD_REQUEST)

    # Search runs after flattening so it can match the row's own location
    params = request.query_params.copy()
    search = params.pop('search', [''])[-1]
    filterset = BomItemFilter(params, queryset=_bom_items(), request=request)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    rows = [row for row in location_rows(item_row(item) for item in filterset.qs) if matches_search(row, search)]
    return Response(sort_location_rows(rows, sort_column, direction))


@cached_query(key_prefix=DASHBOARD_SUMMARY_PREFIX)
def get_dashboard_summary():
    totals = BomItem.objects.aggregate(on_hand=Sum('on_hand_quantity'), shipped=Sum('shipped_quantity'))
    location_names = set(ShelfLocation.objects.values_list('name', flat=True))
    occupied = occupied_locations(get_reconciliation_service().store.bom_snapshots()) & location_names
    return {
        'jobs': Job.objects.count(),
        'boms': Bom.objects.count(),
        'items': BomItem.objects.count(),
        'containers': Container.objects.count(),
        'unshelved_containers': Container.objects.filter(shelf_location__isnull=True).count(),
        'locations': len(location_names),
        'occupied_locations': len(occupied),
        'on_hand_total': totals['on_hand'] or 0,
        'shipped_total': totals['shipped'] or 0,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_summary(request):
    """Headline counts for the dashboard, cached until BOMs, containers or locations change"""
    return Response(get_dashboard_summary())
