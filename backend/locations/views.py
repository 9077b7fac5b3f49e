import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import IntegrityError
from django.shortcuts import get_object_or_404
from backend.boms.importer import normalize_header, read_csv_upload
from backend.containers.models import Container
from backend.core.permissions import is_admin_user
from backend.inventory.exceptions import InventoryError, ValidationError
from backend.inventory.rules import occupied_locations
from backend.inventory.services import get_reconciliation_service
from .models import ShelfLocation
from .serializers import EligibleShelvesSerializer, ShelfLocationSerializer

logger = logging.getLogger('backend.locations')

NAME_COLUMNS = ('name', 'locationname', 'location')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def location_list_create(request):
    """List all shelf locations (sorted by name) or create one"""
    if request.method == 'GET':
        locations = ShelfLocation.objects.order_by('name')
        search = request.query_params.get('search', None)
        if search:
            locations = locations.filter(name__icontains=search.strip())
        serializer = ShelfLocationSerializer(locations, many=True)
        return Response(serializer.data)

    serializer = ShelfLocationSerializer(data=request.data)
    if serializer.is_valid():
        try:
            location = serializer.save()
        except IntegrityError as e:
            logger.error(f"IntegrityError creating location: {e}", exc_info=True)
            return Response({'error': 'A location with this name already exists'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Location '{location.name}' created by {request.user.username}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    logger.warning(f"Location creation validation failed: {serializer.errors}")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def location_detail(request, pk):
    """Retrieve or delete a shelf location (delete requires admin)"""
    location = get_object_or_404(ShelfLocation, pk=pk)

    if request.method == 'GET':
        return Response(ShelfLocationSerializer(location).data)

    if not is_admin_user(request.user):
        logger.warning(f"User {request.user.username} attempted to delete location {pk} without admin privileges")
        return Response({'error': 'Only administrators can delete locations'}, status=status.HTTP_403_FORBIDDEN)

    store = get_reconciliation_service().store
    if location.name in occupied_locations(store.bom_snapshots()) or Container.objects.filter(shelf_location=location.name).exists():
        logger.warning(f"Refused to delete location {location.name}: it still holds stock or containers")
        return Response({'error': f"Location '{location.name}' still holds stock or containers"}, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"User {request.user.username} deleting location {pk} ({location.name})")
    location.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


def _names_from_rows(rows):
    """Values of the ``name`` column of a CSV, header row first"""
    header_index = next((index for index, row in enumerate(rows) if any(cell for cell in row)), None)
    if header_index is None:
        raise ValidationError('The file is empty.')
    columns = [normalize_header(cell) for cell in rows[header_index]]
    column = next((index for index, name in enumerate(columns) if name in NAME_COLUMNS), None)
    if column is None:
        raise ValidationError("The file must have a 'name' column.")
    return [row[column] if column < len(row) else '' for row in rows[header_index + 1:]]


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def location_import(request):
    """Create locations from a CSV with a ``name`` column; existing names are skipped"""
    uploaded_file = request.FILES.get('file')
    if not uploaded_file:
        return Response({'error': 'No file uploaded'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        names = _names_from_rows(read_csv_upload(uploaded_file))
        result = get_reconciliation_service().import_locations(names, user=request.user, request=request)
    except InventoryError as e:
        logger.warning(f"Location import of {uploaded_file.name} rejected: {e.message}")
        return Response({'error': e.message}, status=e.status_code)

    return Response({
        'created': list(result.created),
        'skipped': list(result.skipped),
        'created_count': len(result.created),
        'skipped_count': len(result.skipped),
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def location_eligible(request):
    """Shelves one receive-form entry may choose, sorted by name"""
    serializer = EligibleShelvesSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        eligible = get_reconciliation_service().eligible_shelves_for(
            [name for name in data.get('in_flight_selections') or [] if name],
            data.get('current_selection') or None,
        )
    except InventoryError as e:
        return Response({'error': e.message}, status=e.status_code)
    return Response([{'id': location.id, 'name': location.name} for location in eligible])
