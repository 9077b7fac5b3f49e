import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count
from django.shortcuts import get_object_or_404
from backend.core.permissions import is_admin_user
from backend.inventory.exceptions import InventoryError
from backend.inventory.rules import BOM_TYPES, ItemLine
from backend.inventory.services import get_reconciliation_service
from .filters import BomFilter
from .importer import ParsedBom, parse_bom_rows, read_csv_upload
from .models import Bom
from .serializers import BomImportSerializer, BomListSerializer, BomSerializer, BomUpdateSerializer

logger = logging.getLogger('backend.boms')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def bom_list(request):
    """List BOMs, newest first, with optional search/job/type filters"""
    queryset = Bom.objects.select_related('work_category').annotate(item_count=Count('items')).order_by('-created_at', '-id')
    filterset = BomFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    serializer = BomListSerializer(filterset.qs, many=True)
    return Response(serializer.data)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def bom_detail(request, pk):
    """Retrieve, edit or delete a BOM (delete requires admin)"""
    bom = get_object_or_404(Bom.objects.select_related('work_category'), pk=pk)

    if request.method == 'GET':
        return Response(BomSerializer(bom).data)

    service = get_reconciliation_service()

    if request.method == 'PUT':
        serializer = BomUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(f"BOM {pk} update validation failed: {serializer.errors}")
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        try:
            bom = service.update_bom(
                pk,
                data.get('job') or {},
                [ItemLine(line['description'], line['quantity']) for line in data['items']],
                work_category_id=data.get('work_category'),
                user=request.user,
                request=request,
            )
        except InventoryError as e:
            logger.warning(f"BOM {pk} update rejected: {e.message}")
            return Response({'error': e.message}, status=e.status_code)
        bom.refresh_from_db()
        return Response(BomSerializer(bom).data)

    # DELETE
    if not is_admin_user(request.user):
        logger.warning(f"User {request.user.username} attempted to delete BOM {pk} without admin privileges")
        return Response({'error': 'Only administrators can delete BOMs'}, status=status.HTTP_403_FORBIDDEN)
    try:
        service.delete_bom(pk, user=request.user, request=request)
    except InventoryError as e:
        return Response({'error': e.message}, status=e.status_code)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def bom_import_preview(request):
    """
    Parse an uploaded BOM CSV without writing anything.

    The response carries the job info and merged item list for the reviewer
    to check and edit before posting it to ``boms/import/``.
    """
    uploaded_file = request.FILES.get('file')
    if not uploaded_file:
        return Response({'error': 'No file uploaded'}, status=status.HTTP_400_BAD_REQUEST)

    bom_type = request.data.get('bom_type') or None
    if bom_type is not None and bom_type not in BOM_TYPES:
        return Response({'error': f"BOM type must be one of: {', '.join(BOM_TYPES)}."}, status=status.HTTP_400_BAD_REQUEST)

    try:
        parsed = parse_bom_rows(read_csv_upload(uploaded_file))
    except InventoryError as e:
        logger.warning(f"BOM preview of {uploaded_file.name} rejected for {request.user.username}: {e.message}")
        return Response({'error': e.message}, status=e.status_code)

    data = parsed.to_dict()
    data['bom_type'] = bom_type
    data['warnings'] = list(parsed.warnings)
    data['existing_bom_count'] = Bom.objects.filter(job_number=parsed.job['job_number']).count()
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def bom_import(request):
    """Persist a reviewed BOM; refused unless review_confirmed is true"""
    serializer = BomImportSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"BOM import validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    parsed = ParsedBom(
        job=dict(data['job']),
        items=tuple(ItemLine(line['description'], line['quantity']) for line in data['items']),
    )
    try:
        bom = get_reconciliation_service().import_bom(
            parsed,
            data['bom_type'],
            data['review_confirmed'],
            work_category_id=data.get('work_category'),
            user=request.user,
            request=request,
        )
    except InventoryError as e:
        logger.warning(f"BOM import rejected for {request.user.username}: {e.message}")
        return Response({'error': e.message}, status=e.status_code)
    return Response(BomSerializer(bom).data, status=status.HTTP_201_CREATED)
