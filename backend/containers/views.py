import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backend.core.permissions import is_admin_user
from backend.core.utils import create_audit_log
from backend.inventory.exceptions import InventoryError
from backend.inventory.rules import ContainerEntry, ItemLine
from backend.inventory.services import get_reconciliation_service
from .filters import ContainerFilter
from .models import Container
from .serializers import ContainerSerializer, MoveSerializer, ReceiveSerializer

logger = logging.getLogger('backend.containers')


def _containers_queryset():
    return Container.objects.select_related('work_category', 'received_by').prefetch_related('items')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def container_list(request):
    """List containers, newest first; filter by job_number, shelf_location, container_type, unshelved"""
    filterset = ContainerFilter(request.query_params, queryset=_containers_queryset())
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    serializer = ContainerSerializer(filterset.qs, many=True)
    return Response(serializer.data)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def container_detail(request, pk):
    """Retrieve or delete a container (delete requires admin)"""
    container = get_object_or_404(_containers_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(ContainerSerializer(container).data)

    if not is_admin_user(request.user):
        logger.warning(f"User {request.user.username} attempted to delete container {pk} without admin privileges")
        return Response({'error': 'Only administrators can delete containers'}, status=status.HTTP_403_FORBIDDEN)

    logger.info(f"User {request.user.username} deleting container {pk} (job {container.job_number or '-'})")
    container.delete()
    create_audit_log(
        request=request,
        action='delete',
        model_name='Container',
        object_id=pk,
        object_reference=container.job_number or None,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def container_receive(request):
    """
    Receive a batch of containers for a job.

    Body::

        {"job_number": "J1", "containers": [
            {"container_type": "pallet", "shelf_location": "A.01.1",
             "items": [{"description": "Conduit 3/4\\"", "quantity": 50}]}
        ]}

    The job's BOM (if any) gets the received quantities added to on-hand.
    """
    serializer = ReceiveSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Receipt validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    containers = [
        ContainerEntry(
            container_type=entry['container_type'],
            items=tuple(ItemLine(line['description'], line['quantity']) for line in entry['items']),
            shelf_location=(entry.get('shelf_location') or '').strip() or None,
            notes=entry.get('notes') or '',
            image_url=entry.get('image_url') or None,
        )
        for entry in data['containers']
    ]
    try:
        result = get_reconciliation_service().receive_containers(
            data.get('job_number'),
            containers,
            job_name=data.get('job_name'),
            work_category_id=data.get('work_category'),
            user=request.user,
            request=request,
        )
    except InventoryError as e:
        logger.warning(f"Receipt rejected for {request.user.username}: {e.message}")
        return Response({'error': e.message}, status=e.status_code)

    created = _containers_queryset().filter(pk__in=result.container_ids).order_by('id')
    return Response({
        'container_ids': list(result.container_ids),
        'updated_bom_id': result.updated_bom_id,
        'containers': ContainerSerializer(created, many=True).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def container_ship(request, pk):
    """Ship a container: its items leave on-hand and count as shipped on the job's BOM"""
    try:
        result = get_reconciliation_service().ship_container(pk, user=request.user, request=request)
    except InventoryError as e:
        logger.warning(f"Shipment of container {pk} rejected: {e.message}")
        return Response({'error': e.message}, status=e.status_code)
    return Response({
        'updated_bom_id': result.updated_bom_id,
        'job_number': result.job_number,
        'overshipped': result.overshipped,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def container_move(request, pk):
    """Move a container to another shelf; a null/blank shelf marks it Not Shelved"""
    serializer = MoveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        result = get_reconciliation_service().move_container(
            pk, serializer.validated_data.get('shelf_location'), user=request.user, request=request,
        )
    except InventoryError as e:
        logger.warning(f"Move of container {pk} rejected: {e.message}")
        return Response({'error': e.message}, status=e.status_code)

    container = get_object_or_404(_containers_queryset(), pk=pk)
    data = ContainerSerializer(container).data
    data['updated_bom_id'] = result.updated_bom_id
    return Response(data)
