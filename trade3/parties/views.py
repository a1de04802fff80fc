from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from .models import Vendor, Client
from .serializers import VendorSerializer, ClientSerializer


def filter_parties(queryset, request):
    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(phone__icontains=search) | Q(email__icontains=search)
        )
    active = request.query_params.get('is_active')
    if active in ('true', '1'):
        queryset = queryset.filter(is_active=True)
    elif active in ('false', '0'):
        queryset = queryset.filter(is_active=False)
    return queryset


def list_create(request, model, serializer_class):
    if request.method == 'GET':
        queryset = filter_parties(model.objects.all(), request)
        return Response(serializer_class(queryset, many=True).data)

    serializer = serializer_class(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def detail(request, instance, serializer_class):
    if request.method == 'GET':
        return Response(serializer_class(instance).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(instance, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            with transaction.atomic():
                serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        with transaction.atomic():
            instance.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Vendor views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vendor_list_create(request):
    """List all vendors or create a new vendor"""
    return list_create(request, Vendor, VendorSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def vendor_detail(request, pk):
    """Retrieve, update or delete a vendor"""
    return detail(request, get_object_or_404(Vendor, pk=pk), VendorSerializer)


# Client views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_list_create(request):
    """List all clients or create a new client"""
    return list_create(request, Client, ClientSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def client_detail(request, pk):
    """Retrieve, update or delete a client"""
    return detail(request, get_object_or_404(Client, pk=pk), ClientSerializer)
