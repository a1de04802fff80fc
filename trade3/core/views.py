import logging

from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .models import User
from .permissions import IsAdminRole
from .serializers import (
    UserSerializer, UserCreateSerializer, UserUpdateSerializer,
    CustomTokenObtainPairSerializer, CookieTokenRefreshSerializer,
)

logger = logging.getLogger('trade3.core')


def issue_session(user):
    """Create a new token pair for the user and remember the refresh token hash"""
    token = CustomTokenObtainPairSerializer.get_token(user)
    refresh = str(token)
    user.refresh_token_hash = make_password(refresh)
    user.save(update_fields=['refresh_token_hash', 'updated_at'])
    return str(token.access_token), refresh


def set_refresh_cookie(response, refresh):
    lifetime = settings.SIMPLE_JWT['REFRESH_TOKEN_LIFETIME']
    response.set_cookie(
        settings.AUTH_REFRESH_COOKIE,
        refresh,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=settings.AUTH_REFRESH_COOKIE_SECURE,
        samesite=settings.AUTH_REFRESH_COOKIE_SAMESITE,
        path=settings.AUTH_REFRESH_COOKIE_PATH,
    )
    return response


def clear_refresh_cookie(response):
    response.delete_cookie(
        settings.AUTH_REFRESH_COOKIE,
        path=settings.AUTH_REFRESH_COOKIE_PATH,
        samesite=settings.AUTH_REFRESH_COOKIE_SAMESITE,
    )
    return response


class CustomTokenObtainPairView(TokenObtainPairView):
    """Login with email and password; the refresh token travels in an http-only cookie"""
    serializer_class = CustomTokenObtainPairSerializer
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            raise InvalidToken(e.args[0])

        user = serializer.user
        access, refresh = issue_session(user)
        logger.info(f"User {user.email} logged in")
        response = Response({
            'access': access,
            'user': UserSerializer(user).data,
        }, status=status.HTTP_200_OK)
        return set_refresh_cookie(response, refresh)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint; role defaults to USER"""
    serializer = UserCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        user = serializer.save()
        access, refresh = issue_session(user)
    logger.info(f"User {user.email} registered with role {user.role}")
    response = Response({
        'user': UserSerializer(user).data,
        'access': access,
    }, status=status.HTTP_201_CREATED)
    return set_refresh_cookie(response, refresh)


class CustomTokenRefreshView(TokenRefreshView):
    """Rotate the refresh cookie and return a new access token"""
    serializer_class = CookieTokenRefreshSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['cookie_name'] = settings.AUTH_REFRESH_COOKIE
        return context

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            raise InvalidToken(e.args[0])

        user = serializer.user
        access, refresh = issue_session(user)
        logger.debug(f"Refreshed session for {user.email}")
        response = Response({'access': access})
        return set_refresh_cookie(response, refresh)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Forget the stored refresh token and drop the cookie"""
    user = request.user
    user.refresh_token_hash = None
    user.save(update_fields=['refresh_token_hash', 'updated_at'])
    logger.info(f"User {user.email} logged out")
    response = Response({'message': 'Logged out'})
    return clear_refresh_cookie(response)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user profile"""
    data = UserSerializer(request.user).data
    data['is_admin'] = request.user.is_admin
    return Response(data)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.alive()
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)

    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            user = serializer.save()
        logger.info(f"User {user.email} created by {request.user.email}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    """Retrieve, update or soft-delete a user"""
    user = get_object_or_404(User.objects.alive(), pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserUpdateSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            with transaction.atomic():
                user = serializer.save()
            return Response(UserSerializer(user).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        user.soft_delete()
        logger.info(f"User {user.email} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request):
    return Response({'status': 'ok', 'timestamp': timezone.now().isoformat()})
