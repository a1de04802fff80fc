from django.contrib.auth.hashers import check_password
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'role', 'is_active', 'last_login', 'created_at', 'updated_at']
        read_only_fields = ['last_login', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])

    class Meta:
        model = User
        fields = ['email', 'password', 'first_name', 'last_name', 'role']
        # Duplicate emails hit the unique constraint and are reported as 409
        extra_kwargs = {'email': {'validators': []}}

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


class UserUpdateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=False, validators=[validate_password])

    class Meta:
        model = User
        fields = ['email', 'password', 'first_name', 'last_name', 'role', 'is_active']

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        instance = super().update(instance, validated_data)
        if password:
            instance.set_password(password)
            # A new password invalidates the stored refresh session
            instance.refresh_token_hash = None
            instance.save(update_fields=['password', 'refresh_token_hash', 'updated_at'])
        return instance


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Email/password login; soft-deleted accounts cannot sign in"""

    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active or self.user.deleted_at is not None:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token


class CookieTokenRefreshSerializer(serializers.Serializer):
    """
    Validate a refresh token taken from the refresh cookie (or the request body).

    The token must be well-formed, unexpired, belong to an active user and
    match the hash stored on that user; anything else is an invalid token.
    """
    refresh = serializers.CharField(required=False, allow_blank=True, write_only=True)

    def validate(self, attrs):
        request = self.context['request']
        cookie_name = self.context['cookie_name']
        raw_token = request.COOKIES.get(cookie_name) or attrs.get('refresh')
        if not raw_token:
            raise InvalidToken('Refresh token is missing.')

        try:
            token = RefreshToken(raw_token)
        except TokenError:
            raise InvalidToken('Token is invalid or expired.')

        user_id = token.get(api_settings.USER_ID_CLAIM)
        try:
            user = User.objects.alive().get(pk=user_id, is_active=True)
        except (User.DoesNotExist, ValueError, TypeError):
            raise InvalidToken('Token is invalid. User no longer exists.')

        if not user.refresh_token_hash or not check_password(raw_token, user.refresh_token_hash):
            raise InvalidToken('Refresh token has been revoked.')

        self.user = user
        return attrs
