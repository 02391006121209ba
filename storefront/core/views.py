from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError
from django.db.models import Q
from django.shortcuts import get_object_or_404
import logging

from .models import Setting, UserRole, SavedAddress
from .serializers import (
    UserSerializer, UserCreateSerializer, SettingSerializer, SettingValueSerializer,
    UserRoleSerializer, StaffCreateSerializer, SavedAddressSerializer
)
from .permissions import IsStoreAdmin
from .roles import get_user_role, can_access_admin, get_admin_nav, assign_role, ROLE_ADMIN, ROLE_STAFF, ROLE_CUSTOMER
from .addresses import create_saved_address
from .utils import get_public_settings, upsert_setting

User = get_user_model()
logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            from rest_framework_simplejwt.exceptions import AuthenticationFailed
            raise AuthenticationFailed('User account is disabled.')
        data['role'] = get_user_role(self.user)
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = get_user_role(user)
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def _delete_or_error(instance, label):
    try:
        instance.delete()
    except DatabaseError as e:
        logger.error(f"Error deleting {label} {instance.pk}: {str(e)}")
        return Response({'error': f'Failed to delete {label}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Customer registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        assign_role(user, ROLE_CUSTOMER)
        token = CustomTokenObtainPairSerializer.get_token(user)
        return Response({
            'user': UserSerializer(user).data,
            'role': ROLE_CUSTOMER,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Sign out by blacklisting the refresh token"""
    refresh = request.data.get('refresh')
    if not refresh:
        return Response({'error': 'refresh token is required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        RefreshToken(refresh).blacklist()
    except TokenError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(status=status.HTTP_205_RESET_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with role"""
    user_data = UserSerializer(request.user).data
    role = get_user_role(request.user)
    user_data['role'] = role
    user_data['can_access_admin'] = can_access_admin(role)
    return Response(user_data)


@api_view(['GET'])
@permission_classes([AllowAny])
def role_gate(request):
    """Role of the caller and the admin navigation it may see"""
    role = get_user_role(request.user)
    return Response({
        'is_authenticated': bool(request.user and request.user.is_authenticated),
        'role': role,
        'can_access_admin': can_access_admin(role),
        'admin_nav': get_admin_nav(role),
    })


# Setting views
@api_view(['GET'])
@permission_classes([AllowAny])
def public_settings(request):
    """Settings read by the header, footer and checkout"""
    return Response(get_public_settings())


@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdmin])
def setting_list_create(request):
    """List all settings or upsert one from a key/value body"""
    if request.method == 'GET':
        settings = Setting.objects.all()
        serializer = SettingSerializer(settings, many=True)
        return Response(serializer.data)

    key = (request.data.get('key') or '').strip()
    if not key:
        return Response({'key': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
    return _upsert_setting_response(key, request.data)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsStoreAdmin])
def setting_detail(request, key):
    """Retrieve, upsert or delete a setting by key"""
    if request.method == 'PUT':
        return _upsert_setting_response(key, request.data)

    setting = get_object_or_404(Setting, key=key)
    if request.method == 'GET':
        return Response(SettingSerializer(setting).data)

    return _delete_or_error(setting, 'setting')


def _upsert_setting_response(key, data):
    serializer = SettingValueSerializer(data=data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        setting, created = upsert_setting(
            key,
            serializer.validated_data['value'],
            serializer.validated_data.get('description'),
        )
    except DatabaseError as e:
        logger.error(f"Error updating setting '{key}': {str(e)}")
        return Response({'error': 'Failed to update settings'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(
        SettingSerializer(setting).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


# Staff views
@api_view(['GET', 'POST'])
@permission_classes([IsStoreAdmin])
def staff_list_create(request):
    """List admin/staff role assignments or promote an account to staff"""
    if request.method == 'GET':
        queryset = UserRole.objects.filter(
            role__in=[ROLE_ADMIN, ROLE_STAFF]
        ).select_related('user').order_by('-created_at')

        search = request.query_params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(user__username__icontains=search) |
                Q(user__email__icontains=search) |
                Q(role__icontains=search)
            )
        serializer = UserRoleSerializer(queryset, many=True)
        return Response(serializer.data)

    serializer = StaffCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    identifier = serializer.validated_data['identifier']
    user = User.objects.filter(Q(email__iexact=identifier) | Q(username__iexact=identifier)).first()
    if not user:
        return Response(
            {'error': f'No account found for {identifier}. Ask the staff member to register first.'},
            status=status.HTTP_404_NOT_FOUND
        )

    user_role, created = assign_role(user, ROLE_STAFF)
    logger.info(f"Staff role {'granted to' if created else 'already held by'} {user.username}")
    return Response(
        UserRoleSerializer(user_role).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@api_view(['DELETE'])
@permission_classes([IsStoreAdmin])
def staff_detail(request, pk):
    """Revoke a staff role assignment"""
    user_role = get_object_or_404(UserRole, pk=pk)
    if user_role.role == ROLE_ADMIN:
        return Response({'error': 'Cannot remove admin users'}, status=status.HTTP_400_BAD_REQUEST)
    return _delete_or_error(user_role, 'staff role')


# Saved address views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def address_list_create(request):
    """List the caller's saved addresses (default first) or save a new one"""
    if request.method == 'GET':
        addresses = SavedAddress.objects.filter(user=request.user)
        return Response(SavedAddressSerializer(addresses, many=True).data)

    serializer = SavedAddressSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    address = create_saved_address(
        request.user,
        address=data['address'],
        phone=data['phone'],
        pincode=data['pincode'],
        label=data.get('label', 'Home'),
        state=data.get('state', ''),
        country=data.get('country', 'India'),
        is_default=data.get('is_default') or None,
    )
    return Response(SavedAddressSerializer(address).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def address_detail(request, pk):
    """Delete one of the caller's saved addresses"""
    address = get_object_or_404(SavedAddress, pk=pk, user=request.user)
    return _delete_or_error(address, 'address')
