from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, logout, user_me, role_gate,
    public_settings, setting_list_create, setting_detail,
    staff_list_create, staff_detail,
    address_list_create, address_detail,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/logout/', logout, name='logout'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/role/', role_gate, name='role-gate'),

    # Setting endpoints
    path('settings/public/', public_settings, name='public-settings'),
    path('admin/settings/', setting_list_create, name='setting-list-create'),
    path('admin/settings/<str:key>/', setting_detail, name='setting-detail'),

    # Staff endpoints
    path('admin/staff/', staff_list_create, name='staff-list-create'),
    path('admin/staff/<int:pk>/', staff_detail, name='staff-detail'),

    # Saved address endpoints
    path('addresses/', address_list_create, name='address-list-create'),
    path('addresses/<int:pk>/', address_detail, name='address-detail'),
]
