"""
Test suite for the core module
Tests: role gate, admin permissions, settings, staff management, saved addresses, auth
"""
from io import StringIO
from unittest.mock import patch

from django.contrib.auth.models import AnonymousUser
from django.core.cache import cache
from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status

from storefront.core.models import Setting, UserRole, SavedAddress
from storefront.core.permissions import ACCESS_DENIED_MESSAGE
from storefront.core.roles import get_user_role, can_access_admin, get_admin_nav
from storefront.core.addresses import create_saved_address
from storefront.core.utils import get_setting, get_public_settings
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class RoleServiceTests(TestCase):
    """Test role lookup"""

    def test_anonymous_is_customer(self):
        self.assertEqual(get_user_role(AnonymousUser()), 'customer')
        self.assertEqual(get_user_role(None), 'customer')

    def test_user_without_role_is_customer(self):
        user = TestDataFactory.create_user()
        self.assertEqual(get_user_role(user), 'customer')

    def test_highest_role_wins(self):
        user = TestDataFactory.create_user()
        TestDataFactory.create_role(user, UserRole.ROLE_CUSTOMER)
        TestDataFactory.create_role(user, UserRole.ROLE_STAFF)
        self.assertEqual(get_user_role(user), 'staff')
        TestDataFactory.create_role(user, UserRole.ROLE_ADMIN)
        self.assertEqual(get_user_role(user), 'admin')

    def test_superuser_without_role_is_admin(self):
        user = TestDataFactory.create_user(is_superuser=True, is_staff=True)
        self.assertEqual(get_user_role(user), 'admin')

    def test_admin_area_access(self):
        self.assertTrue(can_access_admin('admin'))
        self.assertTrue(can_access_admin('staff'))
        self.assertFalse(can_access_admin('customer'))

    def test_admin_nav(self):
        staff_titles = [item['title'] for item in get_admin_nav('staff')]
        self.assertEqual(staff_titles, ['Dashboard', 'Products', 'Categories', 'Courses', 'Orders'])
        admin_titles = [item['title'] for item in get_admin_nav('admin')]
        self.assertIn('Settings', admin_titles)
        self.assertIn('Staff', admin_titles)
        self.assertEqual(get_admin_nav('customer'), [])


class RoleGateAPITests(TestCase):
    """Test the role gate endpoint and the admin permission classes"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def test_role_gate_anonymous(self):
        response = self.client.get('/api/v1/auth/role/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_authenticated'])
        self.assertEqual(response.data['role'], 'customer')
        self.assertFalse(response.data['can_access_admin'])
        self.assertEqual(response.data['admin_nav'], [])

    def test_role_gate_staff(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.get('/api/v1/auth/role/')
        self.assertEqual(response.data['role'], 'staff')
        self.assertTrue(response.data['can_access_admin'])
        self.assertEqual(len(response.data['admin_nav']), 5)

    def test_role_gate_admin(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/auth/role/')
        self.assertEqual(response.data['role'], 'admin')
        self.assertEqual(len(response.data['admin_nav']), 7)

    def test_anonymous_admin_endpoint_denied_with_redirect(self):
        for url in ('/api/v1/admin/settings/', '/api/v1/admin/orders/'):
            response = self.client.get(url)
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
            self.assertEqual(response.data['detail'], ACCESS_DENIED_MESSAGE)
            self.assertEqual(response.data['redirect'], '/')

    def test_customer_denied_with_redirect(self):
        customer = TestDataFactory.create_user()
        TestDataFactory.create_role(customer, UserRole.ROLE_CUSTOMER)
        self.client.authenticate_user(customer)
        response = self.client.get('/api/v1/admin/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'], ACCESS_DENIED_MESSAGE)
        self.assertEqual(response.data['redirect'], '/')

    def test_staff_can_manage_orders_but_not_settings(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        self.assertEqual(self.client.get('/api/v1/admin/orders/').status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get('/api/v1/admin/settings/').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get('/api/v1/admin/staff/').status_code, status.HTTP_403_FORBIDDEN)


class SettingsTests(TestCase):
    """Test settings endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def test_upsert_creates_then_updates(self):
        response = self.client.post('/api/v1/admin/settings/', {'key': 'whatsapp_number', 'value': '911234567890'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post('/api/v1/admin/settings/', {'key': 'whatsapp_number', 'value': '919999999999'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Setting.objects.filter(key='whatsapp_number').count(), 1)
        self.assertEqual(Setting.objects.get(key='whatsapp_number').value, '919999999999')

    def test_upsert_requires_key(self):
        response = self.client.post('/api/v1/admin/settings/', {'value': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_put_by_key_and_delete(self):
        response = self.client.put('/api/v1/admin/settings/store_name/', {'value': 'Edukkit'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/v1/admin/settings/store_name/')
        self.assertEqual(response.data['value'], 'Edukkit')

        response = self.client.delete('/api/v1/admin/settings/store_name/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Setting.objects.filter(key='store_name').exists())

    def test_delete_failure_reported(self):
        TestDataFactory.create_setting('store_name', 'Edukkit')
        with patch.object(Setting, 'delete', side_effect=DatabaseError('locked')):
            with self.assertLogs('storefront.core.views', level='ERROR'):
                response = self.client.delete('/api/v1/admin/settings/store_name/')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Failed to delete setting')
        self.assertTrue(Setting.objects.filter(key='store_name').exists())

    def test_public_settings_hide_private_keys(self):
        TestDataFactory.create_setting('store_name', 'Edukkit')
        TestDataFactory.create_setting('internal_note', 'secret')
        self.client.logout()

        response = self.client.get('/api/v1/settings/public/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['store_name'], 'Edukkit')
        self.assertNotIn('internal_note', response.data)

    def test_settings_cache_invalidated_on_write(self):
        TestDataFactory.create_setting('store_name', 'Old Name')
        self.assertEqual(get_public_settings()['store_name'], 'Old Name')

        self.client.put('/api/v1/admin/settings/store_name/', {'value': 'New Name'}, format='json')
        self.assertEqual(get_setting('store_name'), 'New Name')

    def test_get_setting_default_for_blank(self):
        TestDataFactory.create_setting('whatsapp_number', '')
        self.assertEqual(get_setting('whatsapp_number', '919876543210'), '919876543210')


class StaffManagementTests(TestCase):
    """Test staff management endpoints"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin(username='owner')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_add_staff_by_email(self):
        user = TestDataFactory.create_user(username='helper', email='helper@test.com')
        response = self.client.post('/api/v1/admin/staff/', {'identifier': 'helper@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(UserRole.objects.filter(user=user, role='staff').exists())

        response = self.client.post('/api/v1/admin/staff/', {'identifier': 'helper'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_add_staff_unknown_account(self):
        response = self.client.post('/api/v1/admin/staff/', {'identifier': 'nobody@test.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.data)

    def test_list_staff_with_search(self):
        TestDataFactory.create_staff(username='alice')
        TestDataFactory.create_staff(username='bob')
        response = self.client.get('/api/v1/admin/staff/')
        self.assertEqual(len(response.data), 3)

        response = self.client.get('/api/v1/admin/staff/?search=alice')
        self.assertEqual([row['username'] for row in response.data], ['alice'])

    def test_remove_staff(self):
        staff = TestDataFactory.create_staff()
        role = UserRole.objects.get(user=staff, role='staff')
        response = self.client.delete(f'/api/v1/admin/staff/{role.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(get_user_role(staff), 'customer')

    def test_remove_staff_failure_reported(self):
        staff = TestDataFactory.create_staff()
        role = UserRole.objects.get(user=staff, role='staff')
        with patch.object(UserRole, 'delete', side_effect=DatabaseError('locked')):
            with self.assertLogs('storefront.core.views', level='ERROR'):
                response = self.client.delete(f'/api/v1/admin/staff/{role.id}/')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Failed to delete staff role')
        self.assertEqual(get_user_role(staff), 'staff')

    def test_cannot_remove_admin(self):
        role = UserRole.objects.get(user=self.admin, role='admin')
        response = self.client.delete(f'/api/v1/admin/staff/{role.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(UserRole.objects.filter(pk=role.id).exists())

    def test_grant_role_command(self):
        user = TestDataFactory.create_user(username='cli_user')
        out = StringIO()
        call_command('grant_role', 'cli_user', 'staff', stdout=out)
        self.assertEqual(get_user_role(user), 'staff')
        call_command('grant_role', 'cli_user', 'staff', '--revoke', stdout=out)
        self.assertEqual(get_user_role(user), 'customer')


class SavedAddressTests(TestCase):
    """Test saved addresses"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_first_address_is_default(self):
        address = create_saved_address(self.user, '12 MG Road', '9876543210', '682001')
        self.assertTrue(address.is_default)
        second = create_saved_address(self.user, '4 Beach Road', '9876543210', '673001')
        self.assertFalse(second.is_default)

    def test_new_default_clears_previous(self):
        first = create_saved_address(self.user, '12 MG Road', '9876543210', '682001')
        second = create_saved_address(self.user, '4 Beach Road', '9876543210', '673001', is_default=True)
        first.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertTrue(second.is_default)
        self.assertEqual(SavedAddress.objects.filter(user=self.user, is_default=True).count(), 1)

    def test_list_default_first(self):
        create_saved_address(self.user, '12 MG Road', '9876543210', '682001')
        create_saved_address(self.user, '4 Beach Road', '9876543210', '673001')
        response = self.client.get('/api/v1/addresses/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data[0]['is_default'])
        self.assertEqual(response.data[0]['address'], '12 MG Road')

    def test_create_address_rejects_blank_fields(self):
        response = self.client.post('/api/v1/addresses/', {'address': '  ', 'phone': '98', 'pincode': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_address(self):
        response = self.client.post('/api/v1/addresses/', {
            'label': 'Office', 'address': 'Infopark, Kakkanad', 'phone': '9876543210',
            'pincode': '682042', 'state': 'Kerala'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_default'])

    def test_cannot_delete_other_users_address(self):
        other = TestDataFactory.create_user()
        address = TestDataFactory.create_address(other)
        response = self.client.delete(f'/api/v1/addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(SavedAddress.objects.filter(pk=address.id).exists())

    def test_delete_own_address(self):
        address = TestDataFactory.create_address(self.user)
        response = self.client.delete(f'/api/v1/addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(SavedAddress.objects.filter(pk=address.id).exists())

    def test_delete_address_failure_reported(self):
        address = TestDataFactory.create_address(self.user)
        with patch.object(SavedAddress, 'delete', side_effect=DatabaseError('locked')):
            with self.assertLogs('storefront.core.views', level='ERROR'):
                response = self.client.delete(f'/api/v1/addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Failed to delete address')
        self.assertTrue(SavedAddress.objects.filter(pk=address.id).exists())

    def test_addresses_require_login(self):
        self.client.logout()
        response = self.client.get('/api/v1/addresses/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AuthTests(TestCase):
    """Test registration, login, profile and logout"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def test_register_assigns_customer_role(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newbuyer',
            'email': 'newbuyer@test.com',
            'password': 'Circuit-Board-42',
            'password_confirm': 'Circuit-Board-42',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'customer')
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertTrue(UserRole.objects.filter(user__username='newbuyer', role='customer').exists())

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newbuyer',
            'password': 'Circuit-Board-42',
            'password_confirm': 'Circuit-Board-43',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_returns_role(self):
        TestDataFactory.create_staff(username='desk', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'desk', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'staff')

    def test_me(self):
        self.client.authenticate_user(TestDataFactory.create_admin(username='boss'))
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'boss')
        self.assertTrue(response.data['can_access_admin'])

    def test_logout_blacklists_refresh_token(self):
        TestDataFactory.create_user(username='leaver', password='testpass123')
        tokens = self.client.post('/api/v1/auth/login/', {'username': 'leaver', 'password': 'testpass123'}, format='json').data
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = self.client.post('/api/v1/auth/logout/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_205_RESET_CONTENT)

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
