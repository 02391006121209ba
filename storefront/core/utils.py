"""Store settings helpers"""
from django.conf import settings as django_settings
import logging

from .cache_utils import cached_query, SETTINGS_CACHE_TTL, SETTINGS_NAMESPACE
from .models import Setting

logger = logging.getLogger(__name__)

# Keys read by the header, footer, checkout and invoice
PUBLIC_SETTING_KEYS = [
    'store_name',
    'store_email',
    'whatsapp_number',
    'company_website',
    'company_address',
    'payment_bank',
    'payment_account_number',
    'payment_ifsc',
    'payment_upi_id',
]


def store_config(name):
    """Read a STOREFRONT business constant from Django settings"""
    return django_settings.STOREFRONT[name]


@cached_query(cache_ttl=SETTINGS_CACHE_TTL, namespace=SETTINGS_NAMESPACE)
def get_settings_map():
    """All settings as a key -> value dict"""
    return dict(Setting.objects.values_list('key', 'value'))


def get_setting(key, default=None):
    value = get_settings_map().get(key)
    if value in (None, ''):
        return default
    return value


def get_public_settings():
    settings_map = get_settings_map()
    return {key: settings_map[key] for key in PUBLIC_SETTING_KEYS if key in settings_map}


def upsert_setting(key, value, description=None):
    """Insert or update a setting by key, returning (setting, created)"""
    defaults = {'value': value}
    if description is not None:
        defaults['description'] = description
    setting, created = Setting.objects.update_or_create(key=key, defaults=defaults)
    logger.info(f"Setting '{key}' {'created' if created else 'updated'}")
    return setting, created
