"""
Store handle: the single entry point to the relational store.

The handle is built once per process (see config/urls.py and the management
commands) and passed explicitly to the views and services that need it.
Connection pooling, health checks and timeouts are configured on the Django
database alias (CONN_MAX_AGE, CONN_HEALTH_CHECKS, OPTIONS), not here.
"""
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import DEFAULT_DB_ALIAS, connections, transaction


class StoreHandle:
    """Binds ORM access and transactions to one configured database alias."""

    def __init__(self, alias=DEFAULT_DB_ALIAS):
        if alias not in settings.DATABASES:
            raise ImproperlyConfigured(
                f"Database alias '{alias}' is not configured. Set DATABASE_URL."
            )
        self.alias = alias

    @classmethod
    def from_settings(cls):
        return cls(getattr(settings, 'STORE_DATABASE_ALIAS', DEFAULT_DB_ALIAS))

    @property
    def connection(self):
        # Django opens the underlying connection lazily on first use.
        return connections[self.alias]

    def atomic(self, savepoint=True):
        return transaction.atomic(using=self.alias, savepoint=savepoint)

    def objects(self, model):
        return model._default_manager.db_manager(self.alias)

    def __repr__(self):
        return f"<StoreHandle alias={self.alias!r}>"
