"""
URL configuration.

The store handle is built once here and handed to every API view.
Paths match with or without a trailing slash.
"""
from django.contrib import admin
from django.urls import path, re_path
from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

from apps.clients.views import ClientView, ReconcileView
from apps.core.store import StoreHandle
from apps.dashboard.views import DashboardView
from apps.groups.views import GroupView
from apps.locations.views import LocationView

schema_view = get_schema_view(openapi.Info(
        title="School Administration API",
        default_version='v1',
        description="Clients, locations, groups and payment status",
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

store = StoreHandle.from_settings()

urlpatterns = [
    # Swagger documentation
    re_path(r'^swagger(?P<format>\.json|\.yaml)$',
            schema_view.without_ui(cache_timeout=0),
            name='schema-json'),
    re_path(r'^swagger/$',
            schema_view.with_ui('swagger', cache_timeout=0),
            name='schema-swagger-ui'),
    re_path(r'^redoc/$',
            schema_view.with_ui('redoc', cache_timeout=0),
            name='schema-redoc'),

    # Admin
    path('admin/', admin.site.urls),

    # API endpoints
    re_path(r'^api/clients/?$', ClientView.as_view(store=store), name='clients'),
    re_path(r'^api/locations/?$', LocationView.as_view(store=store), name='locations'),
    re_path(r'^api/groups/?$', GroupView.as_view(store=store), name='groups'),
    re_path(r'^api/dashboard/?$', DashboardView.as_view(store=store), name='dashboard'),
    re_path(r'^api/payment-status/reconcile/?$', ReconcileView.as_view(store=store), name='payment-status-reconcile'),
]
