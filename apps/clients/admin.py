# apps/clients/admin.py
from django.contrib import admin

from .models import Client, ClientGroup, ClientLocation


class ClientLocationInline(admin.TabularInline):
    model = ClientLocation
    extra = 0


class ClientGroupInline(admin.TabularInline):
    model = ClientGroup
    extra = 0


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('id', 'surname', 'name', 'dni', 'payment_date', 'last_payment', 'payment_status', 'is_active')
    list_filter = ('is_active', 'payment_status', 'method_of_payment')
    search_fields = ('name', 'surname', 'dni')
    readonly_fields = ('payment_status', 'created_at', 'updated_at')
    inlines = (ClientLocationInline, ClientGroupInline)
