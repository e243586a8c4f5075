# apps/groups/admin.py
from django.contrib import admin

from .models import Group


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'location', 'day_of_week', 'schedule', 'min_age', 'max_age')
    list_filter = ('location', 'day_of_week')
    search_fields = ('name',)
