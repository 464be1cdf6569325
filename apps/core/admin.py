# core/admin.py

from django.contrib import admin
from .models import Branch, SchedulingConfiguration


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'country', 'timezone', 'is_active']
    list_filter = ['is_active', 'country']
    search_fields = ['code', 'name']


@admin.register(SchedulingConfiguration)
class SchedulingConfigurationAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'operational_timezone', 'holiday_lookup_months', 'makeup_limit_per_class']

    def has_add_permission(self, request):
        # Singleton: edit the existing row instead
        return not SchedulingConfiguration.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False
