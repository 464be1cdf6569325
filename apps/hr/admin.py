# hr/admin.py

from django.contrib import admin
from .models import Teacher


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'nickname', 'email', 'is_active']
    list_filter = ['is_active', 'available_branches']
    search_fields = ['first_name', 'last_name', 'nickname', 'email']
    filter_horizontal = ['available_branches']
