# students/admin.py

from django.contrib import admin
from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'nickname', 'parent_phone', 'branch', 'is_active']
    list_filter = ['is_active', 'branch']
    search_fields = ['first_name', 'last_name', 'nickname', 'parent_name']
