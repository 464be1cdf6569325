# academics/admin.py

from django.contrib import admin
from django.contrib import messages
from .models import ClassRoom, Holiday, Class, ClassSchedule, SessionAttendance, MakeupClass
from .services import ClassScheduleService
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# INLINE ADMINS
# =============================================================================

class ClassScheduleInline(admin.TabularInline):
    model = ClassSchedule
    extra = 0
    fields = ['session_number', 'session_date', 'status', 'original_date', 'actual_teacher', 'note']
    readonly_fields = ['original_date']
    ordering = ['session_date']


# =============================================================================
# MODEL ADMINS
# =============================================================================

@admin.register(ClassRoom)
class ClassRoomAdmin(admin.ModelAdmin):
    list_display = ['name', 'branch', 'capacity', 'is_active']
    list_filter = ['branch', 'is_active']
    search_fields = ['name', 'branch__name']


@admin.register(Holiday)
class HolidayAdmin(admin.ModelAdmin):
    list_display = ['name', 'holiday_type', 'start_date', 'end_date', 'is_school_closed']
    list_filter = ['holiday_type', 'is_school_closed']
    search_fields = ['name']
    filter_horizontal = ['branches']
    date_hierarchy = 'start_date'


@admin.register(Class)
class ClassAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'branch', 'room', 'teacher', 'start_date', 'end_date', 'status']
    list_filter = ['status', 'branch']
    search_fields = ['code', 'name']
    readonly_fields = ['end_date']
    inlines = [ClassScheduleInline]
    actions = ['reschedule_selected']

    @admin.action(description="Regenerate sessions of selected classes")
    def reschedule_selected(self, request, queryset):
        report = ClassScheduleService().reschedule_all(classes=queryset, reason='Rescheduled from admin')
        self.message_user(
            request,
            f"Rescheduled {report['processed_count']} of {report['total']} class(es)",
            messages.SUCCESS if not report['errors'] else messages.WARNING,
        )
        for error in report['errors']:
            self.message_user(request, f"{error['class_id']}: {error['message']}", messages.ERROR)


@admin.register(SessionAttendance)
class SessionAttendanceAdmin(admin.ModelAdmin):
    list_display = ['schedule', 'student', 'status']
    list_filter = ['status']


@admin.register(MakeupClass)
class MakeupClassAdmin(admin.ModelAdmin):
    list_display = ['student', 'original_class', 'status', 'makeup_date', 'start_time', 'room', 'teacher']
    list_filter = ['status', 'branch']
    search_fields = ['student__first_name', 'student__nickname', 'original_class__code']
