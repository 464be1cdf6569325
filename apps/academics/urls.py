# academics/urls.py
"""
URL Configuration for Academics Module
1. AJAX Views (ajax_views.py) - JSON endpoints for scheduling and availability
2. Regular Views (views.py) - File exports
All URLs use UUID primary keys
"""
from django.urls import path
from . import views, ajax_views

app_name = 'academics'

urlpatterns = [
    # =============================================================================
    # CLASSES
    # =============================================================================
    path('classes/end-date/', ajax_views.class_end_date, name='class_end_date'),
    path('classes/reschedule-all/', ajax_views.reschedule_all_classes, name='reschedule_all'),
    path('classes/<uuid:pk>/sessions/', ajax_views.class_sessions, name='class_sessions'),
    path('classes/<uuid:pk>/sessions/export/', views.export_class_schedule_excel, name='class_sessions_export'),
    path('sessions/<uuid:pk>/reschedule/', ajax_views.session_reschedule, name='session_reschedule'),

    # =============================================================================
    # AVAILABILITY
    # =============================================================================
    path('availability/check/', ajax_views.availability_check, name='availability_check'),
    path('availability/day/', ajax_views.availability_day, name='availability_day'),
]
