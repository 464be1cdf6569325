"""
URL configuration for the tutorcenter project.

Only the academics app exposes endpoints; everything else is reached
through the Django admin.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Django admin
    path('admin/', admin.site.urls),

    # Academics app - classes, schedules, availability, makeup classes
    path('academics/', include(('academics.urls', 'academics'), namespace='academics')),
]
