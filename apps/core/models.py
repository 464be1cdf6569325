# core/models.py

"""
Core models for the tutoring-center system: branches and the
scheduling configuration singleton.
"""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.core.exceptions import ValidationError
from django.utils import timezone
from django_countries.fields import CountryField
from zoneinfo import ZoneInfo
from tutorcenter.managers import BranchManager
from utils.models import BaseModel
import logging

logger = logging.getLogger(__name__)


# Weekday numbering used throughout the system: 0 = Sunday ... 6 = Saturday
DAY_OF_WEEK_CHOICES = [
    (0, 'Sunday'),
    (1, 'Monday'),
    (2, 'Tuesday'),
    (3, 'Wednesday'),
    (4, 'Thursday'),
    (5, 'Friday'),
    (6, 'Saturday'),
]


# =============================================================================
# SCHEDULING CONFIGURATION MODEL
# =============================================================================

class SchedulingConfiguration(BaseModel):
    """
    Scheduling policy for the whole center.
    Singleton model - only one instance allowed (pk=1).

    Seed values come from ``settings.TUTORCENTER_SCHEDULING``.
    """

    operational_timezone = models.CharField(
        "Operational Timezone",
        max_length=63,
        default='Asia/Bangkok',
        help_text="Fallback timezone for branches without their own timezone"
    )

    holiday_lookup_months = models.PositiveSmallIntegerField(
        "Holiday Lookup Window (months)",
        default=6,
        validators=[MinValueValidator(1), MaxValueValidator(36)],
        help_text="How far past a class start date holidays are loaded when generating sessions"
    )

    scheduling_horizon_days = models.PositiveIntegerField(
        "Scheduling Horizon (days)",
        default=730,
        validators=[MinValueValidator(7)],
        help_text="Give up when no session can be placed within this many days"
    )

    makeup_allow_holidays = models.BooleanField(
        "Allow Makeup Classes on Holidays",
        default=False,
        help_text="Whether a makeup class may be booked on a closed date"
    )

    makeup_limit_per_class = models.PositiveSmallIntegerField(
        "Makeup Limit per Class",
        default=0,
        help_text="Maximum makeup requests per student per class (0 = unlimited)"
    )

    auto_reschedule_on_holiday_change = models.BooleanField(
        "Reschedule on Holiday Change",
        default=True,
        help_text="Regenerate affected class sessions whenever a holiday is added, changed or removed"
    )

    reference_cache_ttl_seconds = models.PositiveIntegerField(
        "Reference Cache TTL (seconds)",
        default=300,
    )

    def __str__(self):
        return "Scheduling Configuration"

    def clean(self):
        super().clean()
        if self.operational_timezone:
            try:
                ZoneInfo(self.operational_timezone)
            except Exception:
                raise ValidationError({
                    'operational_timezone': f"Invalid timezone: {self.operational_timezone}"
                })

    def save(self, *args, **kwargs):
        """Ensure only one instance exists (singleton pattern)"""
        self.pk = 1
        super().save(*args, **kwargs)
        logger.debug("SchedulingConfiguration saved")

    def delete(self, *args, **kwargs):
        """Prevent deletion of the singleton instance"""
        logger.warning("Attempted to delete SchedulingConfiguration singleton instance - operation blocked")

    @classmethod
    def get_instance(cls):
        defaults = dict(getattr(settings, 'TUTORCENTER_SCHEDULING', {}))
        instance, created = cls.objects.get_or_create(pk=1, defaults=defaults)
        if created:
            logger.info("Created default scheduling configuration")
        return instance

    def get_timezone(self):
        try:
            return ZoneInfo(self.operational_timezone)
        except Exception as e:
            logger.warning(f"Invalid timezone '{self.operational_timezone}': {e}. Falling back to UTC")
            return ZoneInfo('UTC')

    class Meta:
        verbose_name = "Scheduling Configuration"
        verbose_name_plural = "Scheduling Configuration"


# =============================================================================
# BRANCH MODEL
# =============================================================================

class Branch(BaseModel):
    """A physical school location. Rooms and branch holidays belong to a branch."""

    name = models.CharField("Branch Name", max_length=150)
    code = models.CharField("Branch Code", max_length=20, unique=True)
    address = models.TextField("Address", blank=True)
    country = CountryField("Country", default='TH')
    phone = models.CharField("Phone", max_length=30, blank=True)

    timezone = models.CharField(
        "Timezone",
        max_length=63,
        blank=True,
        help_text="Leave blank to use the operational timezone"
    )

    open_time = models.TimeField("Opening Time", null=True, blank=True)
    close_time = models.TimeField("Closing Time", null=True, blank=True)
    open_days = models.JSONField(
        "Open Days",
        default=list,
        blank=True,
        help_text="Weekday numbers (0 = Sunday) the branch is open"
    )

    is_active = models.BooleanField("Is Active", default=True)

    objects = BranchManager()

    def __str__(self):
        return f"{self.code} - {self.name}"

    def clean(self):
        super().clean()
        errors = {}
        if self.timezone:
            try:
                ZoneInfo(self.timezone)
            except Exception:
                errors['timezone'] = f"Invalid timezone: {self.timezone}"
        if any(day not in range(7) for day in self.open_days or []):
            errors['open_days'] = 'Open days must be weekday numbers between 0 (Sunday) and 6 (Saturday)'
        if self.open_time and self.close_time and self.open_time >= self.close_time:
            errors['close_time'] = 'Closing time must be after opening time'
        if errors:
            raise ValidationError(errors)

    def get_timezone(self):
        """Branch timezone, falling back to the operational timezone"""
        if self.timezone:
            try:
                return ZoneInfo(self.timezone)
            except Exception as e:
                logger.warning(f"Invalid timezone '{self.timezone}' on branch {self.code}: {e}")
        return SchedulingConfiguration.get_instance().get_timezone()

    def get_today(self):
        """Today's calendar date at this branch"""
        return timezone.now().astimezone(self.get_timezone()).date()

    class Meta:
        ordering = ['name']
        verbose_name = "Branch"
        verbose_name_plural = "Branches"
        indexes = [
            models.Index(fields=['is_active']),
        ]
