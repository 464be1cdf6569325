# academics/models.py

from django.db import models
from django.core.validators import MinValueValidator
from django.core.exceptions import ValidationError
from django.utils import timezone
from tutorcenter.managers import BranchManager, ClassManager, ClassQuerySet, ClassScheduleManager
from utils.models import BaseModel
from core.models import Branch
from .exceptions import InvalidScheduleInput
from .scheduling import (
    BranchScope,
    CalendarHoliday,
    NATIONAL,
    validate_schedule_input,
    validate_weekdays,
    weekdays_label,
)
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# CLASSROOM MODEL
# =============================================================================

class ClassRoom(BaseModel):
    """Model for physical classrooms. A room belongs to exactly one branch."""

    branch = models.ForeignKey(
        Branch,
        verbose_name="Branch",
        on_delete=models.CASCADE,
        related_name="rooms"
    )
    name = models.CharField("Room Name", max_length=50)
    floor = models.CharField("Floor", max_length=10, blank=True)

    # Capacity and features
    capacity = models.PositiveIntegerField("Capacity", default=0)
    has_projector = models.BooleanField("Has Projector", default=False)
    has_whiteboard = models.BooleanField("Has Whiteboard", default=True)

    # Status
    is_active = models.BooleanField("Is Active", default=True)

    objects = BranchManager()

    # -------------------------------------------------------------------------
    # METHODS
    # -------------------------------------------------------------------------

    def __str__(self):
        return f"{self.name} ({self.branch.code})"

    def get_full_location(self):
        """Get full location description"""
        location_parts = [self.name]
        if self.floor:
            location_parts.append(f"Floor {self.floor}")
        location_parts.append(self.branch.name)
        return ", ".join(location_parts)

    # -------------------------------------------------------------------------
    # META CLASS
    # -------------------------------------------------------------------------

    class Meta:
        ordering = ['branch__name', 'name']
        verbose_name = "Classroom"
        verbose_name_plural = "Classrooms"
        constraints = [
            models.UniqueConstraint(fields=['branch', 'name'], name='unique_room_name_per_branch'),
        ]
        indexes = [
            models.Index(fields=['is_active']),
        ]


# =============================================================================
# HOLIDAY MODEL
# =============================================================================

class Holiday(BaseModel):
    """
    Calendar exclusions.

    Scope and closure are independent:
    - ``national`` holidays apply to every branch
    - ``branch`` and ``special`` holidays apply only to the listed branches
    - only holidays with ``is_school_closed`` remove class sessions

    Examples:
    - "Songkran" (national, multi-day, closed)
    - "Sukhumvit branch renovation" (branch, closed)
    - "Parents' open house" (special, not closed)
    """

    HOLIDAY_TYPE_CHOICES = [
        ('national', 'National Holiday'),
        ('branch', 'Branch Holiday'),
        ('special', 'Special Day'),
    ]

    # -------------------------------------------------------------------------
    # CORE FIELDS
    # -------------------------------------------------------------------------

    name = models.CharField("Holiday Name", max_length=200)

    holiday_type = models.CharField(
        "Holiday Type",
        max_length=20,
        choices=HOLIDAY_TYPE_CHOICES,
        default='national',
        db_index=True
    )

    # -------------------------------------------------------------------------
    # DATE RANGE
    # -------------------------------------------------------------------------

    start_date = models.DateField(
        "Start Date",
        db_index=True,
        help_text="First day of holiday"
    )

    end_date = models.DateField(
        "End Date",
        null=True,
        blank=True,
        help_text="Last day of holiday (leave blank for single-day holidays)"
    )

    # -------------------------------------------------------------------------
    # SCOPE
    # -------------------------------------------------------------------------

    branches = models.ManyToManyField(
        Branch,
        blank=True,
        related_name='holidays',
        help_text="Branches observing this holiday (ignored for national holidays)"
    )

    # -------------------------------------------------------------------------
    # OPERATIONAL FLAGS
    # -------------------------------------------------------------------------

    is_school_closed = models.BooleanField(
        "School Closed",
        default=True,
        help_text="Whether classes are cancelled on these dates"
    )

    description = models.TextField("Description", blank=True)

    objects = models.Manager()

    # -------------------------------------------------------------------------
    # STRING REPRESENTATION
    # -------------------------------------------------------------------------

    def __str__(self):
        if self.end_date and self.start_date != self.end_date:
            return f"{self.name} ({self.start_date} to {self.end_date})"
        return f"{self.name} - {self.start_date}"

    # -------------------------------------------------------------------------
    # VALIDATION
    # -------------------------------------------------------------------------

    def clean(self):
        super().clean()
        if self.end_date and self.start_date and self.start_date > self.end_date:
            raise ValidationError({'end_date': 'End date cannot be before start date'})

    def save(self, *args, **kwargs):
        """Save with validation"""
        self.full_clean()
        super().save(*args, **kwargs)

    # -------------------------------------------------------------------------
    # PROPERTIES
    # -------------------------------------------------------------------------

    @property
    def last_date(self):
        return self.end_date or self.start_date

    @property
    def duration_days(self):
        """Get duration in days"""
        return (self.last_date - self.start_date).days + 1

    @property
    def is_national(self):
        return self.holiday_type == 'national'

    def get_scope(self):
        """``NATIONAL`` or a ``BranchScope`` over the listed branches"""
        if self.is_national:
            return NATIONAL
        if self._state.adding:
            return BranchScope()
        return BranchScope(frozenset(str(branch.pk) for branch in self.branches.all()))

    def applies_to_branch(self, branch):
        return self.get_scope().applies_to(getattr(branch, 'pk', branch))

    def overlaps_with_date(self, check_date):
        """Check if holiday includes a specific date"""
        return self.start_date <= check_date <= self.last_date

    def to_calendar_holiday(self):
        return CalendarHoliday(
            name=self.name,
            start_date=self.start_date,
            end_date=self.end_date,
            scope=self.get_scope(),
            is_school_closed=self.is_school_closed,
        )

    class Meta:
        ordering = ['start_date']
        verbose_name = "Holiday"
        verbose_name_plural = "Holidays"
        indexes = [
            models.Index(fields=['start_date', 'end_date']),
        ]


# =============================================================================
# CLASS MODEL
# =============================================================================

class Class(BaseModel):
    """
    A recurring course offering: fixed weekdays and clock times in one room,
    running from ``start_date`` until ``total_sessions`` sessions are held.

    ``end_date`` is derived from the generated sessions and kept in sync by
    ``ClassScheduleService``.
    """

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('published', 'Published'),
        ('started', 'Started'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    name = models.CharField("Class Name", max_length=200)
    code = models.CharField("Class Code", max_length=30, unique=True)

    # -------------------------------------------------------------------------
    # PLACEMENT
    # -------------------------------------------------------------------------

    branch = models.ForeignKey(
        Branch,
        verbose_name="Branch",
        on_delete=models.PROTECT,
        related_name="classes"
    )
    room = models.ForeignKey(
        ClassRoom,
        verbose_name="Room",
        on_delete=models.SET_NULL,
        related_name="classes",
        null=True,
        blank=True
    )
    teacher = models.ForeignKey(
        'hr.Teacher',
        verbose_name="Teacher",
        on_delete=models.SET_NULL,
        related_name="classes",
        null=True,
        blank=True
    )

    # -------------------------------------------------------------------------
    # SCHEDULE
    # -------------------------------------------------------------------------

    days_of_week = models.JSONField(
        "Days of Week",
        default=list,
        help_text="Weekday numbers, 0 = Sunday"
    )
    start_time = models.TimeField("Start Time")
    end_time = models.TimeField("End Time")
    start_date = models.DateField("Start Date")
    end_date = models.DateField("End Date", null=True, blank=True)
    total_sessions = models.PositiveIntegerField(
        "Total Sessions",
        validators=[MinValueValidator(1)]
    )

    max_students = models.PositiveIntegerField("Maximum Students", default=10)
    description = models.TextField("Description", blank=True)

    status = models.CharField(
        "Status",
        max_length=20,
        choices=STATUS_CHOICES,
        default='draft',
        db_index=True
    )

    objects = ClassManager()

    # -------------------------------------------------------------------------
    # VALIDATION
    # -------------------------------------------------------------------------

    def clean(self):
        """Custom validation"""
        super().clean()
        errors = {}

        if self.start_time and self.end_time and self.start_time >= self.end_time:
            errors['end_time'] = 'End time must be after start time.'

        try:
            if self.start_date and self.total_sessions:
                validate_schedule_input(self.start_date, self.days_of_week, self.total_sessions)
            else:
                validate_weekdays(self.days_of_week)
        except InvalidScheduleInput as e:
            errors['days_of_week'] = str(e)

        if self.room_id and self.branch_id and self.room.branch_id != self.branch_id:
            errors['room'] = 'Room belongs to a different branch.'

        if errors:
            raise ValidationError(errors)

    # -------------------------------------------------------------------------
    # DISPLAY METHODS
    # -------------------------------------------------------------------------

    def __str__(self):
        return f"{self.code} - {self.name}"

    def get_days_display(self):
        return weekdays_label(self.days_of_week or [])

    def get_time_range_display(self):
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"

    # -------------------------------------------------------------------------
    # STATUS HELPERS
    # -------------------------------------------------------------------------

    @property
    def is_schedulable(self):
        return self.status in ClassQuerySet.SCHEDULABLE_STATUSES

    def get_sessions_summary(self):
        sessions = self.schedules.all()
        return {
            'total': sessions.count(),
            'completed': sessions.filter(status='completed').count(),
            'cancelled': sessions.filter(status='cancelled').count(),
            'remaining': sessions.filter(status__in=['scheduled', 'rescheduled']).count(),
        }

    class Meta:
        ordering = ['start_date', 'code']
        verbose_name = "Class"
        verbose_name_plural = "Classes"
        indexes = [
            models.Index(fields=['branch', 'status']),
            models.Index(fields=['start_date', 'end_date']),
        ]


# =============================================================================
# CLASS SCHEDULE (SESSION) MODEL
# =============================================================================

class ClassSchedule(BaseModel):
    """One concrete session of a class on a calendar date"""

    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('rescheduled', 'Rescheduled'),
    ]

    class_instance = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='schedules'
    )
    session_number = models.PositiveIntegerField("Session Number")
    session_date = models.DateField("Session Date", db_index=True)

    status = models.CharField(
        "Status",
        max_length=20,
        choices=STATUS_CHOICES,
        default='scheduled'
    )

    original_date = models.DateField(
        "Original Date",
        null=True,
        blank=True,
        help_text="Date before the session was moved"
    )
    rescheduled_at = models.DateTimeField("Rescheduled At", null=True, blank=True)

    actual_teacher = models.ForeignKey(
        'hr.Teacher',
        on_delete=models.SET_NULL,
        related_name='substitute_sessions',
        null=True,
        blank=True,
        help_text="Teacher who actually taught, when different from the class teacher"
    )
    note = models.TextField("Note", blank=True)

    objects = ClassScheduleManager()

    def __str__(self):
        return f"{self.class_instance.code} #{self.session_number} ({self.session_date})"

    @property
    def has_recorded_attendance(self):
        return self.status == 'completed' or self.attendance_records.exists()

    def mark_rescheduled(self, new_date, reason=''):
        """Move the session, remembering the first date it was planned for"""
        if self.original_date is None:
            self.original_date = self.session_date
        self.session_date = new_date
        self.status = 'rescheduled'
        self.rescheduled_at = timezone.now()
        if reason:
            self.note = reason

    class Meta:
        ordering = ['session_date', 'session_number']
        verbose_name = "Class Session"
        verbose_name_plural = "Class Sessions"
        indexes = [
            models.Index(fields=['class_instance', 'session_date']),
            models.Index(fields=['session_date', 'status']),
        ]


# =============================================================================
# SESSION ATTENDANCE MODEL
# =============================================================================

class SessionAttendance(BaseModel):
    """Attendance of one student at one session"""

    STATUS_CHOICES = [
        ('present', 'Present'),
        ('absent', 'Absent'),
        ('late', 'Late'),
    ]

    schedule = models.ForeignKey(
        ClassSchedule,
        on_delete=models.CASCADE,
        related_name='attendance_records'
    )
    student = models.ForeignKey(
        'students.Student',
        on_delete=models.CASCADE,
        related_name='session_attendance'
    )
    status = models.CharField("Status", max_length=10, choices=STATUS_CHOICES)
    note = models.CharField("Note", max_length=255, blank=True)

    def __str__(self):
        return f"{self.student} - {self.schedule} - {self.get_status_display()}"

    class Meta:
        verbose_name = "Session Attendance"
        verbose_name_plural = "Session Attendance"
        constraints = [
            models.UniqueConstraint(fields=['schedule', 'student'], name='unique_attendance_per_session'),
        ]


# =============================================================================
# MAKEUP CLASS MODEL
# =============================================================================

class MakeupClass(BaseModel):
    """
    A one-off substitute session for a student who missed a regular session.

    Lifecycle: pending -> scheduled -> completed, or cancelled from any
    non-final state.
    """

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('scheduled', 'Scheduled'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    ALLOWED_TRANSITIONS = {
        'pending': {'scheduled', 'cancelled'},
        'scheduled': {'completed', 'cancelled'},
        'completed': set(),
        'cancelled': set(),
    }

    student = models.ForeignKey(
        'students.Student',
        on_delete=models.CASCADE,
        related_name='makeup_classes'
    )
    original_class = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='makeup_classes'
    )
    original_schedule = models.ForeignKey(
        ClassSchedule,
        on_delete=models.CASCADE,
        related_name='makeup_classes'
    )
    reason = models.TextField("Reason", blank=True)

    status = models.CharField(
        "Status",
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending',
        db_index=True
    )

    # -------------------------------------------------------------------------
    # PLACEMENT (set when scheduled)
    # -------------------------------------------------------------------------

    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        related_name='makeup_classes',
        null=True,
        blank=True
    )
    room = models.ForeignKey(
        ClassRoom,
        on_delete=models.SET_NULL,
        related_name='makeup_classes',
        null=True,
        blank=True
    )
    teacher = models.ForeignKey(
        'hr.Teacher',
        on_delete=models.SET_NULL,
        related_name='makeup_classes',
        null=True,
        blank=True
    )
    makeup_date = models.DateField("Makeup Date", null=True, blank=True, db_index=True)
    start_time = models.TimeField("Start Time", null=True, blank=True)
    end_time = models.TimeField("End Time", null=True, blank=True)

    attended = models.BooleanField("Attended", null=True, blank=True)
    notes = models.TextField("Notes", blank=True)

    def __str__(self):
        return f"Makeup for {self.student} - {self.original_schedule}"

    def can_transition_to(self, status):
        return status in self.ALLOWED_TRANSITIONS.get(self.status, set())

    def clean(self):
        super().clean()
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError({'end_time': 'End time must be after start time.'})

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Makeup Class"
        verbose_name_plural = "Makeup Classes"
        indexes = [
            models.Index(fields=['makeup_date', 'status']),
            models.Index(fields=['student', 'original_class']),
        ]
