# hr/models.py

"""
Teaching staff.

Teachers are not tied to a single branch: ``available_branches`` lists the
locations they work at, and the availability checker looks for teacher
double-bookings across every branch.

All user tracking handled automatically by BaseModel
"""

from django.db import models
from django.core.exceptions import ValidationError
from tutorcenter.managers import TeacherManager
from utils.models import BaseModel
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# TEACHER MODEL
# =============================================================================

class Teacher(BaseModel):
    """Teacher profile"""

    # -------------------------------------------------------------------------
    # IDENTIFICATION
    # -------------------------------------------------------------------------

    first_name = models.CharField("First Name", max_length=50)
    last_name = models.CharField("Last Name", max_length=50, blank=True)
    nickname = models.CharField("Nickname", max_length=30, blank=True)
    email = models.EmailField("Email", blank=True)
    phone = models.CharField("Phone", max_length=30, blank=True)

    # -------------------------------------------------------------------------
    # TEACHING SPECIALIZATION
    # -------------------------------------------------------------------------

    specialties = models.JSONField("Specialties", default=list, blank=True)

    # -------------------------------------------------------------------------
    # AVAILABILITY
    # -------------------------------------------------------------------------

    available_branches = models.ManyToManyField(
        'core.Branch',
        blank=True,
        related_name='teachers'
    )

    is_active = models.BooleanField("Is Active", default=True)

    objects = TeacherManager()

    # -------------------------------------------------------------------------
    # META CLASS
    # -------------------------------------------------------------------------

    class Meta:
        verbose_name = "Teacher"
        verbose_name_plural = "Teachers"
        ordering = ['first_name', 'last_name']

    # -------------------------------------------------------------------------
    # STRING REPRESENTATION
    # -------------------------------------------------------------------------

    def __str__(self):
        return self.display_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self):
        if self.nickname:
            return f"{self.nickname} ({self.full_name})"
        return self.full_name

    def clean(self):
        super().clean()
        if not isinstance(self.specialties, list):
            raise ValidationError({'specialties': 'Specialties must be a list'})

    def works_at(self, branch):
        """True when the teacher is assigned to the branch (or has no branch restriction)"""
        branch_id = getattr(branch, 'pk', branch)
        if not self.pk:
            return True
        assigned = set(self.available_branches.values_list('id', flat=True))
        return not assigned or branch_id in assigned
