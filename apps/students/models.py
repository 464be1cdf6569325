# students/models.py

from django.db import models
from django.core.validators import RegexValidator
from tutorcenter.managers import BranchManager
from utils.models import BaseModel
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# STUDENT MODEL
# =============================================================================

class Student(BaseModel):
    """Core model for student information"""

    # -------------------------------------------------------------------------
    # BASIC INFORMATION
    # -------------------------------------------------------------------------

    first_name = models.CharField("First Name", max_length=50)
    last_name = models.CharField("Last Name", max_length=50, blank=True)
    nickname = models.CharField("Nickname", max_length=30, blank=True)
    date_of_birth = models.DateField("Date of Birth", null=True, blank=True)

    # -------------------------------------------------------------------------
    # PARENT CONTACT
    # -------------------------------------------------------------------------

    parent_name = models.CharField("Parent Name", max_length=100, blank=True)
    parent_phone = models.CharField(
        "Parent Phone",
        max_length=20,
        blank=True,
        validators=[RegexValidator(r'^\+?[0-9 \-]{6,20}$', 'Enter a valid phone number')]
    )

    branch = models.ForeignKey(
        'core.Branch',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='students'
    )

    is_active = models.BooleanField("Is Active", default=True)

    objects = BranchManager()

    class Meta:
        verbose_name = "Student"
        verbose_name_plural = "Students"
        ordering = ['first_name', 'last_name']

    def __str__(self):
        if self.nickname:
            return f"{self.full_name} ({self.nickname})"
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()
