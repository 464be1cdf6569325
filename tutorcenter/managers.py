# managers.py

from django.core.exceptions import ValidationError
from django.db import models
import logging

logger = logging.getLogger(__name__)


class BranchQuerySet(models.QuerySet):
    """QuerySet helpers shared by every branch-owned model"""

    branch_field = 'branch'

    def for_branch(self, branch):
        """Restrict to one branch (instance or primary key)"""
        if branch is None:
            return self
        branch_id = getattr(branch, 'pk', branch)
        return self.filter(**{f'{self.branch_field}_id': branch_id})

    def active(self):
        if any(f.name == 'is_active' for f in self.model._meta.fields):
            return self.filter(is_active=True)
        return self


class BranchManager(models.Manager.from_queryset(BranchQuerySet)):
    """Manager that exposes the branch-aware QuerySet methods"""

    def get_or_none(self, **kwargs):
        try:
            return self.get_queryset().get(**kwargs)
        except self.model.DoesNotExist:
            return None
        except (ValueError, ValidationError, self.model.MultipleObjectsReturned) as e:
            logger.warning(f"Lookup on {self.model.__name__} failed for {kwargs}: {e}")
            return None


# ==============================================================================
# CLASS / SESSION MANAGERS
# ==============================================================================

class ClassQuerySet(BranchQuerySet):

    SCHEDULABLE_STATUSES = ('published', 'started')

    def schedulable(self):
        """Classes whose sessions still occupy rooms and teachers"""
        return self.filter(status__in=self.SCHEDULABLE_STATUSES)

    def overlapping(self, start_date, end_date):
        return self.filter(start_date__lte=end_date, end_date__gte=start_date)


class ClassManager(BranchManager.from_queryset(ClassQuerySet)):
    pass


# ==============================================================================
# TEACHER MANAGER
# ==============================================================================

class TeacherQuerySet(BranchQuerySet):

    def for_branch(self, branch):
        """Teachers assigned to the branch, plus those with no branch restriction"""
        if branch is None:
            return self
        branch_id = getattr(branch, 'pk', branch)
        return self.filter(
            models.Q(available_branches=branch_id) | models.Q(available_branches__isnull=True)
        ).distinct()


class TeacherManager(BranchManager.from_queryset(TeacherQuerySet)):
    pass


class ClassScheduleQuerySet(models.QuerySet):

    def not_cancelled(self):
        return self.exclude(status='cancelled')

    def between(self, start_date, end_date):
        return self.filter(session_date__gte=start_date, session_date__lte=end_date)

    def pinned(self):
        """Sessions tied to their date: completed, attended, or given a substitute teacher"""
        return self.filter(
            models.Q(status='completed')
            | models.Q(attendance_records__isnull=False)
            | models.Q(actual_teacher__isnull=False)
        ).distinct()


class ClassScheduleManager(models.Manager.from_queryset(ClassScheduleQuerySet)):
    pass
