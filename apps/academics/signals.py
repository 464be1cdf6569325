# academics/signals.py
"""
Signal handlers for academics app

Keeps class sessions in line with the holiday calendar: adding, moving,
re-scoping or deleting a closing holiday regenerates the schedules of the
classes it touches (when enabled in SchedulingConfiguration).
"""

from django.db.models.signals import post_save, pre_save, pre_delete, post_delete, m2m_changed
from django.dispatch import receiver
from core.models import SchedulingConfiguration
from academics.models import Holiday
import logging

logger = logging.getLogger(__name__)


def _auto_reschedule_enabled():
    return SchedulingConfiguration.get_instance().auto_reschedule_on_holiday_change


def _reschedule(snapshots, reason):
    from academics.services import HolidayRescheduleService

    report = HolidayRescheduleService.reschedule_for(snapshots, reason=reason)
    if report['total']:
        logger.info(
            f"{reason}: rescheduled {report['processed_count']} of {report['total']} class(es), "
            f"{len(report['errors'])} error(s)"
        )
    for error in report['errors']:
        logger.warning(f"{reason}: class {error['class_id']} not rescheduled: {error['message']}")
    return report


# =============================================================================
# HOLIDAY SIGNALS
# =============================================================================

@receiver(pre_save, sender=Holiday)
def holiday_pre_save(sender, instance, raw=False, **kwargs):
    """Remember the stored state so classes the holiday moves away from are freed"""
    if raw or instance._state.adding:
        instance._previous_snapshot = None
        return

    from academics.services import HolidayRescheduleService

    previous = Holiday.objects.filter(pk=instance.pk).first()
    instance._previous_snapshot = HolidayRescheduleService.snapshot(previous) if previous else None


@receiver(post_save, sender=Holiday)
def holiday_post_save(sender, instance, created, raw=False, **kwargs):
    """
    Handle post-save operations for Holiday.
    - Log creation/updates
    - Regenerate affected classes
    """
    if raw:
        return

    if created:
        logger.info(f"Holiday created: {instance}")
    else:
        logger.info(f"Holiday updated: {instance}")

    if not _auto_reschedule_enabled():
        return

    from academics.services import HolidayRescheduleService

    # branch holidays get their branches after the first save; m2m_changed handles them
    if created and not instance.is_national:
        return

    _reschedule(
        [getattr(instance, '_previous_snapshot', None), HolidayRescheduleService.snapshot(instance)],
        reason=f"Holiday '{instance.name}' saved",
    )


@receiver(m2m_changed, sender=Holiday.branches.through)
def holiday_branches_changed(sender, instance, action, reverse=False, **kwargs):
    """Regenerate classes at branches added to or removed from a holiday"""
    if reverse or not isinstance(instance, Holiday):
        return

    from academics.services import HolidayRescheduleService

    if action in ('pre_add', 'pre_remove', 'pre_clear'):
        instance._branches_snapshot = HolidayRescheduleService.snapshot(instance)
        return

    if action not in ('post_add', 'post_remove', 'post_clear'):
        return
    if instance.is_national or not _auto_reschedule_enabled():
        return

    _reschedule(
        [getattr(instance, '_branches_snapshot', None), HolidayRescheduleService.snapshot(instance)],
        reason=f"Branches of holiday '{instance.name}' changed",
    )


@receiver(pre_delete, sender=Holiday)
def holiday_pre_delete(sender, instance, **kwargs):
    from academics.services import HolidayRescheduleService

    instance._deleted_snapshot = HolidayRescheduleService.snapshot(instance)


@receiver(post_delete, sender=Holiday)
def holiday_post_delete(sender, instance, **kwargs):
    """Give the closed dates back to the classes the holiday had pushed out"""
    logger.warning(f"Holiday deleted: {instance}")

    if not _auto_reschedule_enabled():
        return

    _reschedule(
        [getattr(instance, '_deleted_snapshot', None)],
        reason=f"Holiday '{instance.name}' deleted",
    )
