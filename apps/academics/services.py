# academics/services.py

"""
Class Scheduling Services

Business logic that ties the pure scheduling and availability functions to
the database:
- Schedule previews and class creation
- Schedule regeneration and the bulk "reschedule all" job
- Single-session rescheduling
- Class status maintenance
- Makeup class workflow

Writes use transaction.atomic; bookings lock the room and teacher rows and
re-run the availability check before committing.
"""

from django.db import transaction
from django.db.models import Max
from datetime import timedelta
from functools import partial
import logging
import math

from core.utils import ReferenceDataCache
from students.models import Student
from hr.models import Teacher

from .models import (
    Class,
    ClassRoom,
    ClassSchedule,
    MakeupClass,
    SessionAttendance,
)
from .availability import AvailabilityQuery, TimeWindow, check_availability
from .exceptions import (
    SchedulingError,
    InvalidScheduleInput,
    HolidayCoverageExceeded,
    ReferenceNotFound,
    ConflictDetected,
    InvalidStatusTransition,
    MakeupLimitExceeded,
)
from .scheduling import (
    closed_dates_for,
    compute_schedule,
    find_next_session_date,
    validate_schedule_input,
    weekday_number,
)
from .utils import (
    REFERENCE_MODELS,
    add_months,
    date_range,
    get_booked_slots,
    get_holiday_window,
    get_holidays_for_branch,
    get_scheduling_config,
    load_reference,
    resolve_reference,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CLASS SCHEDULE SERVICE
# =============================================================================

class ClassScheduleService:
    """
    Scheduling workflow for classes, sessions and makeup classes.

    One instance owns one ``ReferenceDataCache`` per reference kind, so a
    bulk job resolves each branch, room and teacher once.

    Example:
        >>> service = ClassScheduleService()
        >>> report = service.reschedule_all()
        >>> report['processed_count'], report['errors']
    """

    def __init__(self, config=None, cache_ttl=None, clock=None):
        self.config = config or get_scheduling_config()
        ttl = self.config.reference_cache_ttl_seconds if cache_ttl is None else cache_ttl
        self.references = {
            kind: ReferenceDataCache(partial(load_reference, kind), ttl=ttl, clock=clock)
            for kind in REFERENCE_MODELS
        }

    # -------------------------------------------------------------------------
    # REFERENCE HELPERS
    # -------------------------------------------------------------------------

    def resolve(self, kind, value):
        return resolve_reference(kind, value, loader=self.references[kind].get)

    def _resolve_optional(self, kind, value):
        if value is None or value == '':
            return None
        return self.resolve(kind, value)

    def _resolve_placement(self, branch, room=None, teacher=None):
        branch = self.resolve('Branch', branch)
        room = self._resolve_optional('Room', room)
        teacher = self._resolve_optional('Teacher', teacher)
        if room is not None and room.branch_id != branch.pk:
            raise InvalidScheduleInput(f"Room {room.name} does not belong to branch {branch.code}")
        return branch, room, teacher

    def _resolve_class_references(self, cls):
        """
        Make sure the branch, room and teacher a class points at still exist.

        A published class must have a room; a room that was deleted leaves
        ``room_id`` empty and the class can no longer be scheduled.
        """
        branch = self.resolve('Branch', cls.branch_id)
        if cls.room_id is None:
            raise ReferenceNotFound('Room', f"(none assigned to class {cls.code})")
        room = self.resolve('Room', cls.room_id)
        teacher = self._resolve_optional('Teacher', cls.teacher_id)
        return branch, room, teacher

    @staticmethod
    def _lock_resources(room=None, teacher=None):
        """Row-lock the room and teacher for the rest of the transaction"""
        if room is not None:
            list(ClassRoom.objects.select_for_update().filter(pk=room.pk))
        if teacher is not None:
            list(Teacher.objects.select_for_update().filter(pk=teacher.pk))

    # =========================================================================
    # SCHEDULE COMPUTATION
    # =========================================================================

    def compute_session_dates(self, branch, start_date, days_of_week, total_sessions, fixed_dates=()):
        """
        Session dates for a class at a branch, holidays loaded from the database.

        Holidays are loaded for ``holiday_lookup_months`` after the start
        date. When the schedule runs past that window the holidays are
        reloaded once over a window long enough for the whole class.

        Raises:
            InvalidScheduleInput, ScheduleUnsatisfiable
        """
        start_date, days = validate_schedule_input(start_date, days_of_week, total_sessions)
        branch_id = getattr(branch, 'pk', branch)
        horizon = self.config.scheduling_horizon_days

        window_start, window_end = get_holiday_window(start_date, self.config.holiday_lookup_months)
        if fixed_dates:
            window_start = min(window_start, min(fixed_dates))
        holidays = get_holidays_for_branch(branch_id, window_start, window_end)

        try:
            return compute_schedule(
                start_date, days, total_sessions, holidays, branch_id,
                fixed_dates=fixed_dates,
                horizon_days=horizon,
                holidays_cover_until=window_end,
            )
        except HolidayCoverageExceeded as e:
            weeks_needed = math.ceil(total_sessions / len(days))
            wider_end = max(
                add_months(window_end, self.config.holiday_lookup_months),
                start_date + timedelta(weeks=weeks_needed, days=horizon),
            )
            logger.info(
                f"Schedule from {start_date} runs past {e.covered_until}; "
                f"reloading holidays until {wider_end}"
            )
            holidays = get_holidays_for_branch(branch_id, window_start, wider_end)
            return compute_schedule(
                start_date, days, total_sessions, holidays, branch_id,
                fixed_dates=fixed_dates,
                horizon_days=horizon,
                holidays_cover_until=wider_end,
            )

    def calculate_end_date(self, branch, start_date, days_of_week, total_sessions):
        """Date of the last session"""
        branch = self.resolve('Branch', branch)
        return self.compute_session_dates(branch, start_date, days_of_week, total_sessions)[-1]

    def preview_schedule(self, branch, start_date, days_of_week, total_sessions):
        """
        Session dates plus the class days skipped because of closures.

        Returns:
            dict: session_dates, end_date, skipped (list of {date, holiday})
        """
        branch = self.resolve('Branch', branch)
        dates = self.compute_session_dates(branch, start_date, days_of_week, total_sessions)
        days = set(days_of_week)

        skipped = []
        for holiday in get_holidays_for_branch(branch, dates[0], dates[-1], closed_only=True):
            if not holiday.closes(branch.pk):
                continue
            for day in holiday.dates():
                if dates[0] <= day <= dates[-1] and weekday_number(day) in days:
                    skipped.append({'date': day, 'holiday': holiday.name})
        skipped.sort(key=lambda item: item['date'])

        return {
            'session_dates': dates,
            'end_date': dates[-1],
            'skipped': skipped,
        }

    # =========================================================================
    # AVAILABILITY
    # =========================================================================

    def check_availability(self, branch, start_time, end_time, room=None, teacher=None,
                           day=None, dates=(), days_of_week=(), start_date=None, end_date=None,
                           exclude_id=None, exclude_kind=None):
        """
        Data-backed availability check.

        Resolves the references, loads holidays and booked slots for the
        candidate dates and runs ``academics.availability.check_availability``.
        Holiday conflicts are reported but do not make the result
        unavailable; callers choose with ``result.is_available(block_on_holidays=...)``.

        Raises:
            ReferenceNotFound: branch, room or teacher does not exist
            InvalidScheduleInput: malformed time window or date selection
        """
        branch, room, teacher = self._resolve_placement(branch, room, teacher)

        query = AvailabilityQuery(
            window=TimeWindow(start_time, end_time),
            branch_id=str(branch.pk),
            room_id=str(room.pk) if room else None,
            teacher_id=str(teacher.pk) if teacher else None,
            day=day,
            dates=tuple(dates),
            weekdays=frozenset(days_of_week or ()),
            start_date=start_date,
            end_date=end_date,
            exclude_id=str(exclude_id) if exclude_id else None,
            exclude_kind=exclude_kind,
        )
        candidate_dates = query.candidate_dates()
        if not candidate_dates:
            return check_availability(query, [], [])

        holidays = get_holidays_for_branch(branch, candidate_dates[0], candidate_dates[-1])
        slots = get_booked_slots(candidate_dates, room=room, teacher=teacher) if (room or teacher) else []
        return check_availability(query, slots, holidays)

    def _ensure_available(self, block_on_holidays=False, **check_kwargs):
        """Commit-time re-check; raises ConflictDetected"""
        result = self.check_availability(**check_kwargs)
        if not result.is_available(block_on_holidays=block_on_holidays):
            conflicts = result.blocking_conflicts(block_on_holidays)
            logger.warning(f"Commit-time conflict: {'; '.join(c.describe() for c in conflicts)}")
            raise ConflictDetected(conflicts)
        return result

    def get_day_overview(self, branch, day):
        """
        Everything booked at a branch on one day.

        Returns:
            dict: date, branch, holidays, is_closed, busy_slots (sorted by start time)
        """
        branch = self.resolve('Branch', branch)
        holidays = get_holidays_for_branch(branch, day, day)
        slots = sorted(
            get_booked_slots([day], branch=branch),
            key=lambda slot: (slot.window.start, slot.label),
        )
        return {
            'date': day,
            'branch': branch,
            'holidays': [h.name for h in holidays if h.applies_to(branch.pk)],
            'is_closed': day in closed_dates_for(holidays, branch.pk),
            'busy_slots': slots,
        }

    # =========================================================================
    # CLASS CREATION
    # =========================================================================

    def create_class(self, *, name, code, branch, room, teacher, days_of_week, start_time,
                     end_time, start_date, total_sessions, status='published',
                     max_students=10, description=''):
        """
        Create a class with its sessions.

        The room and teacher are locked and checked again inside the
        transaction, so a booking made since the form's availability check
        surfaces as ``ConflictDetected`` instead of a double-booking.

        Returns:
            Class: the saved class, ``end_date`` set
        """
        branch, room, teacher = self._resolve_placement(branch, room, teacher)
        if room is None:
            raise InvalidScheduleInput("A room is required")
        if teacher is not None and not teacher.works_at(branch):
            raise InvalidScheduleInput(f"{teacher} does not work at branch {branch.code}")

        dates = self.compute_session_dates(branch, start_date, days_of_week, total_sessions)

        with transaction.atomic():
            self._lock_resources(room, teacher)
            self._ensure_available(
                branch=branch, start_time=start_time, end_time=end_time,
                room=room, teacher=teacher, dates=dates,
            )

            cls = Class(
                name=name,
                code=code,
                branch=branch,
                room=room,
                teacher=teacher,
                days_of_week=sorted(set(days_of_week)),
                start_time=start_time,
                end_time=end_time,
                start_date=start_date,
                end_date=dates[-1],
                total_sessions=total_sessions,
                max_students=max_students,
                description=description,
                status=status,
            )
            cls.full_clean()
            cls.save()

            for number, session_date in enumerate(dates, start=1):
                ClassSchedule.objects.create(
                    class_instance=cls,
                    session_number=number,
                    session_date=session_date,
                )

        logger.info(
            f"Created class {cls.code} with {len(dates)} sessions "
            f"({dates[0]} to {dates[-1]})"
        )
        return cls

    # =========================================================================
    # REGENERATION
    # =========================================================================

    @transaction.atomic
    def regenerate_class_schedule(self, cls, reason=''):
        """
        Recompute a class's sessions from its start date.

        Pinned sessions (completed, with any attendance record, or given a
        substitute teacher) keep their date and count towards the total. Every other
        session is moved onto the newly computed dates, created or deleted
        as needed, and all sessions are renumbered by date.

        Returns:
            dict: class_id, kept, moved, created, removed, end_date
        """
        branch, _room, _teacher = self._resolve_class_references(cls)

        kept_ids = set(
            ClassSchedule.objects
            .filter(class_instance=cls)
            .pinned()
            .values_list('pk', flat=True)
        )
        sessions = list(cls.schedules.order_by('session_date', 'session_number'))
        kept = [s for s in sessions if s.pk in kept_ids]
        reusable = [s for s in sessions if s.pk not in kept_ids]
        fixed_dates = {s.session_date for s in kept}

        dates = self.compute_session_dates(
            branch, cls.start_date, cls.days_of_week, cls.total_sessions, fixed_dates=fixed_dates,
        )
        new_dates = [d for d in dates if d not in fixed_dates]

        moved = created = 0
        for session, new_date in zip(reusable, new_dates):
            if session.session_date == new_date and session.status != 'cancelled':
                continue
            if (session.original_date or session.session_date) == new_date:
                # back on the date it was first planned for
                session.session_date = new_date
                session.original_date = None
                session.rescheduled_at = None
                session.status = 'scheduled'
            else:
                session.mark_rescheduled(new_date, reason)
            session.save()
            moved += 1

        for new_date in new_dates[len(reusable):]:
            ClassSchedule.objects.create(
                class_instance=cls,
                session_number=0,
                session_date=new_date,
            )
            created += 1

        leftover = reusable[len(new_dates):]
        removed = len(leftover)
        if leftover:
            ClassSchedule.objects.filter(pk__in=[s.pk for s in leftover]).delete()

        self._renumber_sessions(cls)

        cls.end_date = dates[-1]
        cls.save(update_fields=['end_date'])

        logger.info(
            f"Regenerated schedule for {cls.code}: kept {len(kept)}, moved {moved}, "
            f"created {created}, removed {removed}; ends {cls.end_date}"
        )
        return {
            'class_id': str(cls.pk),
            'kept': len(kept),
            'moved': moved,
            'created': created,
            'removed': removed,
            'end_date': cls.end_date,
        }

    @staticmethod
    def _renumber_sessions(cls):
        sessions = cls.schedules.order_by('session_date', 'created_at')
        for number, session in enumerate(sessions, start=1):
            if session.session_number != number:
                session.session_number = number
                session.save(update_fields=['session_number'])

    def reschedule_all(self, classes=None, should_continue=None, progress_callback=None,
                       start_after=None, reason=''):
        """
        Regenerate the schedule of every published or started class.

        Each class is committed in its own transaction. A failing class is
        recorded in ``errors`` and the batch carries on; classes already
        processed stay committed when the batch fails or is cancelled.

        Args:
            classes: Class queryset to process (default: all schedulable classes)
            should_continue: Callable checked before each class; returning
                False stops the batch
            progress_callback: Called as ``(index, total, cls, error)`` after
                each class, ``error`` being None on success
            start_after: Primary key of the last class handled by a previous
                run; processing resumes after it
            reason: Note stored on moved sessions

        Returns:
            dict: processed_count, errors [{class_id, message}], total,
            cancelled, last_class_id
        """
        if classes is None:
            classes = Class.objects.schedulable()
        classes = classes.select_related('branch').order_by('pk')
        if start_after:
            classes = classes.filter(pk__gt=start_after)

        classes = list(classes)
        total = len(classes)
        processed = 0
        errors = []
        cancelled = False
        last_class_id = None

        logger.info(f"Rescheduling {total} class(es)")

        for index, cls in enumerate(classes, start=1):
            if should_continue is not None and not should_continue():
                cancelled = True
                logger.info(f"Reschedule cancelled after {index - 1} of {total} class(es)")
                break

            error = None
            try:
                self.regenerate_class_schedule(cls, reason=reason)
                processed += 1
            except SchedulingError as e:
                error = str(e)
                logger.warning(f"Could not reschedule class {cls.code}: {e}")
            except Exception as e:
                error = str(e) or e.__class__.__name__
                logger.exception(f"Unexpected error rescheduling class {cls.code}")

            if error is not None:
                errors.append({'class_id': str(cls.pk), 'message': error})

            last_class_id = str(cls.pk)
            if progress_callback is not None:
                progress_callback(index, total, cls, error)

        logger.info(f"Reschedule finished: {processed} processed, {len(errors)} failed")
        return {
            'processed_count': processed,
            'errors': errors,
            'total': total,
            'cancelled': cancelled,
            'last_class_id': last_class_id,
        }

    def find_affected_classes(self, start_date, end_date, branch_ids=None):
        """
        Schedulable classes that hold a class day inside [start_date, end_date].

        Args:
            branch_ids: Restrict to these branches; None means every branch
        """
        classes = Class.objects.schedulable().overlapping(start_date, end_date)
        if branch_ids is not None:
            classes = classes.filter(branch_id__in=list(branch_ids))

        span = (end_date - start_date).days + 1
        weekdays = set(range(7)) if span >= 7 else {weekday_number(d) for d in date_range(start_date, end_date)}
        return [cls for cls in classes if weekdays.intersection(cls.days_of_week or [])]

    def get_affected_classes(self, holiday):
        """Classes whose sessions a closing holiday removes"""
        if not holiday.is_school_closed:
            return []
        branch_ids = None if holiday.is_national else list(holiday.branches.values_list('pk', flat=True))
        return self.find_affected_classes(holiday.start_date, holiday.last_date, branch_ids)

    # =========================================================================
    # SINGLE SESSION
    # =========================================================================

    def reschedule_session(self, session, new_date=None, reason=''):
        """
        Move one session.

        Without ``new_date`` the session goes to the first open class day
        after the class's current last session, which extends the class by
        one slot.

        Raises:
            InvalidStatusTransition: the session already has attendance
            ConflictDetected: the room or teacher is taken on the new date
        """
        if not isinstance(session, ClassSchedule):
            pk = session
            session = ClassSchedule.objects.select_related('class_instance').filter(pk=pk).first()
            if session is None:
                raise ReferenceNotFound('Session', pk)
        cls = session.class_instance

        if session.has_recorded_attendance:
            raise InvalidStatusTransition(
                f"Session {session.session_number} of {cls.code} already has attendance recorded"
            )

        branch, room, teacher = self._resolve_class_references(cls)
        taken = set(
            cls.schedules.not_cancelled().exclude(pk=session.pk).values_list('session_date', flat=True)
        )

        if new_date is None:
            last_date = cls.schedules.aggregate(last=Max('session_date'))['last'] or cls.start_date
            holidays = get_holidays_for_branch(branch, last_date, last_date + timedelta(days=self.config.scheduling_horizon_days))
            new_date = find_next_session_date(
                last_date, cls.days_of_week, holidays, branch.pk,
                taken_dates=taken,
                horizon_days=self.config.scheduling_horizon_days,
            )
        elif new_date in taken:
            raise InvalidScheduleInput(f"{cls.code} already has a session on {new_date}")

        with transaction.atomic():
            self._lock_resources(room, teacher)
            self._ensure_available(
                block_on_holidays=True,
                branch=branch, start_time=cls.start_time, end_time=cls.end_time,
                room=room, teacher=teacher, day=new_date,
                exclude_id=cls.pk, exclude_kind='class',
            )
            previous = session.session_date
            session.mark_rescheduled(new_date, reason)
            session.save()
            self._renumber_sessions(cls)
            session.refresh_from_db(fields=['session_number'])

            last = cls.schedules.not_cancelled().aggregate(last=Max('session_date'))['last']
            if last and last != cls.end_date:
                cls.end_date = last
                cls.save(update_fields=['end_date'])

        logger.info(f"Moved session of {cls.code} from {previous} to {new_date}")
        return session

    # =========================================================================
    # CLASS STATUS MAINTENANCE
    # =========================================================================

    def update_class_statuses(self, today=None):
        """
        Advance class status by date.

        - published -> started once the start date is reached
        - started -> completed once the end date has passed and no
          non-cancelled session is left on or after today

        ``today`` defaults to each branch's local date.

        Returns:
            dict: started, completed, errors [{class_id, message}]
        """
        started = completed = 0
        errors = []

        for cls in Class.objects.filter(status__in=['published', 'started']).select_related('branch'):
            try:
                current = today or cls.branch.get_today()
                if cls.status == 'published' and cls.start_date <= current:
                    cls.status = 'started'
                    cls.save(update_fields=['status'])
                    started += 1
                    logger.info(f"Class {cls.code} started")

                if cls.status == 'started' and cls.end_date and cls.end_date < current:
                    upcoming = cls.schedules.not_cancelled().filter(
                        session_date__gte=current, status__in=['scheduled', 'rescheduled']
                    ).exists()
                    if not upcoming:
                        cls.status = 'completed'
                        cls.save(update_fields=['status'])
                        completed += 1
                        logger.info(f"Class {cls.code} completed")
            except Exception as e:
                logger.exception(f"Error updating status of class {cls.code}")
                errors.append({'class_id': str(cls.pk), 'message': str(e)})

        return {'started': started, 'completed': completed, 'errors': errors}

    # =========================================================================
    # MAKEUP CLASSES
    # =========================================================================

    @staticmethod
    def get_makeup_count(student, cls):
        """Makeup requests a student has used in a class (cancelled ones do not count)"""
        return MakeupClass.objects.filter(
            student=student, original_class=cls
        ).exclude(status='cancelled').count()

    @transaction.atomic
    def create_makeup_request(self, student, class_schedule, reason=''):
        """
        Open a pending makeup request for a missed session.

        The student is marked absent on the original session.

        Raises:
            MakeupLimitExceeded: the per-class limit is used up
            InvalidScheduleInput: an open request already exists for the session
        """
        if not isinstance(student, Student):
            pk = student
            student = Student.objects.get_or_none(pk=pk)
            if student is None:
                raise ReferenceNotFound('Student', pk)
        if not isinstance(class_schedule, ClassSchedule):
            pk = class_schedule
            class_schedule = ClassSchedule.objects.select_related('class_instance').filter(pk=pk).first()
            if class_schedule is None:
                raise ReferenceNotFound('Session', pk)
        cls = class_schedule.class_instance

        limit = self.config.makeup_limit_per_class
        if limit:
            used = self.get_makeup_count(student, cls)
            if used >= limit:
                raise MakeupLimitExceeded(
                    f"{student} has used {used} of {limit} makeup classes for {cls.code}"
                )

        duplicate = MakeupClass.objects.filter(
            student=student, original_schedule=class_schedule
        ).exclude(status='cancelled').exists()
        if duplicate:
            raise InvalidScheduleInput(
                f"{student} already has a makeup request for session {class_schedule.session_number} of {cls.code}"
            )

        SessionAttendance.objects.update_or_create(
            schedule=class_schedule,
            student=student,
            defaults={'status': 'absent', 'note': 'Makeup requested'},
        )

        makeup = MakeupClass.objects.create(
            student=student,
            original_class=cls,
            original_schedule=class_schedule,
            branch=cls.branch,
            reason=reason,
            status='pending',
        )
        logger.info(f"Makeup request {makeup.pk} created for {student} ({cls.code} #{class_schedule.session_number})")
        return makeup

    def schedule_makeup(self, makeup, makeup_date, start_time, end_time, room, teacher,
                        allow_holiday=None):
        """
        Place a makeup class.

        Args:
            allow_holiday: Whether a closed date is acceptable; defaults to
                ``SchedulingConfiguration.makeup_allow_holidays``

        Raises:
            InvalidStatusTransition: makeup is completed or cancelled
            ConflictDetected: room, teacher or (when not allowed) holiday conflict
        """
        if makeup.status not in ('pending', 'scheduled'):
            raise InvalidStatusTransition(f"Cannot schedule a {makeup.status} makeup class")

        room = self.resolve('Room', room)
        teacher = self.resolve('Teacher', teacher)
        branch = self.resolve('Branch', room.branch_id)
        if allow_holiday is None:
            allow_holiday = self.config.makeup_allow_holidays

        with transaction.atomic():
            self._lock_resources(room, teacher)
            self._ensure_available(
                block_on_holidays=not allow_holiday,
                branch=branch, start_time=start_time, end_time=end_time,
                room=room, teacher=teacher, day=makeup_date,
                exclude_id=makeup.pk, exclude_kind='makeup',
            )
            makeup.branch = branch
            makeup.room = room
            makeup.teacher = teacher
            makeup.makeup_date = makeup_date
            makeup.start_time = start_time
            makeup.end_time = end_time
            makeup.status = 'scheduled'
            makeup.full_clean()
            makeup.save()

        logger.info(f"Makeup {makeup.pk} scheduled on {makeup_date} {start_time:%H:%M}-{end_time:%H:%M} in {room}")
        return makeup

    @transaction.atomic
    def complete_makeup(self, makeup, attended=True, notes=''):
        if not makeup.can_transition_to('completed'):
            raise InvalidStatusTransition(f"Cannot complete a {makeup.status} makeup class")
        makeup.status = 'completed'
        makeup.attended = attended
        if notes:
            makeup.notes = notes
        makeup.save()
        logger.info(f"Makeup {makeup.pk} completed (attended={attended})")
        return makeup

    @transaction.atomic
    def cancel_makeup(self, makeup, reason=''):
        if not makeup.can_transition_to('cancelled'):
            raise InvalidStatusTransition(f"Cannot cancel a {makeup.status} makeup class")
        makeup.status = 'cancelled'
        if reason:
            makeup.notes = reason
        makeup.save()
        logger.info(f"Makeup {makeup.pk} cancelled")
        return makeup


# =============================================================================
# HOLIDAY RESCHEDULING
# =============================================================================

class HolidayRescheduleService:
    """Regenerates the classes a holiday change touches"""

    @staticmethod
    def snapshot(holiday):
        """Scope and dates of a holiday, taken before it changes"""
        return {
            'start_date': holiday.start_date,
            'end_date': holiday.last_date,
            'is_national': holiday.is_national,
            'is_school_closed': holiday.is_school_closed,
            'branch_ids': set(holiday.branches.values_list('pk', flat=True)),
        }

    @staticmethod
    def reschedule_for(snapshots, service=None, reason=''):
        """
        Regenerate every class touched by any of the holiday states given.

        Passing both the old and the new state covers classes a holiday
        moved away from as well as the ones it now lands on.
        """
        service = service or ClassScheduleService()
        class_ids = set()
        for snap in snapshots:
            if not snap or not snap['is_school_closed']:
                continue
            branch_ids = None if snap['is_national'] else snap['branch_ids']
            if branch_ids is not None and not branch_ids:
                continue
            affected = service.find_affected_classes(snap['start_date'], snap['end_date'], branch_ids)
            class_ids.update(cls.pk for cls in affected)

        if not class_ids:
            return {'processed_count': 0, 'errors': [], 'total': 0, 'cancelled': False, 'last_class_id': None}

        return service.reschedule_all(
            classes=Class.objects.filter(pk__in=class_ids),
            reason=reason,
        )
