# academics/management/commands/reschedule_classes.py

"""
Regenerate class sessions against the current holiday calendar.

USAGE EXAMPLES:
===============

# 1. Reschedule every published/started class
python manage.py reschedule_classes

# 2. Only some classes (by code)
python manage.py reschedule_classes --class ENG-101 --class MATH-201

# 3. Only the classes of one branch
python manage.py reschedule_classes --branch BKK01

# 4. Work in batches: stop after 50 classes, then resume where it stopped
python manage.py reschedule_classes --limit 50
python manage.py reschedule_classes --limit 50 --start-after <last class id>
"""

from django.core.management.base import BaseCommand, CommandError
import logging

from utils.context import RequestContext
from academics.models import Class
from academics.services import ClassScheduleService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Regenerate the sessions of published and started classes'

    def add_arguments(self, parser):
        parser.add_argument(
            '--class',
            dest='class_codes',
            action='append',
            default=[],
            help='Class code to reschedule (repeatable)'
        )
        parser.add_argument(
            '--branch',
            help='Only classes of the branch with this code'
        )
        parser.add_argument(
            '--start-after',
            help='Resume after this class id (printed by a previous run)'
        )
        parser.add_argument(
            '--limit',
            type=int,
            default=0,
            help='Stop after this many classes (0 = no limit)'
        )
        parser.add_argument(
            '--reason',
            default='Bulk reschedule',
            help='Note stored on moved sessions'
        )

    def handle(self, *args, **options):
        classes = Class.objects.schedulable()
        if options['class_codes']:
            classes = classes.filter(code__in=options['class_codes'])
        if options['branch']:
            classes = classes.filter(branch__code=options['branch'])

        limit = options['limit']
        if limit < 0:
            raise CommandError('--limit cannot be negative')

        seen = {'count': 0}

        def should_continue():
            return not limit or seen['count'] < limit

        def progress(index, total, cls, error):
            seen['count'] += 1
            if error:
                self.stderr.write(self.style.ERROR(f"[{index}/{total}] {cls.code}: {error}"))
            else:
                self.stdout.write(f"[{index}/{total}] {cls.code} rescheduled")

        with RequestContext(request_path='manage.py reschedule_classes'):
            report = ClassScheduleService().reschedule_all(
                classes=classes,
                should_continue=should_continue,
                progress_callback=progress,
                start_after=options['start_after'],
                reason=options['reason'],
            )

        summary = f"Processed {report['processed_count']} of {report['total']} class(es)"
        if report['errors']:
            self.stdout.write(self.style.WARNING(f"{summary}, {len(report['errors'])} failed"))
        else:
            self.stdout.write(self.style.SUCCESS(summary))

        if report['cancelled']:
            self.stdout.write(self.style.WARNING(
                f"Stopped early. Resume with --start-after {report['last_class_id']}"
            ))
