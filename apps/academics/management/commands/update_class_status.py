# academics/management/commands/update_class_status.py

"""
Advance class status by date (published -> started -> completed).

Meant to run daily from cron:

python manage.py update_class_status
python manage.py update_class_status --date 2024-06-30
"""

from django.core.management.base import BaseCommand, CommandError
import logging

from utils.context import RequestContext
from utils.utils import parse_iso_date
from academics.services import ClassScheduleService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Mark classes as started or completed according to their dates'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            help="Treat this date (YYYY-MM-DD) as today instead of each branch's local date"
        )

    def handle(self, *args, **options):
        try:
            today = parse_iso_date(options['date'], 'date')
        except ValueError as e:
            raise CommandError(str(e))

        with RequestContext(request_path='manage.py update_class_status'):
            result = ClassScheduleService().update_class_statuses(today=today)

        self.stdout.write(self.style.SUCCESS(
            f"{result['started']} class(es) started, {result['completed']} completed"
        ))
        for error in result['errors']:
            self.stderr.write(self.style.ERROR(f"Class {error['class_id']}: {error['message']}"))
