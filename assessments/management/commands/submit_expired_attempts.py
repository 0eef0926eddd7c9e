from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from assessments.exceptions import AttemptError, AttemptLockedError
from assessments.lifecycle import AttemptLifecycle
from cores.models import AuditLog


class Command(BaseCommand):
    help = 'Submits in-progress attempts whose time limit has run out'

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help='List expired attempts without submitting them')
        parser.add_argument(
            '--grace', type=int, default=settings.ASSESSMENTS_EXPIRY_GRACE_SECONDS,
            help='Seconds to wait past the time limit before submitting',
        )

    def handle(self, *args, **options):
        lifecycle = AttemptLifecycle()
        expired = lifecycle.store.expired_attempts(timezone.now(), grace_seconds=options['grace'])

        if not expired:
            self.stdout.write("No expired attempts.")
            return

        submitted = failed = 0
        for attempt in expired:
            if options['dry_run']:
                self.stdout.write(f"Would submit attempt {attempt.pk} ({attempt})")
                continue
            try:
                result = lifecycle.submit(attempt.pk, attempt.test.time_limit_seconds)
            except AttemptLockedError:
                # Submitted by the student while we were sweeping.
                self.stdout.write(self.style.WARNING(f"Attempt {attempt.pk} was already submitted"))
                continue
            except AttemptError as exc:
                # Leave it for the next sweep and carry on with the rest.
                self.stdout.write(self.style.ERROR(f"Could not submit attempt {attempt.pk}: {exc}"))
                failed += 1
                continue

            AuditLog.record(
                actor=None,
                action='AUTO_SUBMIT',
                target=attempt,
                details=f"Time limit reached; submitted with {result.score:.2f}%",
            )
            submitted += 1
            self.stdout.write(f"Submitted attempt {attempt.pk}: {result.score:.2f}%")

        if not options['dry_run']:
            self.stdout.write(self.style.SUCCESS(f"Submitted {submitted} expired attempt(s)"))
            if failed:
                self.stdout.write(self.style.ERROR(f"{failed} attempt(s) could not be submitted"))
