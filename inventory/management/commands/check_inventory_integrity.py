"""
Management command to audit inventory data for invariant violations.

The services keep these invariants on every write; this command catches
anything that slipped past them (manual SQL, admin edits, restored backups).

Checks:
- QR code status agrees with whether a box is attached
- QR codes and their boxes live in the same workspace
- Boxes only sit in live locations of their own workspace
- Live locations never hang below deleted ones
- Location depth and path agree, and stay within the depth limit

Usage:
    python manage.py check_inventory_integrity
    python manage.py check_inventory_integrity --workspace <uuid> --verbose
"""

from django.core.management.base import BaseCommand, CommandError
from django.db.models import F, Q

from inventory.constants import LOCATION_PATH_SEPARATOR, MAX_LOCATION_DEPTH
from inventory.models import Box, Location, QrCode, QrStatus, Workspace
from inventory.utils import to_uuid


class Command(BaseCommand):
    help = 'Check workspaces for QR code, box and location invariant violations'

    def add_arguments(self, parser):
        parser.add_argument(
            '--workspace',
            type=str,
            help='Only check the workspace with this id',
        )
        parser.add_argument(
            '--verbose',
            action='store_true',
            help='List every offending record',
        )

    def handle(self, *args, **options):
        verbose = options['verbose']
        workspace_id = options.get('workspace')

        scope = Q()
        if workspace_id:
            pk = to_uuid(workspace_id)
            if pk is None or not Workspace.objects.filter(pk=pk).exists():
                raise CommandError(f'Workspace "{workspace_id}" does not exist')
            scope = Q(workspace_id=pk)

        self.stdout.write(self.style.WARNING('Checking inventory integrity...'))
        self.stdout.write('')

        checks = [
            ('QR codes whose status disagrees with their box', self._qr_status_mismatches(scope)),
            ('QR codes bound to a box of another workspace', self._qr_cross_workspace(scope)),
            ('Boxes in deleted or foreign locations', self._misplaced_boxes(scope)),
            ('Live locations under deleted parents', self._orphaned_locations(scope)),
            ('Locations with inconsistent depth or path', self._path_drift(scope)),
        ]

        total = 0
        for label, offenders in checks:
            total += len(offenders)
            if offenders:
                self.stdout.write(self.style.ERROR(f'  ✗ {label}: {len(offenders)}'))
                if verbose:
                    for offender in offenders:
                        self.stdout.write(f'      - {offender}')
            else:
                self.stdout.write(self.style.SUCCESS(f'  ✓ {label}: none'))

        self.stdout.write('')
        if total:
            raise CommandError(f'Found {total} integrity violation(s)')
        self.stdout.write(self.style.SUCCESS('No integrity violations found'))

    def _qr_status_mismatches(self, scope):
        qs = QrCode.objects.filter(scope).filter(
            Q(status=QrStatus.GENERATED, box__isnull=False) | Q(status=QrStatus.ASSIGNED, box__isnull=True)
        )
        return [f'{qr.short_code} [{qr.status}] box={qr.box_id}' for qr in qs]

    def _qr_cross_workspace(self, scope):
        qs = QrCode.objects.filter(scope).filter(box__isnull=False).exclude(box__workspace_id=F('workspace_id'))
        return [f'{qr.short_code} -> box {qr.box_id}' for qr in qs]

    def _misplaced_boxes(self, scope):
        qs = (
            Box.objects.filter(scope)
            .filter(location__isnull=False)
            .filter(Q(location__is_deleted=True) | ~Q(location__workspace_id=F('workspace_id')))
            .select_related('location')
        )
        return [f'{box.short_code} in {box.location_id}' for box in qs]

    def _orphaned_locations(self, scope):
        qs = Location.objects.filter(scope).live().filter(parent__is_deleted=True)
        return [f'{loc.pk} ({loc.name}) under {loc.parent_id}' for loc in qs]

    def _path_drift(self, scope):
        offenders = []
        for loc in Location.objects.filter(scope).select_related('parent'):
            segments = loc.path.split(LOCATION_PATH_SEPARATOR)
            expected_path = Location.build_path(loc.parent, loc.pk)
            if (
                loc.depth != len(segments)
                or loc.depth > MAX_LOCATION_DEPTH
                or loc.path != expected_path
            ):
                offenders.append(f'{loc.pk} ({loc.name}) depth={loc.depth} path={loc.path}')
        return offenders
