"""
Tests for data integrity and validation constraints.
"""
import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import RestrictedError
from django.utils import timezone

from inventory.models import Box, Location, QrCode, QrStatus


class TestBoxValidation:
    """Test Box.clean rules enforced on save."""

    def test_location_from_another_workspace(self, service, user, workspace):
        other = service.create_workspace(user, 'Office')
        desk = service.create_location(user, other.pk, 'Desk')

        with pytest.raises(ValidationError) as exc_info:
            Box(workspace=workspace, location=desk, short_code='abc1234567', name='Files').save()

        assert 'location' in exc_info.value.message_dict

    def test_deleted_location(self, service, user, workspace):
        attic = service.create_location(user, workspace.pk, 'Attic')
        service.soft_delete_location(user, workspace.pk, attic.pk)
        attic.refresh_from_db()

        with pytest.raises(ValidationError):
            Box(workspace=workspace, location=attic, short_code='abc1234567', name='Files').save()

    @pytest.mark.parametrize('tags', ['garden', [1, 2], [''], ['x' * 65]])
    def test_invalid_tags(self, workspace, tags):
        with pytest.raises(ValidationError) as exc_info:
            Box(workspace=workspace, short_code='abc1234567', name='Files', tags=tags).save()
        assert 'tags' in exc_info.value.message_dict

    def test_overlong_description(self, workspace):
        box = Box(workspace=workspace, short_code='abc1234567', name='Files', description='x' * 10_001)
        with pytest.raises(ValidationError) as exc_info:
            box.save()
        assert 'description' in exc_info.value.message_dict

    def test_search_text_follows_updates(self, service, user, workspace):
        box = service.create_box(user, workspace.pk, 'Tools')
        box.tags = ['Garden']
        box.save(update_fields=['tags'])
        assert Box.objects.get(pk=box.pk).search_text == 'tools garden'


class TestLocationConstraints:
    """Test path, depth and sibling constraints."""

    def test_path_and_depth_must_agree(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        garage.depth = 2
        with pytest.raises(ValidationError) as exc_info:
            garage.save()
        assert 'path' in exc_info.value.message_dict

    def test_live_siblings_unique_in_database(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        duplicate = Location(workspace=workspace, name='GARAGE', slug=garage.slug, depth=1)
        duplicate.path = Location.build_path(None, duplicate.pk)

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                duplicate.save()

    def test_deleted_flag_and_timestamp_agree(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Location.objects.filter(pk=garage.pk).update(is_deleted=True)

    def test_depth_range_in_database(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Location.objects.filter(pk=garage.pk).update(depth=6)

    def test_subtree_excludes_prefix_lookalikes(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        shelf = service.create_location(user, workspace.pk, 'Shelf', parent_id=garage.pk)
        attic = service.create_location(user, workspace.pk, 'Attic')

        assert set(Location.objects.subtree(garage)) == {garage, shelf}
        assert set(Location.objects.subtree(attic)) == {attic}


class TestQrCodeConstraints:
    """Test the status/box pairing."""

    def test_assigned_requires_box(self, service, user, workspace):
        code = service.generate_qr_codes(user, workspace.pk, 1)[0]
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                QrCode.objects.filter(pk=code.pk).update(status=QrStatus.ASSIGNED)

    def test_one_code_per_box(self, service, user, workspace):
        first, second = service.generate_qr_codes(user, workspace.pk, 2)
        box = service.create_box(user, workspace.pk, 'Tools', qr_code_id=first.pk)
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                QrCode.objects.filter(pk=second.pk).update(status=QrStatus.ASSIGNED, box=box)

    def test_box_with_code_cannot_be_deleted_directly(self, service, user, workspace):
        code = service.generate_qr_codes(user, workspace.pk, 1)[0]
        box = service.create_box(user, workspace.pk, 'Tools', qr_code_id=code.pk)
        with pytest.raises(RestrictedError):
            box.delete()

    def test_soft_delete_timestamp(self, service, user, workspace):
        before = timezone.now()
        attic = service.create_location(user, workspace.pk, 'Attic')
        result = service.soft_delete_location(user, workspace.pk, attic.pk)
        assert result.location.deleted_at >= before
