"""
Tests for the location hierarchy.
"""
import pytest

from inventory.constants import LOCATION_PATH_SEPARATOR, MAX_LOCATION_DEPTH
from inventory.exceptions import (
    DuplicateSiblingName,
    InsufficientRole,
    InvalidInput,
    LocationNotFound,
    MaxDepthExceeded,
    NotFound,
)
from inventory.models import Box, Location, LocationState, Role
from inventory.services import LocationHierarchy

pytestmark = pytest.mark.locations


class TestCreateLocation:
    """Test creating roots and children."""

    def test_root_and_child(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        shelf = service.create_location(user, workspace.pk, 'Shelf-A', parent_id=garage.pk)

        assert garage.depth == 1
        assert garage.parent is None
        assert garage.path == garage.pk.hex
        assert shelf.depth == 2
        assert shelf.parent_id == garage.pk
        assert shelf.path == f'{garage.pk.hex}{LOCATION_PATH_SEPARATOR}{shelf.pk.hex}'
        assert shelf.state == LocationState.LIVE

    def test_sixth_level_is_rejected(self, service, user, workspace):
        parent_id = None
        for level in range(1, MAX_LOCATION_DEPTH + 1):
            location = service.create_location(user, workspace.pk, f'Level {level}', parent_id=parent_id)
            assert location.depth == level
            parent_id = location.pk

        with pytest.raises(MaxDepthExceeded):
            service.create_location(user, workspace.pk, 'Too deep', parent_id=parent_id)
        assert Location.objects.filter(workspace=workspace).count() == MAX_LOCATION_DEPTH

    def test_sibling_names_compare_case_insensitively(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        service.create_location(user, workspace.pk, 'Shelf A', parent_id=garage.pk)

        with pytest.raises(DuplicateSiblingName):
            service.create_location(user, workspace.pk, 'shelf a', parent_id=garage.pk)
        with pytest.raises(DuplicateSiblingName):
            service.create_location(user, workspace.pk, ' SHELF-A ', parent_id=garage.pk)

    def test_duplicate_root_names(self, service, user, workspace):
        service.create_location(user, workspace.pk, 'Attic')
        with pytest.raises(DuplicateSiblingName):
            service.create_location(user, workspace.pk, 'ATTIC')

    def test_same_name_under_different_parents(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        attic = service.create_location(user, workspace.pk, 'Attic')
        service.create_location(user, workspace.pk, 'Shelf', parent_id=garage.pk)
        service.create_location(user, workspace.pk, 'Shelf', parent_id=attic.pk)

    def test_same_name_in_another_workspace(self, service, user, workspace):
        other = service.create_workspace(user, 'Office')
        service.create_location(user, workspace.pk, 'Garage')
        service.create_location(user, other.pk, 'Garage')

    def test_name_is_sanitized_and_required(self, service, user, workspace):
        location = service.create_location(user, workspace.pk, '<b>Garage</b>', description='<script>x</script>Cold')
        assert location.name == 'Garage'
        assert 'script' not in location.description

        with pytest.raises(InvalidInput):
            service.create_location(user, workspace.pk, '   ')
        with pytest.raises(InvalidInput):
            service.create_location(user, workspace.pk, '!!!')

    def test_overlong_name_is_invalid_input(self, service, user, workspace):
        with pytest.raises(InvalidInput) as excinfo:
            service.create_location(user, workspace.pk, 'x' * 65)
        assert 'name' in excinfo.value.details['fields']

    def test_overlong_description_is_invalid_input(self, service, user, workspace):
        with pytest.raises(InvalidInput) as excinfo:
            service.create_location(user, workspace.pk, 'Garage', description='x' * 501)
        assert 'description' in excinfo.value.details['fields']
        assert not Location.objects.exists()

    def test_parent_from_another_workspace(self, service, user, workspace):
        other = service.create_workspace(user, 'Office')
        foreign = service.create_location(user, other.pk, 'Desk')
        with pytest.raises(LocationNotFound):
            service.create_location(user, workspace.pk, 'Drawer', parent_id=foreign.pk)

    def test_read_only_member_cannot_create(self, service, other_user, workspace, add_member):
        add_member(other_user, Role.READ_ONLY)
        with pytest.raises(InsufficientRole):
            service.create_location(other_user, workspace.pk, 'Garage')


class TestSiblingNameRace:
    """Two writers pass the sibling pre-check; the database constraint decides."""

    @pytest.fixture
    def no_precheck(self, mocker):
        return mocker.patch.object(LocationHierarchy, '_ensure_unique_sibling')

    def test_create_root_loses_race(self, service, user, workspace, no_precheck):
        service.create_location(user, workspace.pk, 'Garage')

        with pytest.raises(DuplicateSiblingName):
            service.create_location(user, workspace.pk, 'garage')

        assert no_precheck.called
        # The failed insert only rolled back its savepoint
        service.create_location(user, workspace.pk, 'Attic')
        assert sorted(Location.objects.values_list('name', flat=True)) == ['Attic', 'Garage']

    def test_create_child_loses_race(self, service, user, workspace, no_precheck):
        garage = service.create_location(user, workspace.pk, 'Garage')
        service.create_location(user, workspace.pk, 'Shelf A', parent_id=garage.pk)

        with pytest.raises(DuplicateSiblingName):
            service.create_location(user, workspace.pk, 'shelf-a', parent_id=garage.pk)
        assert Location.objects.filter(parent=garage).count() == 1

    def test_rename_loses_race(self, service, user, workspace, no_precheck):
        service.create_location(user, workspace.pk, 'Garage')
        attic = service.create_location(user, workspace.pk, 'Attic')

        with pytest.raises(DuplicateSiblingName):
            service.rename_location(user, workspace.pk, attic.pk, name='Garage')

        attic.refresh_from_db()
        assert attic.name == 'Attic'


class TestReadLocations:
    """Test listing and breadcrumbs."""

    def test_list_roots_and_children(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        attic = service.create_location(user, workspace.pk, 'Attic')
        shelf = service.create_location(user, workspace.pk, 'Shelf', parent_id=garage.pk)

        assert service.list_locations(user, workspace.pk) == [attic, garage]
        assert service.list_locations(user, workspace.pk, garage.pk) == [shelf]
        assert service.list_locations(user, workspace.pk, shelf.pk) == []

    def test_breadcrumb(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        shelf = service.create_location(user, workspace.pk, 'Shelf', parent_id=garage.pk)
        bin_ = service.create_location(user, workspace.pk, 'Bin', parent_id=shelf.pk)

        location, breadcrumb = service.get_location(user, workspace.pk, bin_.pk)
        assert location == bin_
        assert [loc.name for loc in breadcrumb] == ['Garage', 'Shelf', 'Bin']

    def test_read_only_member_can_read(self, service, other_user, user, workspace, add_member):
        service.create_location(user, workspace.pk, 'Garage')
        add_member(other_user, Role.READ_ONLY)
        assert len(service.list_locations(other_user, workspace.pk)) == 1

    def test_unknown_location(self, service, user, workspace):
        with pytest.raises(LocationNotFound) as excinfo:
            service.get_location(user, workspace.pk, 'nope')
        assert isinstance(excinfo.value, NotFound)


class TestRenameLocation:
    """Test renaming."""

    def test_rename_keeps_path(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        shelf = service.create_location(user, workspace.pk, 'Shelf', parent_id=garage.pk)

        renamed = service.rename_location(user, workspace.pk, garage.pk, name='Workshop', description='Cold')
        shelf.refresh_from_db()

        assert renamed.name == 'Workshop'
        assert renamed.description == 'Cold'
        assert renamed.path == garage.path
        assert shelf.path.startswith(garage.path)

    def test_rename_to_existing_sibling(self, service, user, workspace):
        service.create_location(user, workspace.pk, 'Garage')
        attic = service.create_location(user, workspace.pk, 'Attic')
        with pytest.raises(DuplicateSiblingName):
            service.rename_location(user, workspace.pk, attic.pk, name='garage')

    def test_rename_changing_only_case(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        renamed = service.rename_location(user, workspace.pk, garage.pk, name='GARAGE')
        assert renamed.name == 'GARAGE'


class TestSoftDeleteLocation:
    """Test soft deletion and its cascade."""

    def test_delete_unassigns_boxes_and_hides_location(self, service, user, workspace):
        attic = service.create_location(user, workspace.pk, 'Attic')
        box = service.create_box(user, workspace.pk, 'B1', location_id=attic.pk)

        result = service.soft_delete_location(user, workspace.pk, attic.pk)

        assert result.boxes_unassigned == 1
        assert service.get_box(user, workspace.pk, box.pk).location_id is None
        assert attic not in service.list_locations(user, workspace.pk)

        attic.refresh_from_db()
        assert attic.is_deleted
        assert attic.deleted_at is not None
        assert attic.state == LocationState.DELETED

    def test_delete_cascades_to_descendants(self, service, user, workspace):
        garage = service.create_location(user, workspace.pk, 'Garage')
        shelf = service.create_location(user, workspace.pk, 'Shelf', parent_id=garage.pk)
        bin_ = service.create_location(user, workspace.pk, 'Bin', parent_id=shelf.pk)
        attic = service.create_location(user, workspace.pk, 'Attic')
        deep_box = service.create_box(user, workspace.pk, 'Deep', location_id=bin_.pk)
        safe_box = service.create_box(user, workspace.pk, 'Safe', location_id=attic.pk)

        result = service.soft_delete_location(user, workspace.pk, garage.pk)

        assert result.locations_deleted == 3
        assert result.boxes_unassigned == 1
        assert set(Location.objects.filter(is_deleted=True).values_list('pk', flat=True)) == {
            garage.pk, shelf.pk, bin_.pk
        }
        assert Box.objects.get(pk=deep_box.pk).location_id is None
        assert Box.objects.get(pk=safe_box.pk).location_id == attic.pk

    def test_second_delete_is_not_found(self, service, user, workspace):
        attic = service.create_location(user, workspace.pk, 'Attic')
        service.soft_delete_location(user, workspace.pk, attic.pk)
        with pytest.raises(LocationNotFound):
            service.soft_delete_location(user, workspace.pk, attic.pk)

    def test_deleted_location_rejects_children_and_boxes(self, service, user, workspace):
        attic = service.create_location(user, workspace.pk, 'Attic')
        box = service.create_box(user, workspace.pk, 'B1')
        service.soft_delete_location(user, workspace.pk, attic.pk)

        with pytest.raises(LocationNotFound):
            service.create_location(user, workspace.pk, 'Corner', parent_id=attic.pk)
        with pytest.raises(LocationNotFound):
            service.move_box(user, workspace.pk, box.pk, attic.pk)
        with pytest.raises(LocationNotFound):
            service.rename_location(user, workspace.pk, attic.pk, name='Loft')

    def test_name_is_free_again_after_delete(self, service, user, workspace):
        attic = service.create_location(user, workspace.pk, 'Attic')
        service.soft_delete_location(user, workspace.pk, attic.pk)
        again = service.create_location(user, workspace.pk, 'Attic')
        assert again.pk != attic.pk

    def test_member_cannot_delete(self, service, user, other_user, workspace, add_member):
        attic = service.create_location(user, workspace.pk, 'Attic')
        add_member(other_user, Role.MEMBER)
        with pytest.raises(InsufficientRole):
            service.soft_delete_location(other_user, workspace.pk, attic.pk)

    def test_admin_can_delete(self, service, user, other_user, workspace, add_member):
        attic = service.create_location(user, workspace.pk, 'Attic')
        add_member(other_user, Role.ADMIN)
        service.soft_delete_location(other_user, workspace.pk, attic.pk)
