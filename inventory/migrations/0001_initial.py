# Initial migration for the box inventory app
# Generated to match current model state

import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # Tenancy
        migrations.CreateModel(
            name='Workspace',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='owned_workspaces',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'ordering': ['name', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Membership',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(
                    choices=[('owner', 'Owner'), ('admin', 'Admin'), ('member', 'Member'), ('read_only', 'Read-only')],
                    default='member',
                    max_length=16,
                )),
                ('joined_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='workspace_memberships',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='memberships',
                    to='inventory.workspace',
                )),
            ],
            options={
                'ordering': ['joined_at', 'id'],
                'indexes': [models.Index(fields=['user', 'workspace'], name='membership_user_ws_idx')],
                'constraints': [models.UniqueConstraint(fields=('workspace', 'user'), name='uniq_workspace_member')],
            },
        ),

        # Locations
        migrations.CreateModel(
            name='Location',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=64)),
                ('slug', models.CharField(editable=False, max_length=128)),
                ('description', models.TextField(blank=True, max_length=500, validators=[django.core.validators.MaxLengthValidator(500)])),
                ('path', models.CharField(editable=False, max_length=200)),
                ('depth', models.PositiveSmallIntegerField(editable=False)),
                ('is_deleted', models.BooleanField(default=False)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='children',
                    to='inventory.location',
                )),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='locations',
                    to='inventory.workspace',
                )),
            ],
            options={
                'ordering': ['name', 'id'],
                'indexes': [
                    models.Index(fields=['workspace', 'parent', 'is_deleted'], name='location_ws_parent_idx'),
                    models.Index(fields=['path'], name='location_path_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(('is_deleted', False), ('parent__isnull', False)),
                        fields=('workspace', 'parent', 'slug'),
                        name='uniq_live_child_location_slug',
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(('is_deleted', False), ('parent__isnull', True)),
                        fields=('workspace', 'slug'),
                        name='uniq_live_root_location_slug',
                    ),
                    models.CheckConstraint(
                        condition=models.Q(('depth__gte', 1), ('depth__lte', 5)),
                        name='location_depth_range',
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('deleted_at__isnull', True), ('is_deleted', False)),
                            models.Q(('deleted_at__isnull', False), ('is_deleted', True)),
                            _connector='OR',
                        ),
                        name='location_deleted_at_matches_flag',
                    ),
                ],
            },
        ),

        # Boxes
        migrations.CreateModel(
            name='Box',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('short_code', models.CharField(editable=False, max_length=20, unique=True)),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, max_length=10000, validators=[django.core.validators.MaxLengthValidator(10000)])),
                ('tags', models.JSONField(blank=True, default=list)),
                ('search_text', models.TextField(blank=True, editable=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('location', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='boxes',
                    to='inventory.location',
                )),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='boxes',
                    to='inventory.workspace',
                )),
            ],
            options={
                'ordering': ['-created_at', 'id'],
                'indexes': [
                    models.Index(fields=['workspace', '-created_at'], name='box_ws_created_idx'),
                    models.Index(fields=['location'], name='box_location_idx'),
                ],
            },
        ),

        # QR codes
        migrations.CreateModel(
            name='QrCode',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('short_code', models.CharField(max_length=20, unique=True)),
                ('status', models.CharField(
                    choices=[('generated', 'Generated'), ('assigned', 'Assigned')],
                    default='generated',
                    max_length=16,
                )),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('box', models.OneToOneField(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.RESTRICT,
                    related_name='qr_code',
                    to='inventory.box',
                )),
                ('workspace', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='qr_codes',
                    to='inventory.workspace',
                )),
            ],
            options={
                'ordering': ['-created_at', 'short_code'],
                'indexes': [models.Index(fields=['workspace', 'status'], name='qrcode_ws_status_idx')],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('box__isnull', True), ('status', 'generated')),
                            models.Q(('box__isnull', False), ('status', 'assigned')),
                            _connector='OR',
                        ),
                        name='qrcode_status_matches_box',
                    ),
                ],
            },
        ),
    ]
