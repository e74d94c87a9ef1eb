import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SharedFile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('owner_id', models.CharField(db_index=True, max_length=128)),
                ('name', models.CharField(help_text='Original filename as uploaded', max_length=255)),
                ('size_bytes', models.BigIntegerField(help_text='File size in bytes')),
                ('mime_type', models.CharField(max_length=255)),
                ('storage_path', models.CharField(help_text='Blob key: files/{id}{ext}', max_length=1024, unique=True)),
                ('thumbnail_path', models.CharField(blank=True, default='', help_text='Blob key of the generated preview, set asynchronously', max_length=1024)),
                ('share_token', models.CharField(max_length=64, unique=True)),
                ('status', models.CharField(choices=[('uploading', 'Uploading'), ('uploaded', 'Uploaded'), ('error', 'Error')], default='uploaded', max_length=16)),
                ('download_count', models.PositiveIntegerField(default=0)),
                ('uploaded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('last_downloaded_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Shared file',
                'verbose_name_plural': 'Shared files',
                'ordering': ['-uploaded_at'],
                'indexes': [models.Index(fields=['owner_id', '-uploaded_at'], name='files_owner_recent_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('size_bytes__gt', 0)), name='shared_file_size_positive')],
            },
        ),
        migrations.CreateModel(
            name='UserProfile',
            fields=[
                ('owner_id', models.CharField(max_length=128, primary_key=True, serialize=False)),
                ('storage_quota', models.BigIntegerField(default=1073741824, help_text='Storage quota limit in bytes')),
                ('used_storage', models.BigIntegerField(default=0, help_text='Currently used storage in bytes')),
                ('email', models.EmailField(blank=True, default='', max_length=254)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('last_activity_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'User profile',
                'verbose_name_plural': 'User profiles',
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('storage_quota__gte', 0)), name='storage_quota_non_negative'),
                    models.CheckConstraint(condition=models.Q(('used_storage__gte', 0)), name='used_storage_non_negative'),
                ],
            },
        ),
    ]
