from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.IntegerField(blank=True, null=True)),
                ('user_name', models.CharField(blank=True, default='', max_length=150)),
                ('role', models.CharField(blank=True, default='', max_length=32)),
                ('clinic_id', models.IntegerField(blank=True, null=True)),
                ('action', models.CharField(max_length=64)),
                ('object_type', models.CharField(blank=True, max_length=64, null=True)),
                ('object_id', models.CharField(blank=True, max_length=64, null=True)),
                ('detail', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['action', 'created_at'], name='portal_audi_action_5c1e0f_idx'),
                    models.Index(fields=['object_type', 'object_id', 'created_at'], name='portal_audi_object__9a7d3b_idx'),
                    models.Index(fields=['clinic_id', 'created_at'], name='portal_audi_clinic__e4b2a8_idx'),
                ],
            },
        ),
    ]
