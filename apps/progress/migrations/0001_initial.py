import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('programs', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ProgressLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('weight', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('reps', models.PositiveIntegerField(blank=True, null=True)),
                ('time_seconds', models.PositiveIntegerField(blank=True, null=True)),
                ('rpe', models.DecimalField(blank=True, decimal_places=1, max_digits=3, null=True)),
                ('workout_duration', models.PositiveIntegerField(blank=True, help_text='Seconds', null=True)),
                ('is_rest_day', models.BooleanField(default=False)),
                ('completed_at', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('day', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='progress_logs', to='programs.programday')),
                ('exercise', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='progress_logs', to='programs.exercise')),
                ('program', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='progress_logs', to='programs.program')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='progress_logs', to=settings.AUTH_USER_MODEL)),
                ('week', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='progress_logs', to='programs.programweek')),
            ],
            options={
                'ordering': ['completed_at', 'id'],
                'indexes': [
                    models.Index(fields=['program', 'completed_at'], name='progresslog_program_time'),
                    models.Index(fields=['day', 'completed_at'], name='progresslog_day_time'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('is_rest_day', False), models.Q(('exercise__isnull', True), ('weight__isnull', True), ('reps__isnull', True), ('time_seconds__isnull', True), ('rpe__isnull', True)), _connector='OR'), name='progresslog_rest_day_has_no_measurements'),
                ],
            },
        ),
    ]
