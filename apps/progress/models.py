from django.conf import settings
from django.db import models
from django.db.models import Q


class ProgressLog(models.Model):
    program = models.ForeignKey(
        'programs.Program',
        on_delete=models.CASCADE,
        related_name='progress_logs'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='progress_logs'
    )
    # PROTECT: an exercise with logged history cannot disappear from under it
    exercise = models.ForeignKey(
        'programs.Exercise',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='progress_logs'
    )
    week = models.ForeignKey('programs.ProgramWeek', on_delete=models.CASCADE, related_name='progress_logs')
    day = models.ForeignKey('programs.ProgramDay', on_delete=models.CASCADE, related_name='progress_logs')

    weight = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    reps = models.PositiveIntegerField(null=True, blank=True)
    time_seconds = models.PositiveIntegerField(null=True, blank=True)
    rpe = models.DecimalField(max_digits=3, decimal_places=1, null=True, blank=True)
    workout_duration = models.PositiveIntegerField(null=True, blank=True, help_text="Seconds")
    is_rest_day = models.BooleanField(default=False)

    completed_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['completed_at', 'id']
        indexes = [
            models.Index(fields=['program', 'completed_at'], name='progresslog_program_time'),
            models.Index(fields=['day', 'completed_at'], name='progresslog_day_time'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(is_rest_day=False) | Q(
                    exercise__isnull=True,
                    weight__isnull=True,
                    reps__isnull=True,
                    time_seconds__isnull=True,
                    rpe__isnull=True,
                ),
                name='progresslog_rest_day_has_no_measurements',
            ),
        ]

    def __str__(self):
        if self.is_rest_day:
            return f"{self.user} - rest day ({self.completed_at.date()})"
        return f"{self.user} - {self.exercise} ({self.completed_at.date()})"

    @property
    def measurements(self):
        return {
            name: getattr(self, name)
            for name in ('weight', 'reps', 'time_seconds', 'rpe')
            if getattr(self, name) is not None
        }
