from django.conf import settings
from django.db import models
from django.db.models import F, Q

from .targets import TargetSpec


class Exercise(models.Model):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    video_link = models.URLField(max_length=500, blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        limit_choices_to={'user_type': 'coach'},
        related_name='created_exercises'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Program(models.Model):
    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    coach = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='coached_programs'
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='client_programs'
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    total_weeks = models.PositiveIntegerField(default=12)
    completed_weeks = models.PositiveIntegerField(default=0)

    # Progression pointer; both set or both null, written together
    current_week = models.ForeignKey(
        'programs.ProgramWeek',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    current_day = models.ForeignKey(
        'programs.ProgramDay',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )

    # Monotonic; week orders are never reused after a deletion
    next_week_order = models.PositiveIntegerField(default=1)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=Q(completed_weeks__lte=F('total_weeks')),
                name='program_completed_weeks_lte_total',
            ),
        ]

    def __str__(self):
        return f"{self.title}: {self.coach} -> {self.client}"

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE

    @property
    def is_positioned(self):
        return self.current_week_id is not None and self.current_day_id is not None


class ProgramWeek(models.Model):
    program = models.ForeignKey(Program, on_delete=models.CASCADE, related_name='weeks')
    name = models.CharField(max_length=255)
    order = models.PositiveIntegerField()
    next_day_order = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['order']
        constraints = [
            models.UniqueConstraint(fields=['program', 'order'], name='unique_week_order_per_program'),
        ]

    def __str__(self):
        return f"{self.program.title} / {self.name} (#{self.order})"


class ProgramDay(models.Model):
    week = models.ForeignKey(ProgramWeek, on_delete=models.CASCADE, related_name='days')
    name = models.CharField(max_length=255)
    order = models.PositiveIntegerField()
    exercises = models.ManyToManyField(
        Exercise,
        through='programs.ProgramDayExercise',
        related_name='days'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['order']
        constraints = [
            models.UniqueConstraint(fields=['week', 'order'], name='unique_day_order_per_week'),
        ]

    def __str__(self):
        return f"{self.week.name} / {self.name} (#{self.order})"


class ProgramDayExercise(models.Model):
    day = models.ForeignKey(ProgramDay, on_delete=models.CASCADE, related_name='assignments')
    exercise = models.ForeignKey(Exercise, on_delete=models.CASCADE, related_name='assignments')
    target_types = models.JSONField(default=list, blank=True)
    values = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['day', 'exercise'], name='unique_exercise_per_day'),
        ]

    def __str__(self):
        return f"{self.exercise.name} on {self.day.name}"

    @property
    def targets(self):
        return TargetSpec.from_lists(self.target_types, self.values)

    @targets.setter
    def targets(self, spec):
        self.target_types, self.values = TargetSpec(spec).as_lists()
