from django.conf import settings
from django.db import models


class Comment(models.Model):
    class MediaType(models.TextChoices):
        IMAGE = 'image', 'Image'
        VIDEO = 'video', 'Video'
        FILE = 'file', 'File'

    program = models.ForeignKey(
        'programs.Program',
        on_delete=models.CASCADE,
        related_name='comments'
    )
    progress_log = models.ForeignKey(
        'progress.ProgressLog',
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    # One level only: a reply's parent is always a top-level comment
    parent = models.ForeignKey(
        'self',
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name='replies'
    )
    content = models.TextField(blank=True)
    media_type = models.CharField(max_length=10, choices=MediaType.choices, blank=True, null=True)
    # Opaque URL from the upload step; stored as given
    media_url = models.CharField(max_length=1024, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['program', 'parent', 'created_at'], name='comment_thread_idx'),
        ]

    def __str__(self):
        return f"{self.author} on {self.program} at {self.created_at}"

    @property
    def is_reply(self):
        return self.parent_id is not None
