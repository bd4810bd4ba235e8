"""
Comment threads on programs and progress logs.

Threads are two-tier: top-level comments plus one level of replies. Readers
get that shape back directly from ``top_level_comments`` / ``comment_threads``.
"""
import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import Prefetch
from rest_framework.exceptions import PermissionDenied

from apps.core.exceptions import EmptyComment, InvalidSpecification, InvalidThread, NotFound
from apps.notifications.dispatch import notify_comment
from apps.users.permissions import require_program_viewer

from .models import Comment
from .serializers import CommentThreadSerializer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaRef:
    media_type: str
    url: str


def _check_media(media):
    if media is None:
        return None, None
    if media.media_type not in Comment.MediaType.values:
        raise InvalidSpecification(f"Unsupported media type '{media.media_type}'.", field='media_type')
    if not media.url:
        raise InvalidSpecification("media_url is required with a media type.", field='media_url')
    return media.media_type, media.url


def _require_author_or_admin(comment, actor):
    if comment.author_id != actor.pk and not actor.is_admin:
        raise PermissionDenied("You can only change your own comments.")


def post_comment(program, author, content, media=None, parent=None, progress_log=None):
    require_program_viewer(author, program)
    content = (content or '').strip()
    media_type, media_url = _check_media(media)
    if not content and media_url is None:
        raise EmptyComment(field='content')

    if progress_log is not None and progress_log.program_id != program.pk:
        raise NotFound(
            f"Progress log #{progress_log.pk} is not part of program #{program.pk}.",
            field='progress_log_id',
        )

    progress_log_id = progress_log.pk if progress_log is not None else None
    if parent is not None:
        if parent.program_id != program.pk:
            raise InvalidThread("The parent comment belongs to a different program.", field='parent_id')
        if parent.parent_id is not None:
            raise InvalidThread("Replies cannot be replied to.", field='parent_id')
        if progress_log is not None and parent.progress_log_id != progress_log_id:
            raise InvalidThread("A reply must stay on its parent's progress log.", field='progress_log_id')
        progress_log_id = parent.progress_log_id

    with transaction.atomic():
        comment = Comment.objects.create(
            program=program,
            progress_log_id=progress_log_id,
            author=author,
            parent=parent,
            content=content,
            media_type=media_type,
            media_url=media_url,
        )
        notify_comment(comment)

    logger.info(f"[Comment] #{comment.pk} by {author.username} on program #{program.pk} (parent: {comment.parent_id})")
    return comment


def top_level_comments(program, progress_log=None):
    """
    Top-level comments oldest first, each with ``replies`` prefetched oldest first.
    Without ``progress_log`` every thread of the program is returned, including
    those on its progress logs.
    """
    replies = Prefetch(
        'replies',
        queryset=Comment.objects.select_related('author').order_by('created_at', 'id'),
    )
    comments = Comment.objects.filter(program=program, parent__isnull=True)
    if progress_log is not None:
        comments = comments.filter(progress_log=progress_log)
    return comments.select_related('author').prefetch_related(replies).order_by('created_at', 'id')


def comment_threads(program, viewer, progress_log=None):
    require_program_viewer(viewer, program)
    return CommentThreadSerializer(top_level_comments(program, progress_log), many=True).data


def edit_comment(comment, actor, content):
    _require_author_or_admin(comment, actor)
    content = (content or '').strip()
    if not content and not comment.media_url:
        raise EmptyComment(field='content')
    comment.content = content
    comment.save(update_fields=['content', 'updated_at'])
    return comment


def delete_comment(comment, actor):
    _require_author_or_admin(comment, actor)
    comment_id = comment.pk
    # Replies go with their parent
    comment.delete()
    logger.info(f"[Comment] #{comment_id} deleted by {actor.username}")
