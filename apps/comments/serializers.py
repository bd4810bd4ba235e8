from rest_framework import serializers

from apps.users.serializers import UserSerializer

from .models import Comment


class ReplySerializer(serializers.ModelSerializer):
    author = UserSerializer(read_only=True)

    class Meta:
        model = Comment
        fields = [
            'id',
            'program',
            'progress_log',
            'parent',
            'author',
            'content',
            'media_type',
            'media_url',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class CommentThreadSerializer(ReplySerializer):
    replies = ReplySerializer(many=True, read_only=True)

    class Meta(ReplySerializer.Meta):
        fields = ReplySerializer.Meta.fields + ['replies']
        read_only_fields = fields
