"""Tests for notification factories and realtime payloads."""

from uuid import uuid4

import pytest

from storefront.notifications.models import (
    COMMENT_REPLY_TITLE,
    CommentReplyContext,
    NotificationType,
    build_comment_reply_event,
    comment_link,
    create_comment_reply_notification,
    truncate_preview,
)


@pytest.fixture
def ctx() -> CommentReplyContext:
    return CommentReplyContext(
        recipient_id=uuid4(),
        actor_id=uuid4(),
        actor_name="Ben",
        actor_avatar="ben.png",
        reply_id=uuid4(),
        reply_content="I agree",
        parent_comment_id=uuid4(),
        product_id=uuid4(),
        product_name="Trail Runner",
    )


class TestTruncatePreview:
    def test_short_text_is_unchanged(self):
        assert truncate_preview("I agree", 50) == "I agree"

    def test_exact_length_is_unchanged(self):
        assert truncate_preview("x" * 50, 50) == "x" * 50

    def test_long_text_is_cut_with_ellipsis(self):
        assert truncate_preview("x" * 60, 50) == "x" * 50 + "..."


class TestCommentReplyNotification:
    def test_stored_notification(self, ctx: CommentReplyContext):
        notification = create_comment_reply_notification(ctx)

        assert notification.user_id == ctx.recipient_id
        assert notification.type == NotificationType.COMMENT_REPLY
        assert notification.title == COMMENT_REPLY_TITLE
        assert notification.message == (
            'Ben replied to your comment on product "Trail Runner"'
        )
        assert notification.actor_id == ctx.actor_id
        assert notification.reference_id == ctx.reply_id
        assert notification.reference_type == "comment"
        assert notification.link == comment_link(
            ctx.product_id, ctx.parent_comment_id
        )
        assert notification.metadata["comment_content"] == "I agree"
        assert notification.metadata["parent_comment_id"] == str(
            ctx.parent_comment_id
        )
        assert notification.is_read is False

    def test_link_points_at_parent_thread(self, ctx: CommentReplyContext):
        link = comment_link(ctx.product_id, ctx.parent_comment_id)

        assert link == (
            f"/products-detail/{ctx.product_id}?comment={ctx.parent_comment_id}"
        )

    def test_realtime_event(self, ctx: CommentReplyContext):
        notification = create_comment_reply_notification(ctx)

        event = build_comment_reply_event(notification, ctx, preview_length=50)

        assert event["notification_id"] == str(notification.notification_id)
        assert event["type"] == "comment_reply"
        assert event["message"] == 'Ben replied: "I agree"'
        assert event["actor"] == {
            "id": str(ctx.actor_id),
            "name": "Ben",
            "avatar": "ben.png",
        }
        assert event["metadata"] == {"product_name": "Trail Runner"}

    def test_realtime_event_truncates_long_replies(self, ctx: CommentReplyContext):
        ctx.reply_content = "a" * 80
        notification = create_comment_reply_notification(ctx)

        event = build_comment_reply_event(notification, ctx, preview_length=50)

        assert event["message"] == f'Ben replied: "{"a" * 50}..."'
        # Stored copy keeps the full text
        assert notification.metadata["comment_content"] == "a" * 80
