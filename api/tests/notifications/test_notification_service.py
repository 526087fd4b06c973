"""Tests for NotificationService against a mocked Cassandra session."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from agora.comments.models import Comment
from agora.core.database import Transaction
from agora.notifications.models import (
    COMMENT_NOTIFICATION_JOB,
    ActivityAction,
    NotificationVersion,
)
from agora.notifications.service import NotificationService


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: Mock(query_string=cql))
    session.aexecute = AsyncMock(return_value=[])
    return session


@pytest.fixture
def users():
    service = Mock()
    service.increment_new_notification_count = AsyncMock()
    return service


@pytest.fixture
def queue():
    job_queue = Mock()
    job_queue.add_job = AsyncMock()
    return job_queue


@pytest.fixture
def service(mock_session, users, queue) -> NotificationService:
    return NotificationService(
        session=mock_session, keyspace="test_keyspace", users=users, queue=queue
    )


@pytest.fixture
def comment() -> Comment:
    return Comment(post_id=uuid4(), user_id=uuid4(), text="hi @Bo")


class TestNotifyComment:
    @pytest.mark.asyncio
    async def test_queues_activity_rows(self, service, mock_session, comment):
        trx = Transaction(mock_session)
        reader_id = uuid4()

        activity = await service.notify_comment(
            trx, comment, reader_id, ActivityAction.MENTION
        )

        assert activity.reader_id == reader_id
        assert activity.actor_id == comment.user_id
        assert activity.comment_id == comment.id
        assert activity.action == "mention"
        assert [s for s, _ in trx.statements] == [
            service._insert_activity,
            service._insert_activity_by_comment,
        ]

    @pytest.mark.asyncio
    async def test_side_effects_wait_for_commit(
        self, service, mock_session, users, queue, comment
    ):
        trx = Transaction(mock_session)
        # Prepared statements are mocks; skip building the CQL batch
        trx._execute = AsyncMock()
        reader_id = uuid4()

        await service.notify_comment(trx, comment, reader_id, ActivityAction.COMMENT)

        users.increment_new_notification_count.assert_not_awaited()
        queue.add_job.assert_not_awaited()

        await trx.commit()

        trx._execute.assert_awaited_once()
        users.increment_new_notification_count.assert_awaited_once_with(reader_id)
        queue.add_job.assert_awaited_once_with(
            COMMENT_NOTIFICATION_JOB,
            {
                "recipient_id": str(reader_id),
                "comment_id": str(comment.id),
                "version": NotificationVersion.DEFAULT.value,
            },
        )

    @pytest.mark.asyncio
    async def test_rollback_drops_side_effects(
        self, service, mock_session, users, queue, comment
    ):
        trx = Transaction(mock_session)
        await service.notify_comment(trx, comment, uuid4(), ActivityAction.MENTION)

        trx.rollback()

        users.increment_new_notification_count.assert_not_awaited()
        queue.add_job.assert_not_awaited()
        mock_session.aexecute.assert_not_awaited()


class TestDeleteForComment:
    @pytest.mark.asyncio
    async def test_removes_each_activity(self, service, mock_session):
        comment_id = uuid4()
        rows = [
            Mock(reader_id=uuid4(), activity_id=uuid4()),
            Mock(reader_id=uuid4(), activity_id=uuid4()),
        ]
        mock_session.aexecute.return_value = rows
        trx = Transaction(mock_session)

        removed = await service.delete_for_comment(trx, comment_id)

        assert removed == 2
        statements = trx.statements
        assert statements[0] == (
            service._delete_activity,
            [rows[0].reader_id, rows[0].activity_id],
        )
        assert statements[-1] == (service._delete_activities_by_comment, [comment_id])

    @pytest.mark.asyncio
    async def test_no_activities(self, service):
        trx = Transaction(service.session)
        assert await service.delete_for_comment(trx, uuid4()) == 0
        assert len(trx.statements) == 1


class TestNotificationVersion:
    def test_for_action(self) -> None:
        assert (
            NotificationVersion.for_action(ActivityAction.MENTION)
            == NotificationVersion.MENTION
        )
        assert (
            NotificationVersion.for_action(ActivityAction.COMMENT)
            == NotificationVersion.DEFAULT
        )
