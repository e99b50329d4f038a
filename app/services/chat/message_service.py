# app/services/chat/message_service.py
from typing import Any, Dict, List, NamedTuple, Optional, Tuple
from uuid import UUID
from sqlalchemy import select, update, func, and_, distinct
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ...core.exceptions import BadRequestError, ForbiddenError, NotFoundError, SchoolHubException
from ...models.base import utcnow
from ...models.chat.message_item import MessageItem
from ...models.chat.message_thread import MessageThread, MessageParticipant
from ...models.shared.user import User, UserRole
from ...schemas.message_schemas import ItemOut, ThreadCreate, ThreadOut, ThreadUpdate
from ..user_service import user_summary
from .recipient_service import RecipientService

logger = logging.getLogger(__name__)

MANAGER_ROLES = (UserRole.PRINCIPAL.value, UserRole.ADMIN.value)


class ThreadResult(NamedTuple):
    thread: Dict[str, Any]
    created: bool
    participant_ids: List[UUID]
    first_item: Optional[Dict[str, Any]] = None


def serialize_thread(thread: MessageThread) -> Dict[str, Any]:
    return ThreadOut.model_validate(thread).model_dump(mode="json")


def serialize_item(item: MessageItem, author: Optional[User] = None) -> Dict[str, Any]:
    data = ItemOut.model_validate(item).model_dump(mode="json")
    data.update({
        "author_name": author.full_name if author else None,
        "author_email": author.email if author else None,
        "author_role": author.role if author else None,
    })
    return data


class MessageService:
    """Threads, their items and their participants."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # lookups

    async def get_participant(self, thread_id: UUID, user_id: UUID) -> Optional[MessageParticipant]:
        result = await self.db.execute(
            select(MessageParticipant).where(
                MessageParticipant.message_id == thread_id,
                MessageParticipant.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def _thread(self, thread_id: UUID, org_id: UUID) -> Optional[MessageThread]:
        result = await self.db.execute(
            select(MessageThread).where(
                MessageThread.id == thread_id,
                MessageThread.org_id == org_id,
                MessageThread.is_deleted == False
            )
        )
        return result.scalar_one_or_none()

    async def participant_thread(self, caller: User, thread_id: UUID) -> MessageThread:
        """The thread, when the caller takes part in it; 404 otherwise."""
        thread = await self._thread(thread_id, caller.org_id)
        if not thread or not await self.get_participant(thread_id, caller.id):
            raise SchoolHubException("Message not found or access denied", status_code=404)
        return thread

    async def is_participant(self, thread_id: UUID, user_id: UUID) -> bool:
        return await self.get_participant(thread_id, user_id) is not None

    async def participant_ids(self, thread_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(MessageParticipant.user_id).where(MessageParticipant.message_id == thread_id)
        )
        return list(result.scalars().all())

    # threads

    async def list_threads(self, caller: User) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(MessageThread, MessageParticipant.unread)
            .join(MessageParticipant, MessageParticipant.message_id == MessageThread.id)
            .where(
                MessageParticipant.user_id == caller.id,
                MessageThread.org_id == caller.org_id,
                MessageThread.is_deleted == False
            )
            .order_by(MessageThread.created_at.desc())
        )
        rows = result.all()
        if not rows:
            return []
        thread_ids = [thread.id for thread, _ in rows]

        others = await self.db.execute(
            select(MessageParticipant, User)
            .join(User, User.id == MessageParticipant.user_id)
            .where(
                MessageParticipant.message_id.in_(thread_ids),
                MessageParticipant.user_id != caller.id
            )
            .order_by(MessageParticipant.created_at)
        )
        other_by_thread: Dict[UUID, Dict[str, Any]] = {}
        for participant, user in others.all():
            if participant.message_id not in other_by_thread:
                summary = user_summary(user)
                summary["role"] = user.role or participant.role
                other_by_thread[participant.message_id] = summary

        latest = await self._latest_items(thread_ids)

        threads = []
        for thread, unread in rows:
            data = serialize_thread(thread)
            data.update({
                "unread": unread,
                "unread_count": 1 if unread else 0,
                "latest_item": latest.get(thread.id),
                "other_participant": other_by_thread.get(thread.id),
            })
            threads.append(data)
        return threads

    async def _latest_items(self, thread_ids: List[UUID]) -> Dict[UUID, Dict[str, Any]]:
        newest = (
            select(MessageItem.message_id, func.max(MessageItem.created_at).label("latest"))
            .where(MessageItem.message_id.in_(thread_ids), MessageItem.is_deleted == False)
            .group_by(MessageItem.message_id)
            .subquery()
        )
        result = await self.db.execute(
            select(MessageItem).join(
                newest,
                and_(MessageItem.message_id == newest.c.message_id, MessageItem.created_at == newest.c.latest)
            ).where(MessageItem.is_deleted == False)
        )
        return {
            item.message_id: {
                "id": str(item.id),
                "body": item.body,
                "author_id": str(item.author_id) if item.author_id else None,
                "created_at": item.created_at.isoformat(),
            }
            for item in result.scalars().all()
        }

    async def find_direct_thread(self, org_id: UUID, user_a: UUID, user_b: UUID) -> Optional[MessageThread]:
        """Existing dm between exactly these two users."""
        both = (
            select(MessageParticipant.message_id)
            .join(MessageThread, MessageThread.id == MessageParticipant.message_id)
            .where(
                MessageThread.org_id == org_id,
                MessageThread.thread_type == "dm",
                MessageThread.is_deleted == False,
                MessageParticipant.user_id.in_([user_a, user_b])
            )
            .group_by(MessageParticipant.message_id)
            .having(func.count(distinct(MessageParticipant.user_id)) == 2)
        )
        candidates = list((await self.db.execute(both)).scalars().all())
        if not candidates:
            return None

        sizes = await self.db.execute(
            select(MessageParticipant.message_id, func.count())
            .where(MessageParticipant.message_id.in_(candidates))
            .group_by(MessageParticipant.message_id)
        )
        pair_ids = [thread_id for thread_id, count in sizes.all() if count == 2]
        if not pair_ids:
            return None
        result = await self.db.execute(
            select(MessageThread)
            .where(MessageThread.id.in_(pair_ids))
            .order_by(MessageThread.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_thread(self, caller: User, data: ThreadCreate) -> ThreadResult:
        """New thread, or the existing dm with these two users; the body becomes its first item."""
        recipients = [r for r in data.all_recipients() if r != caller.id]
        if not recipients:
            raise BadRequestError("recipient_id or recipient_ids is required")
        if not await RecipientService(self.db).can_message(caller, recipients):
            raise ForbiddenError("You are not allowed to message one or more recipients")

        if data.thread_type == "dm" and len(recipients) == 1:
            existing = await self.find_direct_thread(caller.org_id, caller.id, recipients[0])
            if existing:
                logger.info(f"Reusing dm thread {existing.id} for {caller.id} -> {recipients[0]}")
                item = await self.post_item(caller, existing.id, data.body, []) if data.body else None
                return ThreadResult(serialize_thread(existing), False, [caller.id, recipients[0]], item)

        thread = MessageThread(
            org_id=caller.org_id,
            thread_type=data.thread_type,
            subject=data.subject,
            created_by=caller.id
        )
        self.db.add(thread)
        await self.db.flush()

        roles = await self._roles([caller.id, *recipients])
        self.db.add(MessageParticipant(message_id=thread.id, user_id=caller.id, org_id=caller.org_id,
                                       role=roles.get(caller.id), unread=False))
        for user_id in recipients:
            self.db.add(MessageParticipant(message_id=thread.id, user_id=user_id, org_id=caller.org_id,
                                           role=roles.get(user_id), unread=True))
        await self.db.commit()
        logger.info(f"Thread {thread.id} created by {caller.id} with {len(recipients)} recipient(s)")

        item = await self.post_item(caller, thread.id, data.body, []) if data.body else None
        return ThreadResult(serialize_thread(thread), True, [caller.id, *recipients], item)

    async def _roles(self, user_ids: List[UUID]) -> Dict[UUID, str]:
        result = await self.db.execute(select(User.id, User.role).where(User.id.in_(user_ids)))
        return dict(result.all())

    async def update_thread(self, caller: User, data: ThreadUpdate) -> Dict[str, Any]:
        thread = await self.participant_thread(caller, data.id)
        changes = data.model_dump(exclude_unset=True, exclude={"id"})
        if "subject" in changes:
            thread.subject = changes["subject"]
        if changes.get("deleted_at"):
            thread.is_deleted = True
            thread.deleted_at = changes["deleted_at"]
        await self.db.commit()
        return serialize_thread(thread)

    async def delete_thread(self, caller: User, thread_id: UUID) -> None:
        thread = await self.participant_thread(caller, thread_id)
        thread.mark_deleted()
        await self.db.commit()
        logger.info(f"Thread {thread_id} deleted by {caller.id}")

    # items

    async def _require_member(self, caller: User, thread_id: UUID) -> MessageParticipant:
        participant = await self.get_participant(thread_id, caller.id)
        if not participant:
            raise ForbiddenError("You are not a participant in this thread")
        return participant

    async def list_items(self, caller: User, thread_id: UUID, limit: int = 50, offset: int = 0) -> Dict[str, Any]:
        participant = await self._require_member(caller, thread_id)

        filters = (MessageItem.message_id == thread_id, MessageItem.is_deleted == False)
        total = (await self.db.execute(select(func.count()).select_from(MessageItem).where(*filters))).scalar() or 0
        result = await self.db.execute(
            select(MessageItem, User)
            .outerjoin(User, User.id == MessageItem.author_id)
            .where(*filters)
            .order_by(MessageItem.created_at.asc())
            .offset(offset)
            .limit(limit)
        )
        items = [serialize_item(item, author) for item, author in result.all()]

        if participant.unread:
            participant.unread = False
            await self.db.commit()
        return {"items": items, "total": total}

    async def post_item(self, caller: User, thread_id: UUID, body: str,
                        attachments: List[Dict[str, Any]]) -> Dict[str, Any]:
        await self._require_member(caller, thread_id)
        thread = await self._thread(thread_id, caller.org_id)
        if not thread:
            raise NotFoundError("Message thread")

        item = MessageItem(
            message_id=thread_id,
            org_id=caller.org_id,
            author_id=caller.id,
            body=body,
            attachments=attachments,
            edit_history=[]
        )
        self.db.add(item)
        await self.db.execute(
            update(MessageParticipant)
            .where(MessageParticipant.message_id == thread_id, MessageParticipant.user_id != caller.id)
            .values(unread=True)
            .execution_options(synchronize_session=False)
        )
        thread.updated_at = utcnow()
        await self.db.commit()
        return serialize_item(item, caller)

    async def _item(self, caller: User, item_id: UUID) -> MessageItem:
        result = await self.db.execute(
            select(MessageItem).where(
                MessageItem.id == item_id,
                MessageItem.org_id == caller.org_id,
                MessageItem.is_deleted == False
            )
        )
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("Message item")
        return item

    async def edit_item(self, caller: User, item_id: UUID, body: str) -> Dict[str, Any]:
        item = await self._item(caller, item_id)
        if item.author_id != caller.id:
            raise ForbiddenError("Only the author can edit this message")
        # reassign so the JSON column is flagged dirty
        item.edit_history = [*(item.edit_history or []), {"body": item.body, "edited_at": utcnow().isoformat()}]
        item.body = body
        await self.db.commit()
        return serialize_item(item, caller)

    async def delete_item(self, caller: User, item_id: UUID) -> MessageItem:
        item = await self._item(caller, item_id)
        if item.author_id != caller.id and caller.role not in MANAGER_ROLES:
            raise ForbiddenError("Only the author can delete this message")
        item.mark_deleted()
        await self.db.commit()
        return item

    # participants

    async def list_participants(self, caller: User, thread_id: UUID) -> List[Dict[str, Any]]:
        await self._require_member(caller, thread_id)
        result = await self.db.execute(
            select(MessageParticipant, User)
            .join(User, User.id == MessageParticipant.user_id)
            .where(MessageParticipant.message_id == thread_id)
            .order_by(MessageParticipant.created_at)
        )
        return [self.serialize_participant(p, u) for p, u in result.all()]

    def serialize_participant(self, participant: MessageParticipant, user: Optional[User] = None) -> Dict[str, Any]:
        data = {
            "id": str(participant.id),
            "message_id": str(participant.message_id),
            "user_id": str(participant.user_id),
            "role": participant.role,
            "unread": participant.unread,
        }
        if user is not None:
            data.update({"first_name": user.first_name, "last_name": user.last_name, "email": user.email})
        return data

    async def add_participant(self, caller: User, thread_id: UUID, user_id: UUID,
                              role: Optional[str] = None) -> Tuple[Dict[str, Any], bool]:
        await self._require_member(caller, thread_id)
        if not await self._thread(thread_id, caller.org_id):
            raise NotFoundError("Message thread")

        existing = await self.get_participant(thread_id, user_id)
        if existing:
            return self.serialize_participant(existing), False

        user = (await self.db.execute(
            select(User).where(
                User.id == user_id,
                User.org_id == caller.org_id,
                User.is_deleted == False,
                User.is_active == True
            )
        )).scalar_one_or_none()
        if not user:
            raise BadRequestError("User not found in organization")

        participant = MessageParticipant(
            message_id=thread_id, user_id=user_id, org_id=caller.org_id,
            role=role or user.role, unread=True
        )
        self.db.add(participant)
        await self.db.commit()
        return self.serialize_participant(participant, user), True

    async def set_unread(self, caller: User, thread_id: UUID, unread: bool) -> Dict[str, Any]:
        participant = await self.get_participant(thread_id, caller.id)
        if not participant:
            raise NotFoundError("Participant")
        participant.unread = unread
        await self.db.commit()
        return self.serialize_participant(participant)

    async def remove_participant(self, caller: User, thread_id: UUID, user_id: UUID) -> None:
        thread = await self._thread(thread_id, caller.org_id)
        if not thread:
            raise NotFoundError("Message thread")
        if user_id != caller.id and thread.created_by != caller.id:
            raise ForbiddenError("Only the thread creator can remove other participants")
        participant = await self.get_participant(thread_id, user_id)
        if not participant:
            raise NotFoundError("Participant")
        await self.db.delete(participant)
        await self.db.commit()
