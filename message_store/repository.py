import logging
import time
import uuid
from typing import Callable, List

from pydantic import AnyUrl, TypeAdapter, ValidationError

from . import errors
from .errors import StorageError
from .schemas import Message, MessagePayload
from .storage import MessageStore


logger = logging.getLogger("message_store")

_url_adapter = TypeAdapter(AnyUrl)


def new_message_id() -> str:
    return str(uuid.uuid4())


def _check_id(message_id: str) -> None:
    if not isinstance(message_id, str) or not message_id:
        raise errors.invalid_id()


def _check_payload(payload: MessagePayload) -> None:
    fields = (payload.title, payload.body, payload.attachment_url)
    if not all(isinstance(v, str) and v for v in fields):
        raise errors.missing_fields()

    try:
        url = _url_adapter.validate_python(payload.attachment_url)
    except ValidationError:
        raise errors.invalid_attachment_url()
    if not url.host:
        raise errors.invalid_attachment_url()


class MessageRepository:
    """
    CRUD over a single ``MessageStore``.

    ``clock`` returns nanoseconds since the epoch and ``id_factory`` returns a
    fresh unique id; both can be swapped out in tests.
    """

    def __init__(
        self,
        store: MessageStore,
        clock: Callable[[], int] = time.time_ns,
        id_factory: Callable[[], str] = new_message_id,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    def list_messages(self) -> List[Message]:
        try:
            return self.store.values()
        except StorageError as exc:
            raise StorageError(f"Failed to retrieve messages: {exc}") from exc

    def get_message(self, message_id: str) -> Message:
        _check_id(message_id)
        try:
            message = self.store.get(message_id)
        except StorageError as exc:
            raise StorageError(f"Failed to retrieve the message: {exc}") from exc
        if message is None:
            raise errors.message_not_found(message_id)
        return message

    def create_message(self, payload: MessagePayload) -> Message:
        _check_payload(payload)

        message = Message(
            id=self.id_factory(),
            title=payload.title,
            body=payload.body,
            attachment_url=payload.attachment_url,
            created_at=self.clock(),
            updated_at=None,
        )
        try:
            self.store.insert(message.id, message)
        except StorageError as exc:
            raise StorageError(f"Failed to add the message: {exc}") from exc

        logger.debug("created message %s", message.id)
        return message

    def update_message(self, message_id: str, payload: MessagePayload) -> Message:
        _check_id(message_id)
        try:
            existing = self.store.get(message_id)
        except StorageError as exc:
            raise StorageError(f"Failed to update the message: {exc}") from exc
        if existing is None:
            raise errors.message_not_found(message_id)
        _check_payload(payload)

        # updatedAt never precedes createdAt
        updated = existing.model_copy(
            update={
                "title": payload.title,
                "body": payload.body,
                "attachment_url": payload.attachment_url,
                "updated_at": max(self.clock(), existing.created_at),
            }
        )
        try:
            written = self.store.replace(updated.id, updated)
        except StorageError as exc:
            raise StorageError(f"Failed to update the message: {exc}") from exc
        # removed since it was read
        if written is None:
            raise errors.message_not_found(message_id)

        logger.debug("updated message %s", updated.id)
        return updated

    def delete_message(self, message_id: str) -> Message:
        _check_id(message_id)
        try:
            deleted = self.store.remove(message_id)
        except StorageError as exc:
            raise StorageError(f"Failed to delete the message: {exc}") from exc
        if deleted is None:
            raise errors.message_not_found(message_id)

        logger.debug("deleted message %s", message_id)
        return deleted
