from fastapi import status


class MessageStoreError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    result: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(MessageStoreError):
    status_code = status.HTTP_400_BAD_REQUEST
    result = "invalid_input"


class PayloadValidationError(MessageStoreError):
    status_code = status.HTTP_400_BAD_REQUEST
    result = "validation_error"


class NotFoundError(MessageStoreError):
    status_code = status.HTTP_404_NOT_FOUND
    result = "not_found"


class StorageError(MessageStoreError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    result = "storage_error"


def invalid_id() -> InvalidInputError:
    return InvalidInputError("Invalid ID format.")


def missing_fields() -> PayloadValidationError:
    return PayloadValidationError("Missing required fields in the payload.")


def invalid_attachment_url() -> PayloadValidationError:
    return PayloadValidationError("Invalid attachment URL.")


def message_not_found(message_id: str) -> NotFoundError:
    return NotFoundError(f"Message with ID={message_id} not found")
