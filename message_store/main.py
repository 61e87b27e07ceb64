from sqlalchemy import text
from typing import List

from fastapi import (
    FastAPI,
    Depends,
    HTTPException,
    Request,
    status,
)
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.exceptions import RequestValidationError

from sqlalchemy.orm import Session

from . import errors
from .errors import MessageStoreError
from .logging_utils import logging_middleware, log_extra
from .metrics import inc_message_operation, render_metrics
from .repository import MessageRepository
from .schemas import Message, MessagePayload
from .storage import init_db, get_db, MessageStore


app = FastAPI(title="Message Store")

# Attach logging middleware
app.middleware("http")(logging_middleware)


# ---------- Startup ----------


@app.on_event("startup")
def on_startup() -> None:
    # initialize DB schema
    init_db()


# ---------- Dependencies ----------


def get_repository(db: Session = Depends(get_db)) -> MessageRepository:
    return MessageRepository(MessageStore(db))


def is_ready(db: Session) -> tuple[bool, str]:
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        return False, f"DB error: {e}"
    return True, "ok"


def _done(request: Request, operation: str, message: Message) -> Message:
    inc_message_operation(operation, "ok")
    log_extra(request, operation=operation, message_id=message.id, result="ok")
    return message


# ---------- Exception handlers ----------


_BODY_OPERATIONS = {"POST": "addMessage", "PUT": "updateMessage"}


@app.exception_handler(MessageStoreError)
async def message_store_error_handler(request: Request, exc: MessageStoreError):
    extra = getattr(request.state, "log_extra", None) or {}
    operation = extra.get("operation", "unknown")
    inc_message_operation(operation, exc.result)
    log_extra(request, result=exc.result)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # a malformed payload is reported like an empty one
    operation = _BODY_OPERATIONS.get(request.method, "unknown")
    log_extra(request, operation=operation)
    return await message_store_error_handler(request, errors.missing_fields())


# ---------- Endpoints ----------


@app.get("/health/live")
def health_live():
    return {"status": "ok"}


@app.get("/health/ready")
def health_ready(db: Session = Depends(get_db)):
    ok, msg = is_ready(db)
    if not ok:
        raise HTTPException(status_code=503, detail=msg)
    return {"status": "ok"}


@app.get("/messages", response_model=List[Message])
def get_messages(
    request: Request,
    repo: MessageRepository = Depends(get_repository),
):
    log_extra(request, operation="getMessages")
    messages = repo.list_messages()
    inc_message_operation("getMessages", "ok")
    log_extra(request, result="ok", count=len(messages))
    return messages


@app.get("/messages/{message_id}", response_model=Message)
def get_message(
    message_id: str,
    request: Request,
    repo: MessageRepository = Depends(get_repository),
):
    log_extra(request, operation="getMessage", message_id=message_id)
    return _done(request, "getMessage", repo.get_message(message_id))


@app.post("/messages", response_model=Message, status_code=status.HTTP_201_CREATED)
def add_message(
    payload: MessagePayload,
    request: Request,
    repo: MessageRepository = Depends(get_repository),
):
    log_extra(request, operation="addMessage")
    return _done(request, "addMessage", repo.create_message(payload))


@app.put("/messages/{message_id}", response_model=Message)
def update_message(
    message_id: str,
    payload: MessagePayload,
    request: Request,
    repo: MessageRepository = Depends(get_repository),
):
    log_extra(request, operation="updateMessage", message_id=message_id)
    return _done(request, "updateMessage", repo.update_message(message_id, payload))


@app.delete("/messages/{message_id}", response_model=Message)
def delete_message(
    message_id: str,
    request: Request,
    repo: MessageRepository = Depends(get_repository),
):
    log_extra(request, operation="deleteMessage", message_id=message_id)
    return _done(request, "deleteMessage", repo.delete_message(message_id))


@app.get("/metrics")
def metrics():
    text = render_metrics()
    return PlainTextResponse(content=text, media_type="text/plain")
