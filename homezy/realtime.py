"""
Realtime channel for messaging, served by python-socketio.

Clients connect to /socket.io with their access token in the handshake auth
payload ({"token": "..."}) or as a ?token= query parameter. Every socket joins
the personal room of its user; conversation rooms are joined explicitly.

Client events: conversation:join, conversation:leave, typing:start,
typing:stop, ping.
Server events: message:new, message:read, message:edited, notification:new,
typing:update, user:online, user:offline, conversation:joined, pong, error.

With REALTIME_REDIS_ENABLED the server fans out through AsyncRedisManager so
every API instance delivers to its own sockets. Presence is answered from the
sockets connected to this instance.
"""

import asyncio
import logging
from typing import Any, Iterable, Optional
from urllib.parse import parse_qs

import socketio
from fastapi.encoders import jsonable_encoder

from .auth import get_user_from_token
from .config import ALLOWED_ORIGINS, REALTIME_REDIS_ENABLED, REDIS_URL
from .database import SessionLocal
from .models_messaging import Conversation

logger = logging.getLogger(__name__)

NAMESPACE = "/"


def _client_manager():
    if not REALTIME_REDIS_ENABLED:
        return None
    logger.info("🔌 Realtime fan-out through Redis")
    return socketio.AsyncRedisManager(REDIS_URL)


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=ALLOWED_ORIGINS,
    client_manager=_client_manager(),
)


def conversation_room(conversation_id: int) -> str:
    return f"conversation:{conversation_id}"


def user_room(user_id: int) -> str:
    return f"user:{user_id}"


def user_sids(user_id: int) -> list[str]:
    """Socket ids of a user connected to this instance"""
    return [sid for sid, _ in sio.manager.get_participants(NAMESPACE, user_room(user_id))]


def is_online(user_id: int) -> bool:
    return bool(user_sids(user_id))


async def emit_to(event: str, data: dict[str, Any], rooms: Iterable[str], exclude_user: Optional[int] = None):
    """Emit once per socket to the union of rooms, optionally skipping one user's sockets"""
    skip_sid = user_sids(exclude_user) if exclude_user is not None else None
    await sio.emit(event, jsonable_encoder(data), to=list(rooms), skip_sid=skip_sid)


async def send_to_user(user_id: int, event: str, data: dict[str, Any]):
    await emit_to(event, data, [user_room(user_id)])


# Strong references to fire-and-forget pushes until they finish
_pending_pushes: set[asyncio.Task] = set()


def push_to_user(user_id: int, event: str, data: dict[str, Any]):
    """
    Schedule a push from synchronous service code.

    Only works when called on the event loop thread (async route handlers);
    from workers and scripts there is no loop and the stored record is enough.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    task = loop.create_task(send_to_user(user_id, event, data))
    _pending_pushes.add(task)
    task.add_done_callback(_pending_pushes.discard)


def _conversation_id(data: Any) -> Optional[int]:
    """Conversation id from an event payload, as an int"""
    if not isinstance(data, dict):
        return None
    try:
        return int(data.get("conversation_id"))
    except (TypeError, ValueError):
        return None


def _load_conversation(conversation_id: int, user_id: int) -> Optional[Conversation]:
    db = SessionLocal()
    try:
        conversation = db.query(Conversation).filter(Conversation.id == conversation_id).first()
        if not conversation or user_id not in conversation.participant_ids():
            return None
        db.expunge(conversation)
        return conversation
    finally:
        db.close()


def _handshake_token(environ: dict, auth: Any) -> Optional[str]:
    if isinstance(auth, dict) and auth.get("token"):
        return auth["token"]
    tokens = parse_qs(environ.get("QUERY_STRING", "")).get("token")
    return tokens[0] if tokens else None


async def _send_error(sid: str, message: str):
    await sio.emit("error", {"message": message}, to=sid)


@sio.event
async def connect(sid, environ, auth=None):
    token = _handshake_token(environ, auth)
    db = SessionLocal()
    try:
        user = get_user_from_token(token, db) if token else None
        user_id = user.id if user else None
    finally:
        db.close()

    if user_id is None:
        logger.warning("❌ Socket rejected: missing or invalid token")
        raise socketio.exceptions.ConnectionRefusedError("authentication failed")

    first_socket = not is_online(user_id)
    # joined maps conversation_id -> other participant for rooms this socket entered
    await sio.save_session(sid, {"user_id": user_id, "joined": {}})
    await sio.enter_room(sid, user_room(user_id))
    logger.info(f"🔌 Socket connected for user {user_id}")
    if first_socket:
        await sio.emit("user:online", {"user_id": user_id}, skip_sid=sid)


@sio.event
async def disconnect(sid, reason=None):
    session = await sio.get_session(sid)
    user_id = session.get("user_id")
    if user_id is None:
        return
    logger.info(f"🔌 Socket disconnected for user {user_id}")
    if not [other for other in user_sids(user_id) if other != sid]:
        await sio.emit("user:offline", {"user_id": user_id}, skip_sid=sid)


@sio.on("ping")
async def ping(sid, data=None):
    await sio.emit("pong", {}, to=sid)


@sio.on("conversation:join")
async def join_conversation(sid, data=None):
    conversation_id = _conversation_id(data)
    async with sio.session(sid) as session:
        conversation = _load_conversation(conversation_id, session["user_id"]) if conversation_id else None
        if not conversation:
            await _send_error(sid, "Conversation not found")
            return
        session["joined"][conversation.id] = conversation.other_participant_id(session["user_id"])
    await sio.enter_room(sid, conversation_room(conversation.id))
    await sio.emit("conversation:joined", {"conversation_id": conversation.id}, to=sid)


@sio.on("conversation:leave")
async def leave_conversation(sid, data=None):
    conversation_id = _conversation_id(data)
    async with sio.session(sid) as session:
        if session["joined"].pop(conversation_id, None) is None:
            return
    await sio.leave_room(sid, conversation_room(conversation_id))


async def _relay_typing(sid, data, is_typing: bool):
    conversation_id = _conversation_id(data)
    session = await sio.get_session(sid)
    other_participant_id = session["joined"].get(conversation_id)
    if other_participant_id is None:
        await _send_error(sid, "Join the conversation first")
        return
    await send_to_user(
        other_participant_id,
        "typing:update",
        {"conversation_id": conversation_id, "user_id": session["user_id"], "is_typing": is_typing},
    )


@sio.on("typing:start")
async def typing_start(sid, data=None):
    await _relay_typing(sid, data, True)


@sio.on("typing:stop")
async def typing_stop(sid, data=None):
    await _relay_typing(sid, data, False)


@sio.on("*")
async def unknown_event(event, sid, data=None):
    await _send_error(sid, f"Unknown event: {event}")
