"""Conversations, messages and the realtime socket"""

import queue
import socket
import threading
import time
from datetime import datetime, timedelta

import httpx
import pytest
import socketio
import uvicorn

from conftest import auth_headers
from homezy.main import asgi_app
from homezy.models import Notification
from homezy.models_messaging import Message
from homezy.security_utils import create_access_token


@pytest.fixture
def conversation(client, homeowner_headers, pro):
    response = client.post(
        "/messages",
        json={"recipient_id": pro.id, "content": "Hi, are you free on Saturday?"},
        headers=homeowner_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestSending:
    def test_first_message_opens_conversation(self, conversation, homeowner, pro):
        convo = conversation["conversation"]
        assert convo["homeowner_id"] == homeowner.id
        assert convo["professional_id"] == pro.id
        assert convo["last_message_content"] == "Hi, are you free on Saturday?"
        assert convo["other_participant"]["id"] == pro.id
        assert convo["other_participant"]["business_name"] == "Pat Services"

    def test_reply_reuses_conversation(self, client, conversation, homeowner, pro_headers):
        response = client.post(
            "/messages", json={"recipient_id": homeowner.id, "content": "Yes, morning works."}, headers=pro_headers
        )
        assert response.status_code == 201
        assert response.json()["conversation"]["id"] == conversation["conversation"]["id"]

    def test_offline_recipient_gets_notification(self, db, conversation, pro):
        notification = db.query(Notification).filter(Notification.user_id == pro.id).one()
        assert notification.type == "new_message"

    def test_homeowners_cannot_message_each_other(self, client, homeowner_headers, other_homeowner):
        response = client.post(
            "/messages", json={"recipient_id": other_homeowner.id, "content": "Hello"}, headers=homeowner_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PARTICIPANTS"

    def test_cannot_message_self(self, client, homeowner, homeowner_headers):
        response = client.post(
            "/messages", json={"recipient_id": homeowner.id, "content": "Note to self"}, headers=homeowner_headers
        )
        assert response.status_code == 400

    def test_unknown_recipient(self, client, homeowner_headers):
        response = client.post("/messages", json={"recipient_id": 9999, "content": "Hello"}, headers=homeowner_headers)
        assert response.status_code == 404


class TestReading:
    def test_unread_counts_and_mark_read(self, client, conversation, pro_headers):
        assert client.get("/messages/unread-count", headers=pro_headers).json() == {"total_unread": 1}

        listing = client.get("/messages/conversations", headers=pro_headers).json()
        assert listing["total_unread"] == 1
        assert listing["conversations"][0]["unread_count"] == 1

        conversation_id = conversation["conversation"]["id"]
        response = client.post(f"/messages/conversations/{conversation_id}/read", headers=pro_headers)
        assert response.json() == {"conversation_id": conversation_id, "marked_read": 1}
        assert client.get("/messages/unread-count", headers=pro_headers).json() == {"total_unread": 0}

    def test_messages_paginate_oldest_first(self, client, conversation, homeowner_headers, pro):
        for text in ("second", "third"):
            client.post("/messages", json={"recipient_id": pro.id, "content": text}, headers=homeowner_headers)
        conversation_id = conversation["conversation"]["id"]

        page = client.get(
            f"/messages/conversations/{conversation_id}/messages?limit=2", headers=homeowner_headers
        ).json()
        assert [m["content"] for m in page["messages"]] == ["second", "third"]
        assert page["has_more"] is True

        older = client.get(
            f"/messages/conversations/{conversation_id}/messages?before={page['messages'][0]['id']}",
            headers=homeowner_headers,
        ).json()
        assert [m["content"] for m in older["messages"]] == ["Hi, are you free on Saturday?"]
        assert older["has_more"] is False

    def test_outsiders_cannot_read(self, client, conversation, other_homeowner):
        conversation_id = conversation["conversation"]["id"]
        response = client.get(
            f"/messages/conversations/{conversation_id}/messages", headers=auth_headers(other_homeowner)
        )
        assert response.status_code == 403


class TestEditDelete:
    def test_edit_within_window(self, client, conversation, homeowner_headers):
        message_id = conversation["message"]["id"]
        response = client.patch(f"/messages/{message_id}", json={"content": "Free on Sunday?"}, headers=homeowner_headers)
        assert response.status_code == 200
        assert response.json()["is_edited"] is True
        assert response.json()["content"] == "Free on Sunday?"

    def test_edit_after_window(self, client, db, conversation, homeowner_headers):
        message_id = conversation["message"]["id"]
        db.query(Message).filter(Message.id == message_id).update(
            {Message.created_at: datetime.utcnow() - timedelta(minutes=10)}
        )
        db.commit()
        response = client.patch(f"/messages/{message_id}", json={"content": "Too late"}, headers=homeowner_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "EDIT_WINDOW_EXPIRED"

    def test_only_sender_edits(self, client, conversation, pro_headers):
        message_id = conversation["message"]["id"]
        response = client.patch(f"/messages/{message_id}", json={"content": "Hijack"}, headers=pro_headers)
        assert response.status_code == 403

    def test_delete_hides_for_caller_only(self, client, conversation, homeowner_headers, pro_headers):
        message_id = conversation["message"]["id"]
        conversation_id = conversation["conversation"]["id"]
        assert client.delete(f"/messages/{message_id}", headers=homeowner_headers).status_code == 200

        mine = client.get(f"/messages/conversations/{conversation_id}/messages", headers=homeowner_headers).json()
        theirs = client.get(f"/messages/conversations/{conversation_id}/messages", headers=pro_headers).json()
        assert mine["messages"] == []
        assert len(theirs["messages"]) == 1

    def test_archive_then_new_message_reactivates(self, client, conversation, homeowner_headers, pro):
        conversation_id = conversation["conversation"]["id"]
        archived = client.post(f"/messages/conversations/{conversation_id}/archive", headers=homeowner_headers)
        assert archived.json()["status"] == "archived"

        response = client.post(
            "/messages", json={"recipient_id": pro.id, "content": "One more thing"}, headers=homeowner_headers
        )
        assert response.json()["conversation"]["status"] == "active"


class TestAttachments:
    def test_upload_attachment(self, client, monkeypatch, homeowner_headers):
        monkeypatch.setattr(
            "homezy.domain.messaging.router.upload_file",
            lambda content, key, mime_type: f"https://cdn.example.com/{key}",
        )
        response = client.post(
            "/messages/attachments",
            files={"file": ("leak.png", b"\x89PNG fake image bytes", "image/png")},
            headers=homeowner_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "image"
        assert body["url"].startswith("https://cdn.example.com/messages/")

    def test_rejects_unsupported_type(self, client, homeowner_headers):
        response = client.post(
            "/messages/attachments",
            files={"file": ("script.exe", b"MZ", "application/x-msdownload")},
            headers=homeowner_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE"


@pytest.fixture(scope="module")
def live_server():
    """The full ASGI app (API plus Socket.IO) on a local port"""
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    server = uvicorn.Server(
        uvicorn.Config(asgi_app, host="127.0.0.1", port=port, lifespan="off", log_level="warning")
    )
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()
    deadline = time.monotonic() + 10
    while not server.started:
        assert time.monotonic() < deadline, "server did not start"
        time.sleep(0.02)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=5)


class SocketRecorder:
    """Socket.IO client that queues every event it receives"""

    def __init__(self, url: str, user):
        self.events = queue.Queue()
        self.sio = socketio.Client(reconnection=False)
        self.sio.on("*", self._record)
        self.sio.connect(url, auth={"token": create_access_token(user)}, transports=["websocket"], wait_timeout=5)

    def _record(self, event, data=None):
        self.events.put((event, data))

    def wait_for(self, event: str, timeout: float = 5):
        """Payload of the next `event`, skipping anything else"""
        deadline = time.monotonic() + timeout
        while True:
            name, data = self.events.get(timeout=max(deadline - time.monotonic(), 0.01))
            if name == event:
                return data


@pytest.fixture
def connect_socket(live_server):
    recorders = []

    def _connect(user) -> SocketRecorder:
        recorder = SocketRecorder(live_server, user)
        recorders.append(recorder)
        return recorder

    yield _connect

    for recorder in recorders:
        if recorder.sio.connected:
            recorder.sio.disconnect()


class TestRealtime:
    def test_rejects_missing_token(self, client, live_server):
        with pytest.raises(socketio.exceptions.ConnectionError):
            socketio.Client(reconnection=False).connect(live_server, transports=["websocket"], wait_timeout=5)

    def test_rejects_bad_token(self, client, live_server):
        with pytest.raises(socketio.exceptions.ConnectionError):
            socketio.Client(reconnection=False).connect(
                live_server, auth={"token": "not-a-jwt"}, transports=["websocket"], wait_timeout=5
            )

    def test_ping_and_live_delivery(self, client, db, live_server, connect_socket, homeowner_headers, pro):
        pro_socket = connect_socket(pro)
        pro_socket.sio.emit("ping")
        assert pro_socket.wait_for("pong") == {}

        response = httpx.post(
            f"{live_server}/messages",
            json={"recipient_id": pro.id, "content": "Live hello"},
            headers=homeowner_headers,
        )
        assert response.status_code == 201

        payload = pro_socket.wait_for("message:new")
        assert payload["message"]["content"] == "Live hello"
        assert payload["conversation_id"] == response.json()["conversation"]["id"]

        # Online recipients are not notified a second time
        assert db.query(Notification).filter(Notification.user_id == pro.id).count() == 0

    def test_presence_reported_in_conversations(
        self, client, live_server, connect_socket, conversation, homeowner_headers, pro
    ):
        connect_socket(pro)
        listed = httpx.get(f"{live_server}/messages/conversations", headers=homeowner_headers).json()
        assert listed["conversations"][0]["other_participant"]["is_online"] is True

    def test_join_requires_participation(self, client, connect_socket, conversation, other_homeowner):
        outsider = connect_socket(other_homeowner)
        outsider.sio.emit("conversation:join", {"conversation_id": conversation["conversation"]["id"]})
        assert outsider.wait_for("error") == {"message": "Conversation not found"}

    def test_unknown_event(self, client, connect_socket, pro):
        pro_socket = connect_socket(pro)
        pro_socket.sio.emit("conversation:delete", {"conversation_id": 1})
        assert pro_socket.wait_for("error") == {"message": "Unknown event: conversation:delete"}

    def test_typing_reaches_other_participant(self, client, connect_socket, conversation, homeowner, pro):
        conversation_id = conversation["conversation"]["id"]
        pro_socket = connect_socket(pro)
        owner_socket = connect_socket(homeowner)
        assert pro_socket.wait_for("user:online") == {"user_id": homeowner.id}

        # Ids sent as strings are accepted by every conversation event
        owner_socket.sio.emit("conversation:join", {"conversation_id": str(conversation_id)})
        assert owner_socket.wait_for("conversation:joined") == {"conversation_id": conversation_id}

        owner_socket.sio.emit("typing:start", {"conversation_id": str(conversation_id)})
        assert pro_socket.wait_for("typing:update") == {
            "conversation_id": conversation_id,
            "user_id": homeowner.id,
            "is_typing": True,
        }

        owner_socket.sio.emit("conversation:leave", {"conversation_id": str(conversation_id)})
        owner_socket.sio.emit("typing:stop", {"conversation_id": conversation_id})
        assert owner_socket.wait_for("error") == {"message": "Join the conversation first"}

    def test_last_socket_reports_offline(self, client, connect_socket, homeowner, pro):
        pro_socket = connect_socket(pro)
        owner_socket = connect_socket(homeowner)
        pro_socket.wait_for("user:online")

        owner_socket.sio.disconnect()
        assert pro_socket.wait_for("user:offline") == {"user_id": homeowner.id}
