"""
Общие фикстуры: подменный транспорт requests и мост к ASGI приложению
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest
import requests
from fastapi.testclient import TestClient
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from cloudguard_app.api_client import APIClient
from cloudguard_app.core.session import SessionStore
from cloudguard_app.core.storage import MemoryCredentialStore

BASE_URL = "http://cloudguard.test/api"

USER = {
    "id": 1,
    "name": "Jane Doe",
    "email": "a@b.com",
    "email_verified_at": None,
    "created_at": "2026-01-01T00:00:00+00:00",
    "updated_at": "2026-01-01T00:00:00+00:00",
}


def make_response(
    request: requests.PreparedRequest,
    status_code: int = 200,
    body: Any = None,
) -> requests.Response:
    """Собрать requests.Response с JSON телом"""
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode("utf-8") if body is not None else b""
    response.headers = CaseInsensitiveDict({"Content-Type": "application/json"})
    response.encoding = "utf-8"
    response.request = request
    response.url = request.url
    return response


Handler = Callable[[requests.PreparedRequest], requests.Response]


@dataclass
class ScriptedReply:
    status_code: int = 200
    body: Any = None
    exc: Optional[BaseException] = None
    handler: Optional[Handler] = None


class ScriptedAdapter(BaseAdapter):
    """
    Транспорт, отдающий заранее заданные ответы по (method, path).

    Ответы для одного маршрута выдаются по очереди, последний повторяется.
    """

    def __init__(self) -> None:
        super().__init__()
        self.routes: Dict[Tuple[str, str], List[ScriptedReply]] = {}
        self.requests: List[requests.PreparedRequest] = []

    def add(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        body: Any = None,
        exc: Optional[BaseException] = None,
        handler: Optional[Handler] = None,
    ) -> None:
        self.routes.setdefault((method, path), []).append(
            ScriptedReply(status_code=status_code, body=body, exc=exc, handler=handler)
        )

    @staticmethod
    def _path(request: requests.PreparedRequest) -> str:
        return urlsplit(request.url).path.removeprefix(urlsplit(BASE_URL).path)

    def calls(self, method: str, path: str) -> List[requests.PreparedRequest]:
        return [r for r in self.requests if r.method == method and self._path(r) == path]

    def send(self, request, **kwargs):
        self.requests.append(request)
        key = (request.method, self._path(request))
        replies = self.routes.get(key)
        if not replies:
            raise AssertionError(f"Unexpected request: {key}")
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if reply.exc is not None:
            raise reply.exc
        if reply.handler is not None:
            return reply.handler(request)
        return make_response(request, reply.status_code, reply.body)

    def close(self) -> None:
        pass


class ASGIAdapter(BaseAdapter):
    """Транспорт requests поверх FastAPI TestClient"""

    def __init__(self, app) -> None:
        super().__init__()
        self.client = TestClient(app)
        self.requests: List[requests.PreparedRequest] = []

    def send(self, request, **kwargs):
        self.requests.append(request)
        parts = urlsplit(request.url)
        path = parts.path + (f"?{parts.query}" if parts.query else "")
        body = request.body
        if isinstance(body, str):
            body = body.encode("utf-8")
        headers = {k: v for k, v in request.headers.items() if k.lower() != "content-length"}

        reply = self.client.request(request.method, path, content=body, headers=headers)

        response = requests.Response()
        response.status_code = reply.status_code
        response._content = reply.content
        response.headers = CaseInsensitiveDict(reply.headers)
        response.encoding = reply.encoding
        response.request = request
        response.url = request.url
        return response

    def close(self) -> None:
        self.client.close()


class ReadOnlyStore(MemoryCredentialStore):
    """Хранилище, запись в которое падает (например, диск заполнен)"""

    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")

    def remove(self, key: str) -> None:
        raise OSError("disk full")


def mount(adapter: BaseAdapter) -> requests.Session:
    http = requests.Session()
    http.mount("http://", adapter)
    return http


@pytest.fixture
def adapter() -> ScriptedAdapter:
    return ScriptedAdapter()


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def client(adapter, store) -> APIClient:
    return APIClient(
        store,
        base_url=BASE_URL,
        timeout=5,
        device_name="pytest",
        session=mount(adapter),
    )


@pytest.fixture
def session_store(client, store) -> SessionStore:
    return SessionStore(client, store)
