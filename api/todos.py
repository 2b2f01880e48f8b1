"""Todo REST endpoints.

GET    /api/todos              grouped view (optional assignee/status/date_from/date_to filters)
GET    /api/todos/{id}         single todo
POST   /api/todos              create
PUT    /api/todos/{id}         partial update
PUT    /api/todos/{id}/toggle  flip completed
DELETE /api/todos/{id}         delete (204)
"""

import re
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from typing import Optional
from urllib.parse import parse_qs, urlsplit

from src.models.todo import TodoCreate, TodoFilter, TodoUpdate
from src.utils.http import read_json_body, run_async, send_empty, send_json, send_status

COLLECTION_PATH = re.compile(r"^/api/todos/?$")
ITEM_PATH = re.compile(r"^/api/todos/(?P<todo_id>\d+)(?P<toggle>/toggle)?/?$")


def _parse_item(path: str) -> tuple[Optional[int], bool]:
    match = ITEM_PATH.match(path)
    if not match:
        return None, False
    return int(match.group("todo_id")), bool(match.group("toggle"))


def do_GET(request: BaseHTTPRequestHandler) -> None:
    service = request.server.app.service
    url = urlsplit(request.path)

    if COLLECTION_PATH.match(url.path):
        params = {key: values[-1] for key, values in parse_qs(url.query).items()}
        todo_filter = TodoFilter.model_validate(params)
        groups = run_async(service.list_grouped(todo_filter))
        send_json(request, HTTPStatus.OK, [group.model_dump(mode="json") for group in groups])
        return

    todo_id, toggle = _parse_item(url.path)
    if todo_id is None or toggle:
        send_status(request, HTTPStatus.NOT_FOUND)
        return
    todo = run_async(service.get(todo_id))
    send_json(request, HTTPStatus.OK, todo.to_json())


def do_POST(request: BaseHTTPRequestHandler) -> None:
    service = request.server.app.service
    if not COLLECTION_PATH.match(urlsplit(request.path).path):
        send_status(request, HTTPStatus.METHOD_NOT_ALLOWED)
        return

    body = TodoCreate.model_validate(read_json_body(request))
    todo = run_async(service.create(body))
    send_json(request, HTTPStatus.CREATED, todo.to_json())


def do_PUT(request: BaseHTTPRequestHandler) -> None:
    service = request.server.app.service
    todo_id, toggle = _parse_item(urlsplit(request.path).path)
    if todo_id is None:
        send_status(request, HTTPStatus.METHOD_NOT_ALLOWED)
        return

    if toggle:
        todo = run_async(service.toggle(todo_id))
    else:
        body = TodoUpdate.model_validate(read_json_body(request))
        todo = run_async(service.update(todo_id, body))
    send_json(request, HTTPStatus.OK, todo.to_json())


def do_DELETE(request: BaseHTTPRequestHandler) -> None:
    service = request.server.app.service
    todo_id, toggle = _parse_item(urlsplit(request.path).path)
    if todo_id is None or toggle:
        send_status(request, HTTPStatus.METHOD_NOT_ALLOWED)
        return

    run_async(service.delete(todo_id))
    send_empty(request, HTTPStatus.NO_CONTENT)
