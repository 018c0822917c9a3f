#!/usr/bin/env python3
"""
Fake Supabase + EmailJS server for local development and testing.

Implements just enough of both services for airdrop-checker:
- PostgREST tables under /rest/v1/<table> (airdrops, airdrop_suggestions)
  - GET with select, order and eq./in. filters
  - POST with Prefer: return=representation
  - PATCH / DELETE with eq. filters
  - HEAD with Prefer: count=exact (Content-Range)
- EmailJS send endpoint: POST /api/v1.0/email/send

Run with: python scripts/fake_backends.py --port 9010
Then set:
    SUPABASE_URL="http://127.0.0.1:9010"
    SUPABASE_ANON_KEY="fake-anon-key"
    EMAILJS_SERVICE_ID="service_fake" EMAILJS_TEMPLATE_ID="template_fake"
    EMAILJS_PUBLIC_KEY="fake-public-key"
and point emailjs.api_base at the same address in your config file.
"""

import argparse
import itertools
import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlparse

FAKE_ANON_KEY = "fake-anon-key"
SEND_PATH = "/api/v1.0/email/send"
REST_PREFIX = "/rest/v1/"

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)

# Seed airdrops, oldest first
FAKE_AIRDROPS = [
    {"name": "Aurora Bridge", "status": "ended", "chain": "Ethereum"},
    {"name": "Nebula Swap", "status": "active", "chain": "Arbitrum"},
    {"name": "Orbit Lend", "status": "upcoming", "chain": "Base"},
    {"name": "Pulsar DAO", "status": "active", "chain": "Optimism"},
]


@dataclass
class FakeBackendState:
    """In-memory tables and recorded emails shared by all request threads."""

    anon_key: str = FAKE_ANON_KEY
    tables: dict[str, list[dict[str, Any]]] = field(
        default_factory=lambda: {"airdrops": [], "airdrop_suggestions": []}
    )
    emails: list[dict[str, Any]] = field(default_factory=list)
    # (status, body) returned by the EmailJS endpoint instead of 200 "OK"
    email_failure: tuple[int, str] | None = None
    # Status returned for writes to airdrop_suggestions instead of 201
    suggestion_write_failure: int | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)
    _ids: Any = field(default_factory=lambda: itertools.count(1))

    def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        row_id = next(self._ids)
        stored = {"id": row_id, **row}
        stored.setdefault("created_at", (EPOCH + timedelta(seconds=row_id)).isoformat())
        if table == "airdrop_suggestions":
            stored.setdefault("processed", False)
        self.tables.setdefault(table, []).append(stored)
        return stored

    def seed(self) -> None:
        for airdrop in FAKE_AIRDROPS:
            self.insert("airdrops", dict(airdrop))


def _literal(value: Any) -> str:
    """Render a column value the way PostgREST compares it in filters."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _matches(row: dict[str, Any], column: str, expression: str) -> bool:
    op, _, operand = expression.partition(".")
    actual = _literal(row.get(column))
    if op == "eq":
        return actual == operand
    if op == "neq":
        return actual != operand
    if op == "in":
        values = [v.strip().strip('"') for v in operand.strip("()").split(",")]
        return actual in values
    if op == "is":
        return actual == operand
    return False


def _select(rows: list[dict[str, Any]], params: dict[str, str]) -> list[dict[str, Any]]:
    """Apply filters and ordering; every param but select/order is a filter."""
    for column, expression in params.items():
        if column in ("select", "order"):
            continue
        rows = [row for row in rows if _matches(row, column, expression)]

    order = params.get("order")
    if order:
        column, _, direction = order.partition(".")
        rows = sorted(
            rows,
            key=lambda row: (_literal(row.get(column)), row.get("id", 0)),
            reverse=direction == "desc",
        )
    return rows


def _project(rows: list[dict[str, Any]], select: str | None) -> list[dict[str, Any]]:
    if not select or select == "*":
        return [dict(row) for row in rows]
    columns = [c.strip() for c in select.split(",")]
    return [{c: row.get(c) for c in columns} for row in rows]


class FakeBackendHandler(BaseHTTPRequestHandler):
    """HTTP handler implementing fake Supabase REST and EmailJS endpoints."""

    server: "FakeBackendServer"

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        """Override to add prefix."""
        if not self.server.quiet:
            print(f"[FakeBackends] {args[0]}")

    @property
    def state(self) -> FakeBackendState:
        return self.server.state

    def send_json(self, data: Any, status: int = 200, headers: dict | None = None) -> None:
        """Send a JSON response."""
        body = json.dumps(data).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def send_text(self, text: str, status: int = 200) -> None:
        body = text.encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def send_empty(self, status: int = 204, headers: dict | None = None) -> None:
        self.send_response(status)
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def send_error_json(self, status: int, message: str, code: str = "") -> None:
        """Send a PostgREST-style error response."""
        self.send_json(
            {"code": code, "message": message, "details": None, "hint": None},
            status=status,
        )

    def read_body(self) -> Any:
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length <= 0:
            return None
        return json.loads(self.rfile.read(content_length).decode())

    def route(self) -> tuple[str | None, dict[str, str]]:
        """Return (table, params) for a REST path, or (None, {}) otherwise."""
        parsed = urlparse(self.path)
        if not parsed.path.startswith(REST_PREFIX):
            return None, {}
        table = parsed.path[len(REST_PREFIX):].strip("/")
        params = {k: v[-1] for k, v in parse_qs(parsed.query).items()}
        return table, params

    def authorized(self) -> bool:
        if self.headers.get("apikey") != self.state.anon_key:
            self.send_error_json(401, "Invalid API key", code="PGRST301")
            return False
        return True

    def known_table(self, table: str) -> bool:
        if table not in self.state.tables:
            self.send_error_json(
                404, f'relation "public.{table}" does not exist', code="42P01"
            )
            return False
        return True

    def wants_representation(self) -> bool:
        return "return=representation" in (self.headers.get("Prefer") or "")

    # -------------------------------------------------------------------------
    # Verbs
    # -------------------------------------------------------------------------

    def do_GET(self) -> None:
        """Handle GET requests."""
        table, params = self.route()
        if table is None:
            self.send_error_json(404, f"Unknown endpoint: {self.path}")
            return
        if not self.authorized() or not self.known_table(table):
            return

        with self.state.lock:
            rows = _select(self.state.tables[table], params)
            self.send_json(_project(rows, params.get("select")))

    def do_HEAD(self) -> None:
        """Handle HEAD requests (row counts)."""
        table, params = self.route()
        if table is None or self.headers.get("apikey") != self.state.anon_key:
            self.send_empty(404 if table is None else 401)
            return
        if table not in self.state.tables:
            self.send_empty(404)
            return

        with self.state.lock:
            total = len(_select(self.state.tables[table], params))

        headers = {}
        if "count=exact" in (self.headers.get("Prefer") or ""):
            headers["Content-Range"] = f"0-{total - 1}/{total}" if total else "*/0"
        self.send_empty(200, headers)

    def do_POST(self) -> None:
        """Handle POST requests."""
        parsed = urlparse(self.path)
        if parsed.path == SEND_PATH:
            self.handle_email_send()
            return

        table, _ = self.route()
        if table is None:
            self.send_error_json(404, f"Unknown endpoint: {parsed.path}")
            return
        if not self.authorized() or not self.known_table(table):
            return
        if table == "airdrop_suggestions" and self.state.suggestion_write_failure:
            self.send_error_json(self.state.suggestion_write_failure, "write refused")
            return

        body = self.read_body()
        rows = body if isinstance(body, list) else [body]
        if not rows or not all(isinstance(r, dict) for r in rows):
            self.send_error_json(400, "Empty or invalid JSON body", code="PGRST102")
            return

        with self.state.lock:
            created = [self.state.insert(table, dict(row)) for row in rows]

        if self.wants_representation():
            self.send_json(created, status=201)
        else:
            self.send_empty(201)

    def do_PATCH(self) -> None:
        """Handle PATCH requests."""
        table, params = self.route()
        if table is None:
            self.send_error_json(404, f"Unknown endpoint: {self.path}")
            return
        if not self.authorized() or not self.known_table(table):
            return

        updates = self.read_body()
        if not isinstance(updates, dict):
            self.send_error_json(400, "Body must be a JSON object", code="PGRST102")
            return

        with self.state.lock:
            matched = _select(self.state.tables[table], params)
            for row in matched:
                row.update(updates)
            updated = [dict(row) for row in matched]

        if self.wants_representation():
            self.send_json(updated)
        else:
            self.send_empty(204)

    def do_DELETE(self) -> None:
        """Handle DELETE requests."""
        table, params = self.route()
        if table is None:
            self.send_error_json(404, f"Unknown endpoint: {self.path}")
            return
        if not self.authorized() or not self.known_table(table):
            return

        with self.state.lock:
            doomed = {id(row) for row in _select(self.state.tables[table], params)}
            self.state.tables[table] = [
                row for row in self.state.tables[table] if id(row) not in doomed
            ]
        self.send_empty(204)

    # -------------------------------------------------------------------------
    # EmailJS
    # -------------------------------------------------------------------------

    def handle_email_send(self) -> None:
        """Accept or refuse an email the way EmailJS does (plain-text bodies)."""
        try:
            payload = self.read_body() or {}
        except ValueError:
            self.send_text("The request body is not valid JSON", status=400)
            return

        if self.state.email_failure:
            status, text = self.state.email_failure
            self.send_text(text, status=status)
            return

        if not payload.get("user_id"):
            self.send_text("The Public Key is required", status=400)
            return
        if not payload.get("service_id") or not payload.get("template_id"):
            self.send_text("The service ID and template ID are required", status=400)
            return

        with self.state.lock:
            self.state.emails.append(payload)
        self.send_text("OK")


class FakeBackendServer(ThreadingHTTPServer):
    """Threaded server carrying the shared fake state."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], state: FakeBackendState | None = None, quiet: bool = False):
        super().__init__(address, FakeBackendHandler)
        self.state = state or FakeBackendState()
        self.quiet = quiet

    @property
    def base_url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"


def start_in_thread(
    host: str = "127.0.0.1", port: int = 0, seed: bool = True
) -> FakeBackendServer:
    """Start a quiet server on a background thread (port 0 picks a free port)."""
    server = FakeBackendServer((host, port), quiet=True)
    if seed:
        server.state.seed()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server


def main() -> None:
    parser = argparse.ArgumentParser(description="Run fake Supabase + EmailJS server")
    parser.add_argument(
        "--port",
        type=int,
        default=9010,
        help="Port to listen on (default: 9010)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--email-failure",
        type=int,
        default=None,
        metavar="STATUS",
        help="Make every email send fail with this HTTP status",
    )
    args = parser.parse_args()

    server = FakeBackendServer((args.host, args.port))
    server.state.seed()
    if args.email_failure:
        server.state.email_failure = (args.email_failure, "Simulated failure")

    print(f"Fake backends running at {server.base_url}")
    print(f"Anon key: {server.state.anon_key}")
    print("Seed airdrops:")
    for row in server.state.tables["airdrops"]:
        print(f"  {row['id']}: {row['name']} ({row['status']})")
    print()

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.shutdown()


if __name__ == "__main__":
    main()
