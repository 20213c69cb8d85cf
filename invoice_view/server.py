"""HTTP server entrypoints for the invoice page and PDF conversion."""

from __future__ import annotations

import json
import logging
import re
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote, urlsplit

from .config import (
    LISTEN_BACKLOG,
    MAX_BODY_BYTES as MAX_BODY_BYTES_CONFIG,
    MAX_INFLIGHT_RENDERS,
    RENDER_BASE_URL,
    RENDER_QUEUE_TIMEOUT_MS,
)
from .conversion import (
    DependencyError,
    PdfConversionError,
    build_print_url,
    convert_url_to_pdf,
    load_sync_playwright,
)
from .formatting import DEFAULT_FILENAME, sanitize_filename
from .net import is_client_disconnect, request_origin
from .params import QueryParams, split_query
from .rendering import render_page

logger = logging.getLogger(__name__)

RENDER_INFLIGHT_SEMAPHORE = threading.BoundedSemaphore(MAX_INFLIGHT_RENDERS)
ValidationError = Tuple[int, Dict[str, Any]]

PAGE_PATHS = ("/", "/index.html")
PDF_PATH = "/api/generar-pdf"
HEALTH_PATHS = ("/health", "/healthz", "/ready")
PDF_ERROR_MESSAGE = "An error occurred while generating the PDF."
HEADER_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def validate_conversion_payload(body: bytes) -> Tuple[Optional[str], Optional[ValidationError]]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError:
        return None, (
            400,
            {"error": "invalid_encoding", "detail": "Body must be UTF-8 encoded JSON."},
        )
    except json.JSONDecodeError as exc:
        return None, (
            400,
            {
                "error": "invalid_json",
                "detail": f"{exc.msg} (line {exc.lineno}, column {exc.colno})",
            },
        )

    if not isinstance(payload, dict):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "JSON root must be an object."},
        )

    params = payload.get("params")
    if params is None or params == "":
        return None, (
            400,
            {"error": "missing_params", "detail": "'params' is required."},
        )
    if not isinstance(params, str):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "'params' must be a query string."},
        )

    return params, None


def pdf_filename_for(query: str) -> str:
    return sanitize_filename(QueryParams(split_query(query)).get("filename"))


def content_disposition(filename: str) -> str:
    filename = HEADER_CONTROL_CHARS.sub("", filename).strip()
    if filename in ("", ".pdf"):
        filename = DEFAULT_FILENAME
    try:
        filename.encode("latin-1")
    except UnicodeEncodeError:
        fallback = filename.encode("ascii", "ignore").decode("ascii").strip()
        if fallback in ("", ".pdf"):
            fallback = DEFAULT_FILENAME
        return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    return f'inline; filename="{filename}"'


class InvoiceHandler(BaseHTTPRequestHandler):
    MAX_BODY_BYTES = MAX_BODY_BYTES_CONFIG
    RENDER_BASE_URL = RENDER_BASE_URL

    def _write_response(
        self,
        status: int,
        content_type: str,
        body: bytes,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        try:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            for name, value in (headers or {}).items():
                self.send_header(name, value)
            self.end_headers()
            self.wfile.write(body)
            return True
        except Exception as exc:
            if is_client_disconnect(exc):
                return False
            raise

    def _send_json(self, status: int, payload: Dict[str, Any]) -> bool:
        body = json.dumps(payload).encode("utf-8")
        return self._write_response(status, "application/json", body)

    def _send_text(self, status: int, message: str) -> bool:
        return self._write_response(status, "text/plain; charset=utf-8", message.encode("utf-8"))

    def _read_body(self) -> Optional[bytes]:
        header = self.headers.get("Content-Length")
        if header is None:
            self._send_json(
                411,
                {
                    "error": "missing_content_length",
                    "detail": "Content-Length header is required.",
                },
            )
            return None

        try:
            content_length = int(header)
        except ValueError:
            self._send_json(
                400,
                {
                    "error": "invalid_content_length",
                    "detail": "Content-Length must be an integer.",
                },
            )
            return None

        if content_length <= 0:
            self._send_json(400, {"error": "empty_body", "detail": "Request body cannot be empty."})
            return None

        if content_length > self.MAX_BODY_BYTES:
            self._send_json(
                413,
                {
                    "error": "payload_too_large",
                    "detail": f"Body exceeds {self.MAX_BODY_BYTES} bytes.",
                },
            )
            return None

        try:
            return self.rfile.read(content_length)
        except Exception as exc:
            if is_client_disconnect(exc):
                return None
            raise

    def _origin(self) -> str:
        host, port = self.server.server_address[:2]
        if host in ("0.0.0.0", "::", ""):
            host = "127.0.0.1"
        return request_origin(self.headers, f"{host}:{port}", self.RENDER_BASE_URL)

    def _send_pdf(self, query: str) -> None:
        acquired = RENDER_INFLIGHT_SEMAPHORE.acquire(timeout=RENDER_QUEUE_TIMEOUT_MS / 1000.0)
        if not acquired:
            retry_after_seconds = max(1, (RENDER_QUEUE_TIMEOUT_MS + 999) // 1000)
            self._send_json(
                503,
                {
                    "error": "server_busy",
                    "detail": "PDF conversion limit reached; retry shortly.",
                    "retry_after_seconds": retry_after_seconds,
                    "max_inflight_renders": MAX_INFLIGHT_RENDERS,
                },
            )
            return

        try:
            pdf_bytes = convert_url_to_pdf(build_print_url(self._origin(), query))
        except (PdfConversionError, DependencyError):
            logger.exception("PDF conversion failed")
            self._send_text(500, PDF_ERROR_MESSAGE)
            return
        finally:
            RENDER_INFLIGHT_SEMAPHORE.release()

        disposition = content_disposition(pdf_filename_for(query))
        self._write_response(
            200,
            "application/pdf",
            pdf_bytes,
            {"Content-Disposition": disposition},
        )

    def do_GET(self) -> None:
        url = urlsplit(self.path)
        if url.path in PAGE_PATHS:
            html = render_page(url.query)
            self._write_response(200, "text/html; charset=utf-8", html.encode("utf-8"))
            return
        if url.path == PDF_PATH:
            self._send_pdf(url.query)
            return
        if url.path in HEALTH_PATHS:
            self._send_json(200, {"status": "ok"})
            return
        self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})

    def do_POST(self) -> None:
        if urlsplit(self.path).path != PDF_PATH:
            self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})
            return

        body = self._read_body()
        if body is None:
            return

        query, validation_error = validate_conversion_payload(body)
        if validation_error is not None:
            status, payload_body = validation_error
            self._send_json(status, payload_body)
            return

        self._send_pdf(query)

    def handle_one_request(self) -> None:
        try:
            super().handle_one_request()
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            raise

    def log_message(self, format: str, *args: Any) -> None:
        return


class InvoiceHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = LISTEN_BACKLOG


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    load_sync_playwright()
    server = InvoiceHTTPServer((host, port), InvoiceHandler)
    logger.info("Invoice server listening on http://%s:%d", host, port)
    server.serve_forever()
