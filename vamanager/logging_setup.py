# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

"""
JSON logging for VA Manager.

Every record carries the request id and the organization being served.
Account credentials never reach a sink: fields holding a password, a stored
form or key material are masked by name whatever their type, including inside
nested dicts such as account rows or a JWK. Credential metadata (the scheme
tag, the decode outcome) stays readable so fallbacks can be tracked.
"""
import logging
import sys
import contextvars
import threading
import queue
import requests
import json
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger
from vamanager.config import settings

request_id_var = contextvars.ContextVar("request_id", default=None)
org_id_var = contextvars.ContextVar("org_id", default=None)

SERVICE_NAME = "va-manager"
REDACTED = "***REDACTED***"

SECRETS = ("password", "plaintext", "stored_form", "jwk", "secret", "token", "key", "authorization", "cookie")
CREDENTIAL_METADATA = frozenset({"password_scheme", "password_outcome", "decode_outcome", "needs_reencrypt"})

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

def is_secret_field(name: str) -> bool:
    name = name.lower()
    if name in CREDENTIAL_METADATA:
        return False
    return any(s in name for s in SECRETS)

def redact(value):
    """Mask secret fields inside dicts and lists."""
    if isinstance(value, dict):
        return {
            k: REDACTED if is_secret_field(str(k)) and v is not None else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value

class RedactingJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = log_record.get("timestamp") or datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')
        log_record["level"] = record.levelname

        for field, var in (("request_id", request_id_var), ("organization_id", org_id_var)):
            value = var.get()
            if value is not None and log_record.get(field) is None:
                log_record[field] = value

        log_record["environment"] = "production" if settings.axiom_token else "local"
        log_record["service_name"] = SERVICE_NAME

        for field, value in list(log_record.items()):
            if is_secret_field(field) and value is not None:
                log_record[field] = REDACTED
            else:
                log_record[field] = redact(value)

class AxiomHandler(logging.Handler):
    """Ships formatted records to an Axiom dataset from a background thread."""

    batch_size = 50
    flush_interval = 3.0

    def __init__(self):
        super().__init__()
        self.queue = queue.Queue(maxsize=10000)
        self.url = f"{settings.axiom_url.rstrip('/')}/v1/datasets/{settings.axiom_dataset}/ingest"
        self.session = requests.Session()
        self.session.headers["Authorization"] = f"Bearer {settings.axiom_token}"
        if settings.axiom_org_id:
            self.session.headers["X-Axiom-Org-Id"] = settings.axiom_org_id
        threading.Thread(target=self._run, name="axiom-shipper", daemon=True).start()

    def _next_batch(self) -> list:
        try:
            batch = [self.queue.get(timeout=self.flush_interval)]
        except queue.Empty:
            return []
        while len(batch) < self.batch_size:
            try:
                batch.append(self.queue.get_nowait())
            except queue.Empty:
                break
        return batch

    def _run(self):
        while True:
            batch = self._next_batch()
            if batch:
                self._ship(batch)

    def _ship(self, batch: list):
        try:
            response = self.session.post(self.url, json=batch, timeout=5.0)
            response.raise_for_status()
        except requests.RequestException as e:
            sys.stderr.write(f"Axiom shipping failed for {len(batch)} records: {e}\n")

    def emit(self, record):
        try:
            self.queue.put_nowait(json.loads(self.format(record)))
        except (queue.Full, ValueError):
            self.handleError(record)

def setup_logging(level: str | None = None):
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    formatter = RedactingJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if settings.axiom_token and settings.axiom_dataset:
        axiom_handler = AxiomHandler()
        axiom_handler.setFormatter(formatter)
        root.addHandler(axiom_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

def log_event(event: str, level: str = "info", **fields):
    """Log a named event with its non-empty fields as structured attributes."""
    extra = {k: v for k, v in fields.items() if v is not None}
    extra["event"] = event
    logging.getLogger(SERVICE_NAME).log(LEVELS.get(level.lower(), logging.INFO), event, extra=extra)
