"""
Plain-text metrics responder in the Prometheus exposition format.
"""

import logging
from datetime import datetime
from typing import Optional

from flask import Flask, Response, jsonify

from pop2exchange.config import Settings
from pop2exchange.ingestion.database_operations import DatabaseOperations, MetricsSnapshot

logger = logging.getLogger(__name__)

METRICS_TEMPLATE = """\
# HELP pop2exchange_received_mail_total Total number of mails fetched by the connector.
# TYPE pop2exchange_received_mail_total counter
pop2exchange_received_mail_total {total}
# HELP pop2exchange_last_error Seconds since the last logged error.
# TYPE pop2exchange_last_error gauge
pop2exchange_last_error {last_error}
# HELP pop2exchange_last_check Seconds since the last connector check.
# TYPE pop2exchange_last_check gauge
pop2exchange_last_check {last_check}
"""


def seconds_since(timestamp: Optional[datetime], now: datetime) -> int:
    """Whole seconds elapsed since ``timestamp``, or -1 when there is none."""
    if timestamp is None:
        return -1
    return round((now - timestamp).total_seconds())


def connector_now(settings: Settings) -> datetime:
    """Current wall time in the connector's zone, naive like the stored timestamps."""
    return datetime.now(settings.timezone).replace(tzinfo=None)


def render_metrics(snapshot: MetricsSnapshot, now: datetime) -> str:
    return METRICS_TEMPLATE.format(
        total=snapshot.total_mail_count or 0,
        last_error=seconds_since(snapshot.last_error, now),
        last_check=seconds_since(snapshot.last_check, now),
    )


def create_app(storage, settings: Settings) -> Flask:
    app = Flask(__name__)
    db_ops = DatabaseOperations(storage)
    db_ops.ensure_schema()

    @app.route("/metrics")
    @app.route("/metrics/")
    @app.route("/metrics/<path:subpath>")
    def metrics(subpath=None):
        snapshot = db_ops.get_metrics_snapshot()
        body = render_metrics(snapshot, connector_now(settings))
        return Response(body, status=200, mimetype="text/plain")

    @app.route("/health")
    def health():
        healthy = storage.health_check()
        return jsonify(status="ok" if healthy else "unhealthy"), (200 if healthy else 503)

    return app
