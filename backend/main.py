"""
Minimal backend HTTP server for the fleet anomaly engine.

Exposes the engine's detection, query and lifecycle operations as JSON
endpoints for the dashboard and alerting layers.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from dotenv import load_dotenv

from src.anomaly import (
    AnomalyCategory,
    AnomalyEngine,
    AnomalySeverity,
    DetectedAnomaly,
    confidence_distribution,
    overall_severity,
    vehicle_severity_breakdown,
)
from src.core.logging_config import setup_logging
from src.data import FleetIngestionError, load_fleet, parse_fleet

load_dotenv()

logger = logging.getLogger("backend")


def _parse_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _anomaly_to_json(anomaly: DetectedAnomaly) -> Dict[str, object]:
    return anomaly.model_dump(mode="json")


def _anomalies_payload(anomalies: List[DetectedAnomaly]) -> Dict[str, object]:
    return {
        "anomalies": [_anomaly_to_json(a) for a in anomalies],
        "total_count": len(anomalies),
    }


class FleetServer(ThreadingHTTPServer):
    """HTTP server bound to one engine instance."""

    def __init__(self, address: Tuple[str, int], engine: AnomalyEngine) -> None:
        super().__init__(address, BackendHandler)
        self.engine = engine


class BackendHandler(BaseHTTPRequestHandler):
    server_version = "FleetAnomalyBackend/1.0"

    @property
    def engine(self) -> AnomalyEngine:
        return self.server.engine

    def log_message(self, format: str, *args: object) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def _send_json(self, status: int, payload: Dict[str, object]) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json(self) -> Optional[object]:
        length = int(self.headers.get("Content-Length", "0"))
        if length <= 0:
            return None
        data = self.rfile.read(length)
        try:
            return json.loads(data.decode("utf-8"))
        except json.JSONDecodeError:
            return None

    def do_OPTIONS(self) -> None:
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.end_headers()

    def do_GET(self) -> None:
        url = urlparse(self.path)
        path = url.path.rstrip("/") or "/"
        params = {k: v[-1] for k, v in parse_qs(url.query).items()}

        if path == "/health":
            self._send_json(200, {"status": "ok"})
            return

        if path == "/anomalies":
            self._handle_list(params)
            return

        if path == "/anomalies/statistics":
            self._handle_statistics()
            return

        if path == "/anomaly-types":
            types = [t.model_dump(mode="json") for t in self.engine.get_anomaly_types()]
            self._send_json(200, {"types": types, "total_count": len(types)})
            return

        parts = path.strip("/").split("/")
        if len(parts) == 3 and parts[0] == "vehicles" and parts[2] == "anomalies":
            self._handle_vehicle(parts[1])
            return

        self._send_json(404, {"detail": "Not found"})

    def do_POST(self) -> None:
        path = urlparse(self.path).path.rstrip("/")

        if not self.headers.get("Content-Length", "0").strip().isdigit():
            self._send_json(400, {"detail": "Invalid Content-Length header"})
            return

        if path == "/anomalies/detect":
            self._handle_detect()
            return

        if path == "/anomalies/clear":
            self._handle_clear()
            return

        parts = path.strip("/").split("/")
        if len(parts) == 3 and parts[0] == "anomalies" and parts[2] in {"acknowledge", "resolve"}:
            self._handle_lifecycle(parts[1], parts[2])
            return

        self._send_json(404, {"detail": "Not found"})

    def _handle_list(self, params: Dict[str, str]) -> None:
        try:
            severity = AnomalySeverity(params["severity"]) if params.get("severity") else None
            category = AnomalyCategory(params["category"]) if params.get("category") else None
        except ValueError as e:
            self._send_json(400, {"detail": str(e)})
            return

        query = params.get("q")
        if severity is None and category is None and not query:
            limit = _parse_int(params.get("limit"), self.engine.config.lifecycle.recent_limit)
            anomalies = self.engine.get_recent_anomalies(limit)
        else:
            anomalies = self.engine.filter_anomalies(severity=severity, category=category, query=query)
        self._send_json(200, _anomalies_payload(anomalies))

    def _handle_statistics(self) -> None:
        stats = self.engine.get_statistics()
        anomalies = self.engine.store.all()
        payload = stats.model_dump(mode="json")
        payload["confidence_distribution"] = [
            b.model_dump(mode="json") for b in confidence_distribution(anomalies)
        ]
        payload["vehicle_breakdown"] = [
            {**row.model_dump(mode="json"), "total": row.total}
            for row in vehicle_severity_breakdown(anomalies)
        ]
        self._send_json(200, payload)

    def _handle_vehicle(self, vehicle_id: str) -> None:
        anomalies = self.engine.get_vehicle_anomalies(vehicle_id)
        open_severities = [a.anomaly_type.severity for a in anomalies if a.is_open]
        highest = overall_severity(open_severities)
        payload = _anomalies_payload(anomalies)
        payload["vehicle_id"] = vehicle_id
        payload["highest_open_severity"] = highest.value if highest else None
        self._send_json(200, payload)

    def _handle_detect(self) -> None:
        payload = self._read_json()
        if payload is None:
            self._send_json(400, {"detail": "Expected JSON body with 'vehicles'"})
            return

        try:
            vehicles = parse_fleet(payload)
        except FleetIngestionError as e:
            self._send_json(400, {"detail": str(e)})
            return

        start = datetime.now(timezone.utc)
        anomalies = self.engine.detect_fleet_anomalies(vehicles)
        detection_time_ms = int((datetime.now(timezone.utc) - start).total_seconds() * 1000)

        response = _anomalies_payload(anomalies)
        response["vehicles_scanned"] = len(vehicles)
        response["detection_time_ms"] = detection_time_ms
        self._send_json(200, response)

    def _handle_lifecycle(self, anomaly_id: str, action: str) -> None:
        if action == "acknowledge":
            found = self.engine.acknowledge_anomaly(anomaly_id)
        else:
            body = self._read_json()
            auto = bool(body.get("auto", False)) if isinstance(body, dict) else False
            found = self.engine.resolve_anomaly(anomaly_id, auto=auto)

        anomaly = self.engine.store.get(anomaly_id)
        self._send_json(
            200,
            {
                "id": anomaly_id,
                "found": found,
                "anomaly": _anomaly_to_json(anomaly) if anomaly else None,
            },
        )

    def _handle_clear(self) -> None:
        body = self._read_json()
        days = self.engine.config.lifecycle.retention_days
        if isinstance(body, dict) and "days" in body:
            try:
                days = int(body["days"])
            except (TypeError, ValueError):
                self._send_json(400, {"detail": "'days' must be an integer"})
                return
        removed = self.engine.clear_old_anomalies(days)
        self._send_json(200, {"removed": removed, "remaining": len(self.engine.store)})


def run(host: str, port: int, fleet_file: Optional[str] = None) -> None:
    engine = AnomalyEngine()
    if fleet_file:
        try:
            vehicles = load_fleet(fleet_file)
        except FleetIngestionError as e:
            logger.error("Initial fleet scan skipped: %s", e)
        else:
            engine.detect_fleet_anomalies(vehicles)

    logger.info("Starting backend server on %s:%s", host, port)
    server = FleetServer((host, port), engine)
    server.serve_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Fleet anomaly engine backend server")
    parser.add_argument("--host", default=os.getenv("FLEET_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=_parse_int(os.getenv("FLEET_PORT"), 8000))
    parser.add_argument("--fleet-file", default=os.getenv("FLEET_FILE"), help="JSON export to scan at startup")
    args = parser.parse_args()

    setup_logging("src")
    setup_logging("backend")
    run(args.host, args.port, args.fleet_file)


if __name__ == "__main__":
    main()
