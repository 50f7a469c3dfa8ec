"""
Latency API - CherryPy endpoints over the latency analytics engine
==================================================================

Provides REST endpoints for:
    - Latency/loss snapshot for a filter + zoom state
    - Granularity choice for a queried span
    - Current analytics configuration

The endpoints are stateless: the dashboard posts the collector payload it
already holds together with its active tags and zoom, and receives the
snapshot to render.

Error Response Format
--------------------
    {
        "success": False,
        "error": {
            "code": "INVALID_PARAMETER",
            "message": "...",
            "httpStatus": 400,
            "details": {...}
        }
    }

Success Response Format
-----------------------
    {
        "success": True,
        "data": {...}
    }
"""

import logging
from typing import Any, Dict

import cherrypy

from heliox.analytics.bucketing import choose_granularity, MINUTE
from heliox.analytics.config import Config
from heliox.analytics.errors import (
    AnalyticsError,
    ErrorCode,
    api_error_from_exception,
    api_success,
    invalid_param,
)
from heliox.analytics.facade import analyze_latency
from heliox.analytics.payload import LatencyPayload, parse_latency_payload
from heliox.analytics.validation import (
    ValidationError,
    validate_granularity,
    validate_positive_int,
    validate_tags,
    validate_threshold,
    validate_zoom,
)

logger = logging.getLogger("LatencyAPI")


def _enforce_limits(payload: LatencyPayload):
    """Reject payloads beyond Config.API limits."""
    max_targets = Config.API.MAX_TARGETS
    if len(payload.targets) > max_targets:
        raise AnalyticsError(
            ErrorCode.PAYLOAD_TOO_LARGE,
            f"Too many targets: {len(payload.targets)} (max {max_targets})",
            details={"parameter": "targets", "limit": max_targets},
        )

    max_points = Config.API.MAX_POINTS_PER_TARGET
    for target in payload.targets:
        if len(target.points) > max_points:
            raise AnalyticsError(
                ErrorCode.PAYLOAD_TOO_LARGE,
                f"Target '{target.tag}' has {len(target.points)} points (max {max_points})",
                details={"parameter": "points", "tag": target.tag, "limit": max_points},
            )


class LatencyAnalyticsAPI:
    """
    CherryPy-mounted API for latency analytics.

    Mount at /api/latency for URLs like:
        POST /api/latency/analyze
        GET  /api/latency/granularity?minutes=10080
        GET  /api/latency/config
    """

    def _cors_headers(self):
        cherrypy.response.headers['Access-Control-Allow-Origin'] = '*'
        cherrypy.response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
        cherrypy.response.headers['Access-Control-Allow-Headers'] = 'Content-Type'

    @cherrypy.expose
    @cherrypy.tools.json_out()
    @cherrypy.tools.json_in()
    def analyze(self):
        """
        POST /api/latency/analyze

        Compute the latency snapshot for one dashboard state.

        Body:
            granularity: Bucket width in minutes (collector field)
            targets: Collector target list
            active_tags: Tags to include (default: all targets)
            zoom: {"start": pct, "end": pct} (default: full range)
            threshold: Loss percentage for anomalies (default from config)

        Returns:
            LatencySnapshot dict with per_target, merged, anomaly_minutes,
            loss_intervals and loss_series
        """
        self._cors_headers()
        if cherrypy.request.method == "OPTIONS":
            return ""
        if cherrypy.request.method != "POST":
            cherrypy.response.status = 405
            cherrypy.response.headers['Allow'] = 'POST'
            raise cherrypy.HTTPError(405, "Method not allowed. This endpoint requires POST.")

        try:
            body = getattr(cherrypy.request, "json", None)
            if body is None:
                body = {}
            if not isinstance(body, dict):
                return invalid_param("body", "must be a JSON object")

            payload = parse_latency_payload(body)
            _enforce_limits(payload)

            active_tags = validate_tags(body.get("active_tags"), payload.tags)
            zoom = validate_zoom(body.get("zoom"))
            threshold = validate_threshold(body.get("threshold"))
            granularity = validate_granularity(body.get("granularity"))

            snapshot = analyze_latency(
                payload.targets,
                active_tags,
                zoom,
                threshold=threshold,
                granularity=granularity,
            )

            return api_success(
                snapshot.to_dict(),
                target_count=len(payload.targets),
                active_count=len(snapshot.per_target),
            )

        except ValidationError as e:
            return e.to_response()
        except Exception as e:
            logger.error(f"Error analyzing latency: {e}")
            return api_error_from_exception(e)

    @cherrypy.expose
    @cherrypy.tools.json_out()
    def granularity(self, minutes=None, target_points=None):
        """
        GET /api/latency/granularity

        Query params:
            minutes: Length of the queried span (default: 1440)
            target_points: Desired chart points (default from config)

        Returns:
            {"minutes": ..., "granularity": ..., "points": ...}
        """
        try:
            span_minutes = validate_positive_int(minutes, "minutes", default=1440)
            points = validate_positive_int(
                target_points,
                "target_points",
                default=Config.LATENCY.TARGET_POINTS,
            )

            granularity = choose_granularity(span_minutes * MINUTE, points)
            return api_success({
                "minutes": span_minutes,
                "granularity": granularity,
                "points": -(-span_minutes // granularity),
            })

        except ValidationError as e:
            return e.to_response()
        except Exception as e:
            logger.error(f"Error choosing granularity: {e}")
            return api_error_from_exception(e)

    @cherrypy.expose
    @cherrypy.tools.json_out()
    def config(self) -> Dict[str, Any]:
        """
        GET /api/latency/config

        Returns the active analytics configuration.
        """
        return api_success(Config.to_dict())

    @cherrypy.expose
    def default(self, *args, **kwargs):
        """Handle unmatched routes."""
        if cherrypy.request.method == "OPTIONS":
            return ""
        raise cherrypy.HTTPError(404, "Latency endpoint not found")
