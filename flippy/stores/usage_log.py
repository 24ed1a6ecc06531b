"""
API usage log: one append-only row per handled request, aggregated on
demand for the admin dashboard.
"""

from typing import Any, Dict, List, Optional

from ..utils.logger import get_logger
from .database import Database, utcnow_iso

logger = get_logger(__name__)


class UsageLogger:
    def __init__(self, db: Database):
        self.db = db

    def record(
        self,
        user_id: Optional[int],
        method: str,
        endpoint: str,
        status_code: int,
        elapsed_ms: int,
        ip_address: Optional[str],
    ) -> None:
        """Append one entry. Never raises: a failed write is only logged."""
        try:
            with self.db.connect() as conn:
                conn.execute(
                    """
                    INSERT INTO api_usage_log
                        (user_id, method, endpoint, status_code, response_time_ms, ip_address, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (user_id, method, endpoint, status_code, elapsed_ms, ip_address, utcnow_iso()),
                )
        except Exception as e:
            logger.error(
                "Failed to log API usage",
                user_id=user_id,
                method=method,
                endpoint=endpoint,
                status_code=status_code,
                error=str(e),
            )

    def endpoint_stats(self) -> List[Dict[str, Any]]:
        with self.db.connect() as conn:
            rows = conn.execute(
                """
                SELECT
                    method,
                    endpoint,
                    COUNT(*) AS request_count,
                    AVG(response_time_ms) AS avg_response_time,
                    MAX(created_at) AS last_request
                FROM api_usage_log
                GROUP BY method, endpoint
                ORDER BY request_count DESC, method ASC, endpoint ASC
                """
            ).fetchall()
        return [
            {
                "method": r["method"],
                "endpoint": r["endpoint"],
                "requestCount": r["request_count"],
                "avgResponseTime": round(float(r["avg_response_time"] or 0), 2),
                "lastRequest": r["last_request"],
            }
            for r in rows
        ]

    def user_api_usage(self) -> List[Dict[str, Any]]:
        """Per-user request totals with each user's latest active API key."""
        with self.db.connect() as conn:
            rows = conn.execute(
                """
                SELECT
                    u.id AS user_id,
                    u.email,
                    u.role,
                    u.remaining_api_calls,
                    COALESCE(stats.total_requests, 0) AS total_requests,
                    (
                        SELECT ak.api_key
                        FROM api_keys ak
                        WHERE ak.user_id = u.id AND ak.is_active = 1
                        ORDER BY ak.created_at DESC, ak.id DESC
                        LIMIT 1
                    ) AS api_key
                FROM users u
                LEFT JOIN (
                    SELECT user_id, COUNT(*) AS total_requests
                    FROM api_usage_log
                    WHERE user_id IS NOT NULL
                    GROUP BY user_id
                ) stats ON u.id = stats.user_id
                ORDER BY total_requests DESC, u.id ASC
                """
            ).fetchall()
        return [
            {
                "userId": r["user_id"],
                "email": r["email"],
                "role": r["role"],
                "remainingApiCalls": r["remaining_api_calls"],
                "totalRequests": r["total_requests"],
                "apiKey": r["api_key"] or "N/A",
            }
            for r in rows
        ]
