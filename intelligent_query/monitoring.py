# ============================================================================

import logging
import statistics
import time
from collections import deque
from typing import Any, Dict

logger = logging.getLogger(__name__)

UPTIME_UNITS = (("d", 86400), ("h", 3600), ("m", 60), ("s", 1))


class PerformanceMonitor:
    """In-process batch metrics collection"""

    def __init__(self, history_size: int = 1000):
        self.request_history = deque(maxlen=history_size)
        self.metrics = {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "total_processing_time_ms": 0.0,
            "total_questions_processed": 0,
            "failed_questions": 0,
            "average_confidence": 0.0
        }
        self.start_time = time.time()

        logger.info("✅ Performance monitor initialized")

    def record_request(
        self,
        request_id: str,
        processing_time_ms: float,
        question_count: int,
        avg_confidence: float,
        failed_questions: int = 0,
        success: bool = True
    ):
        """Record metrics for one batch"""
        self.request_history.append({
            "request_id": request_id,
            "timestamp": time.time(),
            "processing_time_ms": processing_time_ms,
            "question_count": question_count,
            "failed_questions": failed_questions,
            "avg_confidence": avg_confidence,
            "success": success
        })

        self.metrics["total_requests"] += 1
        self.metrics["total_processing_time_ms"] += processing_time_ms
        self.metrics["total_questions_processed"] += question_count
        self.metrics["failed_questions"] += failed_questions

        if not success:
            self.metrics["failed_requests"] += 1
            return

        self.metrics["successful_requests"] += 1
        # Rolling average over successful batches
        count = self.metrics["successful_requests"]
        previous = self.metrics["average_confidence"]
        self.metrics["average_confidence"] = previous + (avg_confidence - previous) / count

    def get_metrics(self) -> Dict[str, Any]:
        """Get uptime, aggregate counters and recent averages"""
        uptime = time.time() - self.start_time

        recent_requests = list(self.request_history)[-100:]
        recent_successful = [r for r in recent_requests if r["success"]]

        recent_metrics = {
            "avg_processing_time_ms": 0.0,
            "avg_confidence": 0.0,
            "success_rate": 0.0
        }
        if recent_successful:
            recent_metrics["avg_processing_time_ms"] = statistics.mean(
                r["processing_time_ms"] for r in recent_successful
            )
            recent_metrics["avg_confidence"] = statistics.mean(
                r["avg_confidence"] for r in recent_successful
            )
        if recent_requests:
            recent_metrics["success_rate"] = len(recent_successful) / len(recent_requests)

        return {
            "system_info": {
                "uptime_seconds": uptime,
                "uptime_formatted": self._format_uptime(uptime),
                "status": "degraded" if recent_requests and recent_metrics["success_rate"] <= 0.8 else "healthy"
            },
            "aggregate_metrics": dict(self.metrics),
            "recent_performance": recent_metrics,
            "request_history_size": len(self.request_history)
        }

    @staticmethod
    def _format_uptime(seconds: float) -> str:
        remaining = int(seconds)
        parts = []
        for unit, size in UPTIME_UNITS:
            count, remaining = divmod(remaining, size)
            if count:
                parts.append(f"{count}{unit}")
        return " ".join(parts) or "0s"

# ============================================================================
