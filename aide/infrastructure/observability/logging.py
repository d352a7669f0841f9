import structlog
import logging
import sys
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import os


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "aide-agent"
) -> None:
    """Setup structured logging configuration"""

    # Configure Python logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO)
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=os.getenv("ENVIRONMENT", "development"),
        version=os.getenv("SERVICE_VERSION", "unknown")
    )


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add run context to all log entries"""

    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()

    context = structlog.contextvars.get_contextvars()
    for key in ("run_id", "project_id", "subject_id"):
        if key in context and key not in event_dict:
            event_dict[key] = context[key]

    return event_dict


class AgentLogger:
    """Specialized logger for pipeline and memory operations"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_agent_event(
        self,
        event_type: str,
        agent_name: str,
        project_id: int,
        data: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Log agent-specific events"""

        self.logger.info(
            "agent_event",
            event_type=event_type,
            agent_name=agent_name,
            project_id=project_id,
            data=data or {},
            **kwargs
        )

    def log_workflow_transition(
        self,
        project_id: int,
        from_stage: str,
        to_stage: str,
        condition: Optional[str] = None,
    ):
        """Log pipeline state transitions"""

        self.logger.info(
            "workflow_transition",
            project_id=project_id,
            from_stage=from_stage,
            to_stage=to_stage,
            condition=condition,
        )

    def log_memory_event(
        self,
        action: str,
        subject_id: int,
        details: Optional[Dict[str, Any]] = None
    ):
        """Log memory store operations"""

        self.logger.info(
            "memory_event",
            action=action,
            subject_id=subject_id,
            details=details or {}
        )


# Global logger instance
agent_logger = AgentLogger("aide")


def _metric_key(name: str, tags: Optional[Dict[str, str]] = None) -> str:
    if not tags:
        return name
    labels = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
    return f"{name}{{{labels}}}"


class MetricsCollector:
    """In-process counters and latency stats, keyed by name and tags"""

    def __init__(self):
        self.latencies: Dict[str, Dict[str, float]] = {}
        self.counters: Dict[str, int] = {}

    def record_latency(self, operation: str, duration_ms: float, tags: Optional[Dict[str, str]] = None):
        """Record operation latency"""

        key = _metric_key(f"latency.{operation}", tags)
        stats = self.latencies.setdefault(
            key, {"count": 0, "sum": 0.0, "min": duration_ms, "max": duration_ms}
        )
        stats["count"] += 1
        stats["sum"] += duration_ms
        stats["min"] = min(stats["min"], duration_ms)
        stats["max"] = max(stats["max"], duration_ms)

        agent_logger.logger.debug(
            "metric",
            metric_type="latency",
            operation=operation,
            duration_ms=duration_ms,
            tags=tags or {}
        )

    def increment_counter(self, name: str, value: int = 1, tags: Optional[Dict[str, str]] = None):
        """Increment a counter metric"""

        key = _metric_key(name, tags)
        self.counters[key] = self.counters.get(key, 0) + value

        agent_logger.logger.debug(
            "metric",
            metric_type="counter",
            name=name,
            value=value,
            tags=tags or {}
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Counters as-is, latencies as count/avg/min/max"""

        summary: Dict[str, Any] = dict(self.counters)
        for key, stats in self.latencies.items():
            summary[key] = {
                "count": stats["count"],
                "avg": stats["sum"] / stats["count"],
                "min": stats["min"],
                "max": stats["max"],
            }
        return summary

    def reset(self):
        self.latencies.clear()
        self.counters.clear()


# Global metrics collector
metrics = MetricsCollector()
