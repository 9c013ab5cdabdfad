"""
Structured logging for schedule store operations, change feed deliveries
and channel subscriptions.
"""

import logging
from typing import Any, Dict, List

# Values longer than this are truncated in log details
MAX_VALUE_LENGTH = 50


def _truncate(value: Any) -> Any:
    if isinstance(value, str) and len(value) > MAX_VALUE_LENGTH:
        return value[:MAX_VALUE_LENGTH] + "..."
    return value


class StructuredLogger:
    """Structured logger for schedule operations."""

    def __init__(self, name: str = "schedule_table"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status == "failed":
            self.logger.error(message)
        else:
            self.logger.info(message)

    def log_entry_operation(self, operation: str, entry_id: str = None, fields: Dict[str, Any] = None,
                            status: str = "success", error: str = None):
        """Log a schedule entry operation."""
        details: Dict[str, Any] = {}
        if entry_id is not None:
            details["entry_id"] = entry_id
        if fields:
            details["fields"] = {k: _truncate(v) for k, v in fields.items()}
        if error:
            details["error"] = _truncate(error)

        self.log_operation(f"entry.{operation}", status, details)

    def log_change_event(self, channel: str, event_type: str, entry_id: str, seq: int):
        """Log a change feed delivery."""
        self.log_operation("change_feed.delivered", "success", {
            "channel": channel,
            "event_type": event_type,
            "entry_id": entry_id,
            "seq": seq
        })

    def log_subscription(self, channel: str, action: str, filters: List[Dict[str, str]] = None):
        """Log a channel subscribe or remove."""
        details: Dict[str, Any] = {"channel": channel}
        if filters:
            details["filters"] = filters

        self.log_operation(f"change_feed.{action}", "success", details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
