"""
Structured logging system for bidmatch.

Provides centralized logging with console and optional file output, and
metrics tracking for dictionary imports/exports and match calculations.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for dictionary versioning and matching activity.
    """

    def __init__(
        self,
        name: str = "bidmatch",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)

        self.metrics = {
            "imports_attempted": 0,
            "imports_successful": 0,
            "imports_failed": 0,
            "merge_conflicts": 0,
            "exports": 0,
            "match_calculations": 0,
            "errors_by_type": {},
            "mode_success_rate": {},
        }

        self.configure(level, log_dir, enable_file, enable_console)

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """(Re)build handlers. Metrics are kept."""
        self.logger.setLevel(getattr(logging, level.upper()))
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()  # Remove existing handlers

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"bidmatch_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_import_attempt(self, mode: str):
        """Record a dictionary import attempt in the given mode."""
        self.metrics["imports_attempted"] += 1
        if mode not in self.metrics["mode_success_rate"]:
            self.metrics["mode_success_rate"][mode] = {
                "attempts": 0,
                "successes": 0
            }
        self.metrics["mode_success_rate"][mode]["attempts"] += 1

    def record_import_success(self, mode: str, conflicts: int = 0):
        """Record a successful import and the conflicts it resolved."""
        self.metrics["imports_successful"] += 1
        self.metrics["merge_conflicts"] += conflicts
        if mode in self.metrics["mode_success_rate"]:
            self.metrics["mode_success_rate"][mode]["successes"] += 1

    def record_import_failure(self, mode: str, error_type: str):
        """Record a failed import."""
        self.metrics["imports_failed"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def record_export(self):
        self.metrics["exports"] += 1

    def record_match_calculation(self, count: int = 1):
        self.metrics["match_calculations"] += count

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        for mode, stats in metrics_copy["mode_success_rate"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total_attempts = metrics["imports_attempted"]
        total_successes = metrics["imports_successful"]
        overall_rate = 0
        if total_attempts > 0:
            overall_rate = round(total_successes / total_attempts * 100, 1)

        self.info("=== Session Metrics ===")
        self.info(f"Imports: {total_successes}/{total_attempts} ({overall_rate}% success)")
        self.info(f"Merge conflicts: {metrics['merge_conflicts']}")
        self.info(f"Exports: {metrics['exports']}")
        self.info(f"Match calculations: {metrics['match_calculations']}")

        if metrics["mode_success_rate"]:
            self.info("Import Mode Success Rates:")
            for mode, stats in metrics["mode_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {mode}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "bidmatch",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    File output is off unless a log_dir is given explicitly.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        kwargs.setdefault("enable_file", kwargs.get("log_dir") is not None)
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
