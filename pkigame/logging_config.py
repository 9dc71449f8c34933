"""
Logging configuration for pkigame.

Provides structured JSON logging so verification runs leave an audit
trail of which properties were checked, by which engine, with what verdict.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

# Context variable for verification run tracking
run_id_var: ContextVar[str] = ContextVar('run_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per line, suitable for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        run_id = run_id_var.get()
        if run_id:
            log_data["run_id"] = run_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class VerificationAuditLogger:
    """
    Specialized logger for verification events.

    Records run boundaries, per-property verdicts, counterexamples and
    inconclusive engine answers.
    """

    def __init__(self, name: str = "pkigame.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        """Internal logging method with extra fields."""
        extra = {
            "event_type": event_type,
            "run_id": run_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def verification_started(self, engine: str, properties: list) -> None:
        self._log(
            logging.INFO,
            "VERIFICATION_STARTED",
            engine=engine,
            properties=properties,
            message=f"Checking {len(properties)} properties with {engine}"
        )

    def property_checked(
        self,
        property_name: str,
        verdict: str,
        engine: str,
        samples: Optional[int] = None
    ) -> None:
        """Log a per-property verdict."""
        self._log(
            logging.INFO,
            "PROPERTY_CHECKED",
            property=property_name,
            verdict=verdict,
            engine=engine,
            samples=samples,
            message=f"{property_name}: {verdict}"
        )

    def counterexample_found(
        self,
        property_name: str,
        counterexample: Dict[str, Any]
    ) -> None:
        self._log(
            logging.WARNING,
            "COUNTEREXAMPLE_FOUND",
            property=property_name,
            counterexample=counterexample,
            message=f"Property {property_name} falsified"
        )

    def engine_inconclusive(
        self,
        property_name: str,
        engine: str,
        reason: Optional[str]
    ) -> None:
        self._log(
            logging.WARNING,
            "ENGINE_INCONCLUSIVE",
            property=property_name,
            engine=engine,
            reason=reason,
            message=f"{engine} could not decide {property_name}: {reason}"
        )

    def verification_complete(self, passed: bool, report_hash: str) -> None:
        level = logging.INFO if passed else logging.ERROR
        self._log(
            level,
            "VERIFICATION_COMPLETE",
            passed=passed,
            report_hash=report_hash,
            message="All properties hold" if passed else "Verification failed"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting
        log_file: Optional file path for log output
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # Console output goes to stderr so stdout stays parseable JSON
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_run_id(run_id: Optional[str] = None) -> str:
    """
    Set the verification run ID for the current context.

    Args:
        run_id: Run ID to set, or None to generate one

    Returns:
        The run ID that was set
    """
    if run_id is None:
        run_id = str(uuid.uuid4())
    run_id_var.set(run_id)
    return run_id


def get_run_id() -> str:
    """Get the current run ID."""
    return run_id_var.get()


# Global audit logger instance
audit_log = VerificationAuditLogger()
