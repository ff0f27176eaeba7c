"""
Logging configuration with optional structured JSON output
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

from transit_booking.config import settings

# Extra attributes the services attach to their log records
CONTEXT_FIELDS = ("customer_email", "admin_email", "transport_id", "ticket_id", "location_id", "error_code")


class BookingJsonFormatter(JsonFormatter):
    """JSON formatter that stamps service metadata onto every record"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['service'] = 'transit-booking'
        log_record['environment'] = settings.ENVIRONMENT

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> logging.Logger:
    """Configure the root logger for the booking system"""
    level = level or settings.LOG_LEVEL
    json_logs = settings.LOG_JSON if json_logs is None else json_logs

    if json_logs:
        formatter = BookingJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
    else:
        formatter = logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s')

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    # Replace handlers so repeated calls do not duplicate output
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.addHandler(console_handler)

    # Reduce noise from libraries
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)
    logging.getLogger('passlib').setLevel(logging.WARNING)

    return root_logger
