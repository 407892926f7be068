"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from octobooks_royalties.domain.models import RoyaltySplit


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "octobooks-royalties"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_sale_recorded(
    sale_id: str,
    order_id: str,
    book_id: str,
    quantity: int,
    split: RoyaltySplit,
    wallet_credited: bool,
) -> None:
    """Log structured sale outcome for royalty auditing"""
    logging.getLogger("octobooks_royalties.sales").info(
        "Sale recorded",
        extra={
            "sale_id": sale_id,
            "order_id": order_id,
            "book_id": book_id,
            "step": "sale_recorded",
            "quantity": quantity,
            "sale_amount_cents": split.sale_amount_cents,
            "platform_fee_cents": split.platform_fee_cents,
            "author_royalty_cents": split.author_royalty_cents,
            "publisher_share_cents": split.publisher_share_cents,
            "wallet_credited": wallet_credited,
        },
    )
