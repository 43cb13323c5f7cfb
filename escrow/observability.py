"""Structured logging helpers for escrow operations."""

import logging
from typing import Any, Optional
from uuid import UUID

logger = logging.getLogger("escrow")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def log_escrow_event(
    *,
    message: str,
    deal_id: Optional[UUID] = None,
    escrow_id: Optional[UUID] = None,
    actor: Optional[UUID] = None,
    extra: Optional[dict[str, Any]] = None,
    level: int = logging.INFO,
) -> None:
    payload: dict[str, Any] = {"message": message}
    if deal_id:
        payload["deal_id"] = str(deal_id)
    if escrow_id:
        payload["escrow_id"] = str(escrow_id)
    if actor:
        payload["actor"] = str(actor)
    if extra:
        payload.update(extra)
    logger.log(level, payload)
