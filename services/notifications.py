from __future__ import annotations

import logging
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


class NotificationService:
    """Hands appointment events to the outbound messaging collaborator.

    Delivery (e-mail/SMS) lives outside this service; here the event is
    shaped and logged. Failures never propagate to the booking flow.
    """

    def _payload(self, appointment: Dict[str, Any]) -> Dict[str, Any]:
        user = appointment.get("user") or {}
        services = appointment.get("services") or [{}]
        return {
            "appointment_id": str(appointment.get("_id", ""))[-6:].upper(),
            "customer_email": user.get("email") or None,
            "customer_phone": user.get("phone") or None,
            "customer_name": user.get("name") or "Guest",
            "service_name": services[0].get("name") or "Service",
            "date": appointment.get("date"),
            "time": appointment.get("startTime"),
            "total_amount": services[0].get("price") or 0,
        }

    def _emit(self, event: str, appointment: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
        try:
            payload = self._payload(appointment)
            if not payload["customer_email"] and not payload["customer_phone"]:
                logger.info("notifications.skipped_no_contact", extra={"event": event})
                return
            logger.info(event, extra={**payload, **(extra or {})})
        except Exception:
            # Best-effort; never fail the primary operation
            logger.exception("notifications.failed", extra={"event": event})

    def appointment_created(self, appointment: Dict[str, Any]) -> None:
        self._emit("notifications.appointment_created", appointment)

    def status_changed(self, appointment: Dict[str, Any], status: str) -> None:
        self._emit("notifications.status_changed", appointment, {"status": status})

    def appointment_rescheduled(self, appointment: Dict[str, Any]) -> None:
        self._emit("notifications.appointment_rescheduled", appointment)
