"""
Refresh token anomaly tracking.

Compares where a refresh token is being used with where it was issued. A
mismatch is logged as a structured warning; the caller decides what to do
with the result. Observation must never break the request it observes.
"""
from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class AnomalyTracker:

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.logger = log or logger

    def observe(self, record, device: Optional[str], ip: Optional[str]) -> bool:
        """
        Check a refresh record against the current device and address.

        Returns:
            bool: True when the device or network address changed
        """
        try:
            current_device = device or "unknown"
            device_changed = (record.device or "unknown") != current_device
            # a record issued without a known address cannot mismatch on it
            ip_changed = bool(record.ip) and bool(ip) and record.ip != ip
            if not (device_changed or ip_changed):
                return False

            self.logger.warning(
                "Refresh token used from a different device or network",
                extra={
                    "user_id": record.user_id,
                    "old_device": record.device,
                    "new_device": current_device,
                    "old_ip": record.ip,
                    "new_ip": ip,
                    "device_changed": device_changed,
                    "ip_changed": ip_changed,
                },
            )
            return True
        except Exception:
            self.logger.exception("Refresh token anomaly check failed")
            return False
