"""
Notification service.
Sends Expo push notifications to the customer and driver mobile apps.
"""

import logging
import re
import requests
from django.conf import settings

from apps.shipments import states

logger = logging.getLogger("manime.notifications")

EXPO_TOKEN_PATTERN = re.compile(r"^Expo(nent)?PushToken\[.+\]$")


class NotificationService:
    """Send push notifications. Fails silently and never blocks the main flow."""

    def send_push(self, token: str, title: str, body: str, data: dict = None) -> bool:
        """Send one push message via the Expo push API. Returns True on success."""
        if not settings.PUSH_NOTIFICATIONS_ENABLED:
            logger.info("Push disabled, skipping '%s'", title)
            return False
        if not token or not EXPO_TOKEN_PATTERN.match(token):
            logger.warning("Invalid or missing push token, skipping '%s'", title)
            return False
        try:
            resp = requests.post(
                settings.EXPO_PUSH_URL,
                json={"to": token, "title": title, "body": body,
                      "data": data or {}, "sound": "default"},
                timeout=3,
            )
            if resp.status_code == 200:
                logger.info("Push '%s' sent", title)
                return True
            logger.warning("Push gateway returned %s for '%s'", resp.status_code, title)
        except requests.RequestException as exc:
            logger.warning("Push failed for '%s': %s", title, exc)
        return False

    def notify_status_change(self, shipment, status: str) -> bool:
        title, body = states.status_notification(status)
        return self.send_push(
            shipment.customer.push_token, title, body,
            {"tracking_number": shipment.tracking_number, "status": status},
        )

    def notify_warehouse_update(self, shipment, warehouse_status: str) -> bool:
        message = states.warehouse_notification(warehouse_status)
        if message is None:
            return False
        title, body = message
        return self.send_push(
            shipment.customer.push_token, title, body,
            {"tracking_number": shipment.tracking_number, "warehouse_status": warehouse_status},
        )

    def notify_driver_assigned(self, shipment, driver, slot: str) -> bool:
        if slot == "pickup":
            title = "New Pickup Assigned"
            body  = f"Pickup {shipment.tracking_number} from {shipment.sender_city} ({shipment.sender_postcode})"
        else:
            title = "New Delivery Assigned"
            body  = f"Deliver {shipment.tracking_number} to {shipment.receiver_name}, {shipment.receiver_city}"
        return self.send_push(
            driver.push_token, title, body,
            {"tracking_number": shipment.tracking_number, "type": f"{slot}_assignment"},
        )
