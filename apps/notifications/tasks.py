"""Celery tasks for customer and driver notifications."""

import logging
from celery import shared_task
from django.db import transaction

logger = logging.getLogger("manime.notifications")


def enqueue_after_commit(task, *args):
    """
    Queue `task` once the surrounding transaction commits.
    A broker failure is logged; it never reaches the caller.
    """
    def _send():
        try:
            task.delay(*args)
        except Exception as exc:
            logger.warning("Could not enqueue %s%s: %s", task.name, args, exc)

    transaction.on_commit(_send)


def _load_shipment(shipment_id):
    from apps.shipments.models import Shipment
    try:
        return Shipment.objects.select_related(
            "customer", "pickup_driver", "delivery_driver"
        ).get(id=shipment_id)
    except Shipment.DoesNotExist:
        logger.error("Shipment %s not found for notification", shipment_id)
        return None


@shared_task(name="notifications.send_shipment_status_notification")
def send_shipment_status_notification(shipment_id: str, status: str):
    from apps.notifications.service import NotificationService

    shipment = _load_shipment(shipment_id)
    if shipment:
        NotificationService().notify_status_change(shipment, status)


@shared_task(name="notifications.send_warehouse_notification")
def send_warehouse_notification(shipment_id: str, warehouse_status: str):
    from apps.notifications.service import NotificationService

    shipment = _load_shipment(shipment_id)
    if shipment:
        NotificationService().notify_warehouse_update(shipment, warehouse_status)


@shared_task(name="notifications.send_assignment_notification")
def send_assignment_notification(shipment_id: str, slot: str):
    from apps.notifications.service import NotificationService

    shipment = _load_shipment(shipment_id)
    if shipment is None:
        return
    driver = shipment.pickup_driver if slot == "pickup" else shipment.delivery_driver
    if driver is None:
        logger.info("Slot %s on %s emptied before notification ran", slot, shipment.tracking_number)
        return
    NotificationService().notify_driver_assigned(shipment, driver, slot)
