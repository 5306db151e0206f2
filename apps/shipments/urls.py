from django.urls import path
from . import views as v

urlpatterns = [
    path("shipments/create/",   v.ShipmentCreateView.as_view(), name="shipment-create"),
    path("shipments/statuses/", v.StatusTableView.as_view(),    name="shipment-statuses"),
    path("shipments/",          v.ShipmentListView.as_view(),   name="shipment-list"),
    path("shipments/<str:tracking_number>/",        v.ShipmentDetailView.as_view(),     name="shipment-detail"),
    path("shipments/<str:tracking_number>/status/", v.StatusTransitionView.as_view(),   name="shipment-status"),
    path("shipments/<str:tracking_number>/warehouse/", v.WarehouseUpdateView.as_view(), name="shipment-warehouse"),
    path("shipments/<str:tracking_number>/payment-authorized/", v.PaymentAuthorizedView.as_view(),
         name="shipment-payment-authorized"),
    path("shipments/<str:tracking_number>/assign-pickup-driver/", v.AssignPickupDriverView.as_view(),
         name="shipment-assign-pickup"),
    path("shipments/<str:tracking_number>/assign-delivery-driver/", v.AssignDeliveryDriverView.as_view(),
         name="shipment-assign-delivery"),
    path("shipments/<str:tracking_number>/unassign-driver/", v.UnassignDriverView.as_view(),
         name="shipment-unassign"),

    path("assignments/pending-pickups/",    v.PendingPickupsView.as_view(),    name="pending-pickups"),
    path("assignments/pending-deliveries/", v.PendingDeliveriesView.as_view(), name="pending-deliveries"),
    path("drivers/<uuid:pk>/assignments/",  v.DriverAssignmentsView.as_view(), name="driver-assignments"),
]
