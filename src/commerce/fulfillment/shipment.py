"""Commands that write courier state onto an Order."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce
from commerce.ordering.order import Order


@commerce.command(part_of="Order")
class RecordExternalShipment:
    order_id = Identifier(required=True)
    external_order_id = String(required=True, max_length=100)
    external_shipment_id = String(max_length=100)


@commerce.command(part_of="Order")
class AdoptTrackingNumber:
    order_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=100)
    carrier = String(max_length=100)


@commerce.command_handler(part_of=Order)
class ShipmentHandler:
    @handle(RecordExternalShipment)
    def record_external_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.link_external_shipment(command.external_order_id, command.external_shipment_id)
        repo.add(order)

    @handle(AdoptTrackingNumber)
    def adopt_tracking(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        adopted = order.adopt_tracking(command.tracking_number, command.carrier)
        if adopted:
            repo.add(order)
        return adopted
