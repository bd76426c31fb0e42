"""Payment verification: command and handler.

Verification is the only path into PAID. A matching signature confirms the
payment and, in the same unit of work, commits stock, counts the coupon and
books the shipment. A mismatch is terminal: the payment is failed and the
order cancelled, with nothing else touched.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.coupon import ledger as coupon_ledger
from ordering.domain import ordering
from ordering.integrations import current_integrations
from ordering.inventory import ledger as inventory_ledger
from ordering.order.order import Order, PaymentStatus
from ordering.order.shipment import ship
from ordering.utils.logging import get_logger
from payments.gateway.port import GatewaySignatureError

logger = get_logger(__name__)


@ordering.command(part_of="Order")
class VerifyPayment:
    order_id = Identifier(required=True)
    gateway_order_id = String(required=True, max_length=255)
    payment_id = String(required=True, max_length=255)
    signature = String(required=True, max_length=255)


@ordering.command_handler(part_of=Order)
class VerifyPaymentHandler:
    @handle(VerifyPayment)
    def verify_payment(self, command):
        """Return True when the order is paid, False when the signature was rejected."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if PaymentStatus(order.payment_status) == PaymentStatus.PAID:
            logger.info("payment_already_verified", order_id=str(order.id))
            return True

        order.assert_awaiting_payment(command.gateway_order_id)

        try:
            current_integrations().gateway.verify_signature(
                command.gateway_order_id,
                command.payment_id,
                command.signature,
            )
        except GatewaySignatureError as exc:
            logger.warning(
                "payment_signature_mismatch",
                order_id=str(order.id),
                gateway_order_id=command.gateway_order_id,
                payment_id=command.payment_id,
            )
            order.fail_payment(command.gateway_order_id, command.payment_id, reason=str(exc))
            repo.add(order)
            return False

        order.confirm_payment(command.gateway_order_id, command.payment_id, command.signature)
        inventory_ledger.commit(order)
        if order.coupon_id:
            coupon_ledger.commit_usage(order.coupon_id, order.id)

        ship(order)
        repo.add(order)

        logger.info(
            "payment_verified",
            order_id=str(order.id),
            payment_id=command.payment_id,
            shipping_pending=order.shipping_pending,
        )
        return True
