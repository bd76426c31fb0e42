"""Domain events for the Product aggregate."""

from protean.fields import Identifier, Integer

from ordering.domain import ordering


@ordering.event(part_of="Product")
class StockCommitted:
    """Stock was taken out and counted as sold for a paid order."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock = Integer(required=True)
    sales = Integer(required=True)


@ordering.event(part_of="Product")
class StockRestored:
    """Stock from a cancelled order was put back on the shelf."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock = Integer(required=True)
