"""Customer profile: contact details read when booking shipments."""

from protean.fields import String

from ordering.domain import ordering


@ordering.aggregate
class Customer:
    name = String(required=True, max_length=100)
    email = String(max_length=254)
    phone = String(max_length=20)
