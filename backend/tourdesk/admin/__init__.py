from tourdesk.admin.tours import (
    CreateTourArgs,
    UpdateTourArgs,
    create_tour,
    list_tours,
    serialize_tour,
    update_tour,
)

__all__ = [
    "CreateTourArgs",
    "UpdateTourArgs",
    "create_tour",
    "list_tours",
    "serialize_tour",
    "update_tour",
]
