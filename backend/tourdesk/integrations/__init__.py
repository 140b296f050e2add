from tourdesk.integrations.bokun import (
    BokunAPIError,
    BokunClient,
    build_bokun_client,
    normalize_availability_slots,
    sign_request,
)

__all__ = [
    "BokunAPIError",
    "BokunClient",
    "build_bokun_client",
    "normalize_availability_slots",
    "sign_request",
]
