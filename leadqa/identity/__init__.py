# leadqa/identity/__init__.py
# ============================
# Identity lookup (phone → contact record) via Melissa Personator.
#
# Public API:
#   lookup_identity(phone_number) → IdentityLookup

from leadqa.identity.melissa_client import (  # noqa: F401
    IdentityLookupError,
    lookup_identity,
)

__all__ = ["IdentityLookupError", "lookup_identity"]
