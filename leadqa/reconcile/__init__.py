# leadqa/reconcile/__init__.py
# =============================
# Reconciliation policy: merge identity + transcript data, compare fields,
# and decide whether a lead needs manual review.  No external calls.

from leadqa.reconcile.engine import reconcile  # noqa: F401
from leadqa.reconcile.matching import compare_fields  # noqa: F401

__all__ = ["compare_fields", "reconcile"]
