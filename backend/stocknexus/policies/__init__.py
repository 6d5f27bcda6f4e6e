# Overview: Authorization predicate set.
# Re-exports all public APIs so callers import from stocknexus.policies.

from .caller import CallerContext, ANONYMOUS
from .definitions import (
    Operation,
    POLICY_DEFINITIONS,
    INVENTORY_POLICIES,
    SCRAP_POLICIES,
    ALERT_POLICIES,
    GRIEVANCE_POLICIES,
    REGISTRATION_POLICIES,
    SERVICE_POLICIES,
    STORAGE_POLICIES,
)
from .helpers import (
    get_protected_tables,
    get_policies_for_table,
    get_predicate,
    describe_policy,
    evaluate,
)

__all__ = [
    "CallerContext",
    "ANONYMOUS",
    "Operation",
    "POLICY_DEFINITIONS",
    "INVENTORY_POLICIES",
    "SCRAP_POLICIES",
    "ALERT_POLICIES",
    "GRIEVANCE_POLICIES",
    "REGISTRATION_POLICIES",
    "SERVICE_POLICIES",
    "STORAGE_POLICIES",
    "get_protected_tables",
    "get_policies_for_table",
    "get_predicate",
    "describe_policy",
    "evaluate",
]
