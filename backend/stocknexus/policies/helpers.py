# Overview: Utility functions for policy lookups and evaluation.

from .definitions import POLICY_DEFINITIONS
from .predicates import deny


def get_protected_tables():
    """Get list of tables covered by at least one policy."""
    tables = []
    for policy in POLICY_DEFINITIONS:
        if policy[0] not in tables:
            tables.append(policy[0])
    return tables


def get_policies_for_table(table):
    """Get all policies defined for a table."""
    return [policy for policy in POLICY_DEFINITIONS if policy[0] == table]


def get_predicate(table, operation):
    """Get the predicate for (table, operation); unknown pairs deny."""
    for policy in POLICY_DEFINITIONS:
        if policy[0] == table and policy[1] == operation:
            return policy[2]
    return deny


def describe_policy(table, operation):
    """Get full definition for a (table, operation) pair."""
    for policy in POLICY_DEFINITIONS:
        if policy[0] == table and policy[1] == operation:
            return {
                "table": policy[0],
                "operation": policy[1],
                "predicate": policy[2].__name__,
                "description": policy[3],
            }
    return None


def evaluate(table, operation, caller, row=None) -> bool:
    """Run the predicate for (table, operation)."""
    return bool(get_predicate(table, operation)(caller, row))
