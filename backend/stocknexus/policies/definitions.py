# Overview: Registry of every row-level policy.
# Each policy is defined as: (table, operation, predicate, description)

from .predicates import (
    deny,
    can_read_inventory,
    can_insert_inventory,
    can_update_inventory,
    can_delete_inventory,
    can_read_scrap,
    can_insert_scrap,
    can_update_scrap,
    can_delete_scrap,
    can_read_alert,
    can_insert_grievance,
    can_read_grievance,
    can_update_grievance,
    can_insert_registration_request,
    can_read_registration_request,
    can_update_registration_request,
    can_delete_registration_request,
    can_read_service,
    can_insert_service,
    can_update_service,
    can_delete_service,
    can_upload_object,
    can_read_object,
)


class Operation:
    READ = "read"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    ALL = (READ, INSERT, UPDATE, DELETE)


# -- INVENTORY --

INVENTORY_POLICIES = [
    ("inventory_items", Operation.READ, can_read_inventory,
     "Any user with a role can view inventory"),
    ("inventory_items", Operation.INSERT, can_insert_inventory,
     "Admins insert anywhere; HODs insert for their own department"),
    ("inventory_items", Operation.UPDATE, can_update_inventory,
     "Admins update anywhere; HODs update items in their own department"),
    ("inventory_items", Operation.DELETE, can_delete_inventory,
     "Admins delete anywhere; HODs delete items in their own department"),
]


# -- SCRAP --

SCRAP_POLICIES = [
    ("scrap_items", Operation.READ, can_read_scrap,
     "Admins view all scrap records; HODs view their department's"),
    ("scrap_items", Operation.INSERT, can_insert_scrap,
     "Admins scrap anywhere; HODs scrap in their own department"),
    ("scrap_items", Operation.UPDATE, can_update_scrap,
     "Admins edit any scrap record; HODs edit their department's"),
    ("scrap_items", Operation.DELETE, can_delete_scrap,
     "Admins delete any scrap record; HODs delete their department's"),
]


# -- ALERTS --

ALERT_POLICIES = [
    ("alerts", Operation.READ, can_read_alert,
     "Admins view all alerts; others view their department's"),
    ("alerts", Operation.INSERT, deny, "Alerts are written by reconciliation only"),
    ("alerts", Operation.UPDATE, deny, "Alerts are written by reconciliation only"),
    ("alerts", Operation.DELETE, deny, "Alerts are written by reconciliation only"),
]


# -- GRIEVANCES --

GRIEVANCE_POLICIES = [
    ("grievances", Operation.READ, can_read_grievance,
     "Authors view their own grievances; admins view all"),
    ("grievances", Operation.INSERT, can_insert_grievance,
     "HODs and staff submit grievances as themselves"),
    ("grievances", Operation.UPDATE, can_update_grievance,
     "Admins update grievances"),
    ("grievances", Operation.DELETE, deny, "Grievances are never deleted"),
]


# -- REGISTRATION REQUESTS --

REGISTRATION_POLICIES = [
    ("registration_requests", Operation.READ, can_read_registration_request,
     "Admins view registration requests"),
    ("registration_requests", Operation.INSERT, can_insert_registration_request,
     "Anyone may submit a registration request"),
    ("registration_requests", Operation.UPDATE, can_update_registration_request,
     "Admins approve or reject requests"),
    ("registration_requests", Operation.DELETE, can_delete_registration_request,
     "Admins delete rejected requests only"),
]


# -- SERVICES --

SERVICE_POLICIES = [
    ("services", Operation.READ, can_read_service,
     "Admins view all service records; others view their department's"),
    ("services", Operation.INSERT, can_insert_service,
     "Admins log services anywhere; HODs in their own department"),
    ("services", Operation.UPDATE, can_update_service,
     "Admins edit any service record; HODs edit their department's"),
    ("services", Operation.DELETE, can_delete_service,
     "Admins delete any service record; HODs delete their department's"),
]


# -- ATTACHMENT STORAGE --

STORAGE_POLICIES = [
    ("storage_objects", Operation.READ, can_read_object,
     "Uploaders fetch their own objects; admins fetch any"),
    ("storage_objects", Operation.INSERT, can_upload_object,
     "HODs/staff upload grievance attachments; admins/HODs upload service bills"),
    ("storage_objects", Operation.UPDATE, deny, "Objects are immutable"),
    ("storage_objects", Operation.DELETE, deny, "Objects are immutable"),
]


POLICY_DEFINITIONS = (
    INVENTORY_POLICIES
    + SCRAP_POLICIES
    + ALERT_POLICIES
    + GRIEVANCE_POLICIES
    + REGISTRATION_POLICIES
    + SERVICE_POLICIES
    + STORAGE_POLICIES
)
