# Overview: Enumerated value sets shared by models, validation and predicates.


class Department:
    """Departments an item, user or request can belong to."""
    IT = "IT"
    AIDS = "AI&DS"
    CSE = "CSE"
    PHYSICS = "Physics"
    CHEMISTRY = "Chemistry"
    BIOTECH = "Bio-tech"
    CHEMICAL = "Chemical"
    MECHANICAL = "Mechanical"

    ALL = (IT, AIDS, CSE, PHYSICS, CHEMISTRY, BIOTECH, CHEMICAL, MECHANICAL)


class Role:
    """Exactly one role is assigned per user."""
    ADMIN = "admin"
    HOD = "hod"
    STAFF = "staff"

    ALL = (ADMIN, HOD, STAFF)


class ItemStatus:
    AVAILABLE = "available"
    IN_USE = "in_use"
    UNDER_MAINTENANCE = "under_maintenance"
    DAMAGED = "damaged"

    ALL = (AVAILABLE, IN_USE, UNDER_MAINTENANCE, DAMAGED)


class AlertType:
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"

    ALL = (LOW_STOCK, OUT_OF_STOCK)


class AlertSeverity:
    MEDIUM = "medium"
    HIGH = "high"

    ALL = (MEDIUM, HIGH)


class GrievanceStatus:
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"

    ALL = (PENDING, IN_PROGRESS, RESOLVED, REJECTED)
    CLOSED = (RESOLVED, REJECTED)


class GrievancePriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    ALL = (LOW, MEDIUM, HIGH)


class RegistrationStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = (PENDING, APPROVED, REJECTED)


class ServiceType:
    INTERNAL = "internal"
    EXTERNAL = "external"

    ALL = (INTERNAL, EXTERNAL)


class ServiceNature:
    MAINTENANCE = "maintenance"
    REPAIR = "repair"
    CALIBRATION = "calibration"
    INSTALLATION = "installation"

    ALL = (MAINTENANCE, REPAIR, CALIBRATION, INSTALLATION)


class ServiceStatus:
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    ALL = (PENDING, IN_PROGRESS, COMPLETED)


class Bucket:
    """Attachment storage buckets."""
    GRIEVANCE_ATTACHMENTS = "grievance-attachments"
    SERVICE_BILLS = "service-bills"

    ALL = (GRIEVANCE_ATTACHMENTS, SERVICE_BILLS)


DEFAULT_LOW_STOCK_THRESHOLD = 5
