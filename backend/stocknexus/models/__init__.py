from .auth import User, UserRole, SessionToken
from .inventory import InventoryItem, Alert, ScrapItem
from .servicing import Service
from .grievances import Grievance
from .registration import RegistrationRequest
from .security import SecurityEvent

__all__ = [
    'User', 'UserRole', 'SessionToken',
    'InventoryItem', 'Alert', 'ScrapItem',
    'Service',
    'Grievance',
    'RegistrationRequest',
    'SecurityEvent',
]
