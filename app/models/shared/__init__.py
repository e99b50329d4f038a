from .org import Org
from .user import User, UserRole, Staff, STAFF_ROLES
