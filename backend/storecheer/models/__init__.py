from .tenancy import Organization, Store
from .auth import User, AuthIdentity, SessionToken, USER_ROLES, MANAGER_ROLES
from .points import GoodJobCategory, PointTransaction, POINT_TYPES
from .attendance import AttendanceRecord
from .missions import Mission, MISSION_STATUSES
from .skills import Skill, SkillAcquisition
from .notifications import Notification

__all__ = [
    'Organization', 'Store',
    'User', 'AuthIdentity', 'SessionToken', 'USER_ROLES', 'MANAGER_ROLES',
    'GoodJobCategory', 'PointTransaction', 'POINT_TYPES',
    'AttendanceRecord',
    'Mission', 'MISSION_STATUSES',
    'Skill', 'SkillAcquisition',
    'Notification',
]
