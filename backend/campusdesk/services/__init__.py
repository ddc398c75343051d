"""Business logic services used by the HTTP routes and scripts.

Each service wraps the repositories of one area, validates input
against the domain rules and raises `NotFoundError` or
`BusinessRuleError` on failure.
"""

from .academic import AcademicService
from .admission import AdmissionService
from .auth import AuthService
from .fees import FeeService
from .hostel import HostelService
from .leave import LeaveService
from .library import LibraryService
from .notices import NoticeService
from .records import RecordService
from .students import StudentService
from .utility import UtilityService

__all__ = [
    'AcademicService',
    'AdmissionService',
    'AuthService',
    'FeeService',
    'HostelService',
    'LeaveService',
    'LibraryService',
    'NoticeService',
    'RecordService',
    'StudentService',
    'UtilityService',
]
