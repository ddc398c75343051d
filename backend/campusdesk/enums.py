"""Enumerations shared by models, schemas and resources.

Every enum stores its plain string value in the database. The helpers
on `LabeledEnum` give API clients the value/label pairs they need to
build select boxes without hard-coding them.
"""

from enum import Enum
from typing import Dict, List


class LabeledEnum(str, Enum):
    """String enum with human readable labels.

    Subclasses may override `_label_overrides`; otherwise the label is
    derived from the value (`in_progress` -> `In Progress`).
    """

    @classmethod
    def _label_overrides(cls) -> Dict[str, str]:
        return {}

    def label(self) -> str:
        labels = type(self)._label_overrides()
        if self.value in labels:
            return labels[self.value]
        return self.value.replace('_', ' ').title()

    @classmethod
    def values(cls) -> List[str]:
        return [m.value for m in cls]

    @classmethod
    def labels(cls) -> List[str]:
        return [m.label() for m in cls]

    def traits(self) -> Dict[str, object]:
        """Extra per-member flags published with `options`."""
        return {}

    @classmethod
    def options(cls) -> List[Dict[str, object]]:
        return [{'value': m.value, 'label': m.label(), **m.traits()} for m in cls]

    @classmethod
    def label_for(cls, value) -> str:
        """Return the label for a raw stored value, or the value itself."""
        if value is None:
            return ''
        try:
            return cls(value).label()
        except ValueError:
            return str(value)


class Status(LabeledEnum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'


class ApplicationStatus(LabeledEnum):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    ADMITTED = 'admitted'


class BookRequestStatus(LabeledEnum):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class IssueStatus(LabeledEnum):
    ISSUED = 'issued'
    RETURNED = 'returned'
    LOST = 'lost'


class MemberType(LabeledEnum):
    STUDENT = 'student'
    STAFF = 'staff'


class Gender(LabeledEnum):
    MALE = 'male'
    FEMALE = 'female'
    OTHER = 'other'


class BloodGroup(LabeledEnum):
    A_POSITIVE = 'a_positive'
    A_NEGATIVE = 'a_negative'
    B_POSITIVE = 'b_positive'
    B_NEGATIVE = 'b_negative'
    AB_POSITIVE = 'ab_positive'
    AB_NEGATIVE = 'ab_negative'
    O_POSITIVE = 'o_positive'
    O_NEGATIVE = 'o_negative'

    @classmethod
    def _label_overrides(cls):
        return {
            'a_positive': 'A+', 'a_negative': 'A-',
            'b_positive': 'B+', 'b_negative': 'B-',
            'ab_positive': 'AB+', 'ab_negative': 'AB-',
            'o_positive': 'O+', 'o_negative': 'O-',
        }


class MaritalStatus(LabeledEnum):
    SINGLE = 'single'
    MARRIED = 'married'
    DIVORCED = 'divorced'
    WIDOWED = 'widowed'
    SEPARATED = 'separated'


class Religion(LabeledEnum):
    CHRISTIANITY = 'christianity'
    ISLAM = 'islam'
    TRADITIONAL = 'traditional'
    OTHER = 'other'
    NONE = 'none'


class DegreeType(LabeledEnum):
    BACHELOR = 'bachelor'
    MASTER = 'master'
    PHD = 'phd'
    DIPLOMA = 'diploma'
    CERTIFICATE = 'certificate'

    @classmethod
    def _label_overrides(cls):
        return {'phd': 'PhD'}

    def is_graduate_program(self) -> bool:
        return self in (DegreeType.MASTER, DegreeType.PHD)

    def is_undergraduate_program(self) -> bool:
        return self in (DegreeType.BACHELOR, DegreeType.DIPLOMA, DegreeType.CERTIFICATE)

    def typical_duration(self) -> int:
        """Typical programme length in years."""
        return {
            DegreeType.BACHELOR: 4,
            DegreeType.MASTER: 2,
            DegreeType.PHD: 4,
            DegreeType.DIPLOMA: 2,
            DegreeType.CERTIFICATE: 1,
        }[self]

    def traits(self):
        return {'is_graduate': self.is_graduate_program(), 'is_undergraduate': self.is_undergraduate_program(),
                'typical_duration': self.typical_duration()}


class ClassType(LabeledEnum):
    THEORY = 'theory'
    PRACTICAL = 'practical'
    BOTH = 'both'

    @classmethod
    def _label_overrides(cls):
        return {'both': 'Theory & Practical'}

    def includes_theory(self) -> bool:
        return self in (ClassType.THEORY, ClassType.BOTH)

    def includes_practical(self) -> bool:
        return self in (ClassType.PRACTICAL, ClassType.BOTH)

    def traits(self):
        return {'includes_theory': self.includes_theory(), 'includes_practical': self.includes_practical()}


class SubjectType(LabeledEnum):
    COMPULSORY = 'compulsory'
    OPTIONAL = 'optional'
    ELECTIVE = 'elective'

    def is_required(self) -> bool:
        return self is SubjectType.COMPULSORY

    def is_optional(self) -> bool:
        return self in (SubjectType.OPTIONAL, SubjectType.ELECTIVE)

    def traits(self):
        return {'is_required': self.is_required(), 'is_optional': self.is_optional()}


class RoomType(LabeledEnum):
    CLASSROOM = 'classroom'
    LAB = 'lab'
    LIBRARY = 'library'
    AUDITORIUM = 'auditorium'
    CONFERENCE = 'conference'

    @classmethod
    def _label_overrides(cls):
        return {'lab': 'Laboratory', 'conference': 'Conference Room'}

    def is_suitable_for_lectures(self) -> bool:
        return self in (RoomType.CLASSROOM, RoomType.AUDITORIUM)

    def is_suitable_for_practical(self) -> bool:
        return self in (RoomType.LAB, RoomType.CLASSROOM)

    def is_suitable_for_large_groups(self) -> bool:
        return self in (RoomType.AUDITORIUM, RoomType.LIBRARY)

    def traits(self):
        return {
            'lectures': self.is_suitable_for_lectures(),
            'practical': self.is_suitable_for_practical(),
            'large_groups': self.is_suitable_for_large_groups(),
        }


class FeeStatus(LabeledEnum):
    UNPAID = 'unpaid'
    PARTIAL = 'partial'
    PAID = 'paid'


class AmountType(LabeledEnum):
    """How a discount or fine amount is interpreted."""
    FIXED = 'fixed'
    PERCENTAGE = 'percentage'


class PayType(int, Enum):
    """Leave pay type; stored as the integer code used by payroll."""
    PAID = 1
    UNPAID = 2

    def label(self) -> str:
        return 'Paid' if self is PayType.PAID else 'Unpaid'

    @classmethod
    def options(cls):
        return [{'value': m.value, 'label': m.label()} for m in cls]


class TransactionType(LabeledEnum):
    CREDIT = 'credit'
    DEBIT = 'debit'


class PaymentMethod(LabeledEnum):
    CASH = 'cash'
    CARD = 'card'
    BANK = 'bank'
    MOBILE = 'mobile'

    @classmethod
    def _label_overrides(cls):
        return {'bank': 'Bank Transfer', 'mobile': 'Mobile Money'}


class OwnerKind(LabeledEnum):
    """Kinds of rows that may own polymorphic records (notes, documents...)."""
    STUDENT = 'student'
    USER = 'user'
    OUTSIDE_USER = 'outside_user'

    @classmethod
    def _label_overrides(cls):
        return {'user': 'Staff'}


# Enums published to API clients, keyed by the name used in `/enums/{name}`.
PUBLIC_ENUMS = {
    'status': Status,
    'application_status': ApplicationStatus,
    'book_request_status': BookRequestStatus,
    'issue_status': IssueStatus,
    'member_type': MemberType,
    'gender': Gender,
    'blood_group': BloodGroup,
    'marital_status': MaritalStatus,
    'religion': Religion,
    'degree_type': DegreeType,
    'class_type': ClassType,
    'subject_type': SubjectType,
    'room_type': RoomType,
    'fee_status': FeeStatus,
    'amount_type': AmountType,
    'pay_type': PayType,
    'transaction_type': TransactionType,
    'payment_method': PaymentMethod,
    'owner_kind': OwnerKind,
}
