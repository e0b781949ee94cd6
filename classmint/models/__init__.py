# Re-export models so external code can keep using: from classmint.models import Student, Wallet, ...
from .user import User, UserRole, TeacherProfile, Role
from .student import Student
from .wallet import Wallet, WalletType
from .classroom import Classroom, ClassroomStudent
from .attendance import Attendance, AttendanceStatus
from .nft import Nft, Transaction, TransactionStatus
from .point_ledger import PointLedger, student_ledger_total
from .seating import Seat

__all__ = [
    # identity
    "User", "UserRole", "TeacherProfile", "Role", "Student",
    # custody
    "Wallet", "WalletType", "Nft", "Transaction", "TransactionStatus",
    "PointLedger", "student_ledger_total",
    # classroom
    "Classroom", "ClassroomStudent", "Attendance", "AttendanceStatus", "Seat",
]
