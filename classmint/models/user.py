from datetime import datetime, timezone
from classmint.extensions import db
from classmint.security import hash_password


class Role:
    TEACHER = "teacher"
    STUDENT = "student"

    ALL = (TEACHER, STUDENT)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    # Bumped on sign-out; tokens carry the value they were issued under
    session_epoch = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    role_row = db.relationship("UserRole", uselist=False, back_populates="user", cascade="all, delete-orphan")

    def set_password(self, password: str):
        self.password_hash = hash_password(password)

    @property
    def role(self) -> str | None:
        return self.role_row.role if self.role_row else None

    def __repr__(self):
        return f"<User id={self.id} {self.email} role={self.role}>"


class UserRole(db.Model):
    __tablename__ = "user_roles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    role = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship("User", back_populates="role_row")

    __table_args__ = (
        db.CheckConstraint("role IN ('teacher', 'student')", name="ck_user_role_value"),
    )


class TeacherProfile(db.Model):
    __tablename__ = "teacher_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship("User")
    classrooms = db.relationship("Classroom", back_populates="teacher", order_by="Classroom.name")
