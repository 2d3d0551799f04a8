from models.base_model import Base, BaseModel, utcnow
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String

ROLES = ("user", "admin")
LOGIN_TYPES = ("local", "google")


def _one_of(column, values):
    allowed = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({allowed})"


class User(BaseModel, Base):
    """Local account; may be password-based, Google-linked, or both."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "password_hash IS NOT NULL OR google_id IS NOT NULL",
            name="ck_users_has_credential",
        ),
        CheckConstraint(_one_of("role", ROLES), name="ck_users_role"),
        CheckConstraint(_one_of("login_type", LOGIN_TYPES), name="ck_users_login_type"),
    )

    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    google_id = Column(String(255), nullable=True, unique=True, index=True)
    google_profile_pic = Column(String(1024), nullable=True)
    location = Column(String(255), nullable=True)
    role = Column(String(16), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=False)
    last_seen = Column(DateTime, nullable=False, default=utcnow)
    login_type = Column(String(16), nullable=False, default="local")

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def __repr__(self):
        return f"<User {self.id} {self.email}>"
