"""
Request payload schemas.

Registration is a tagged union keyed by ``userType``: each variant only
accepts its own role-specific profile block, so a student payload can never
carry ``teacherInfo`` onto the stored record.
"""

from datetime import date
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from utils.errors import ValidationError

EMAIL_PATTERN = r"^\w+([.+-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,})+$"
PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"


class Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ParentContact(Schema):
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    emergency_contact: Optional[str] = None


class StudentInfo(Schema):
    student_id: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None
    roll_number: Optional[str] = None
    parent_contact: Optional[ParentContact] = None


class TeacherInfo(Schema):
    employee_id: Optional[str] = None
    department: Optional[str] = None
    subject: List[str] = Field(default_factory=list)
    qualification: Optional[str] = None
    experience: Optional[int] = Field(default=None, ge=0)
    joining_date: Optional[date] = None


class StaffInfo(Schema):
    employee_id: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    joining_date: Optional[date] = None
    work_schedule: Optional[str] = None


class BaseRegistration(Schema):
    username: str = Field(min_length=3, max_length=30)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=254)
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)

    @field_validator("username", "email", "first_name", "last_name", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return value.lower()

    # Role-specific block as stored on the user document, e.g. {"student_info": {...}}
    def profile_block(self):
        return {}

    def to_user_fields(self):
        fields = {
            "username": self.username,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "user_type": self.user_type,
            "profile": {"phone": self.phone},
        }
        fields.update(self.profile_block())
        return fields


class StudentRegistration(BaseRegistration):
    user_type: Literal["student"]
    student_info: Optional[StudentInfo] = None

    def profile_block(self):
        if self.student_info is None:
            return {}
        return {"student_info": self.student_info.model_dump(mode="json", exclude_none=True)}


class TeacherRegistration(BaseRegistration):
    user_type: Literal["teacher"]
    teacher_info: Optional[TeacherInfo] = None

    def profile_block(self):
        if self.teacher_info is None:
            return {}
        return {"teacher_info": self.teacher_info.model_dump(mode="json", exclude_none=True)}


class StaffRegistration(BaseRegistration):
    user_type: Literal["staff"]
    staff_info: Optional[StaffInfo] = None

    def profile_block(self):
        if self.staff_info is None:
            return {}
        return {"staff_info": self.staff_info.model_dump(mode="json", exclude_none=True)}


Registration = TypeAdapter(
    Annotated[
        Union[StudentRegistration, TeacherRegistration, StaffRegistration],
        Field(discriminator="user_type"),
    ]
)


class LoginRequest(Schema):
    login: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ChangePasswordRequest(Schema):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class ApproveRequest(Schema):
    notes: Optional[str] = None


class RejectRequest(Schema):
    # emptiness is checked by the reject transition itself
    reason: Optional[str] = None


class BulkApproveRequest(Schema):
    user_ids: List[str] = Field(min_length=1)
    notes: Optional[str] = None


def parse(schema, data):
    """Validate ``data`` against a model class or TypeAdapter.

    Raises ValidationError listing the offending fields.
    """
    try:
        if isinstance(schema, TypeAdapter):
            return schema.validate_python(data or {})
        return schema.model_validate(data or {})
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        raise ValidationError("Validation failed", errors=errors)
