"""
Student models - the submitted registration form and the stored record.

Both are Pydantic models whose JSON keys are camelCase (firstName,
rollNo, registeredOn, ...) so the durable array and the API speak the
same shape. Python attributes are snake_case.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StudentForm(BaseModel):
    """
    Field values submitted from the registration form.

    Every value is a string trimmed at the boundary. Nothing here is
    validated beyond that; the field validators report every problem at
    once, with their own messages. A missing admission date is filled
    in by the registration service from its clock.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    dob: str = ""
    gender: str = ""
    course: str = ""
    year: str = ""
    roll_no: str = ""
    admission_date: Optional[str] = Field(None, description="Omitted means the day of submission")
    address: str = ""
    guardian_name: str = ""
    guardian_phone: str = ""


class StudentRecord(BaseModel):
    """A registered student as held in the durable store."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Opaque identifier, immutable once assigned")
    first_name: str
    last_name: str
    email: str
    phone: str
    dob: str
    gender: str
    course: str
    year: str
    roll_no: str
    admission_date: str = ""
    address: str = ""
    guardian_name: str = ""
    guardian_phone: str = ""
    registered_on: str = Field(..., description="ISO 8601 creation time, never overwritten")
    updated_on: Optional[str] = Field(None, description="ISO 8601 time of the last edit")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_storage(self) -> dict:
        """Dict in the durable camelCase shape."""
        return self.model_dump(by_alias=True)

    def __repr__(self):
        return f"<StudentRecord(id={self.id}, roll_no='{self.roll_no}', email='{self.email}')>"
