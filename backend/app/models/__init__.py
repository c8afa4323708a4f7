from app.models.key_value import KeyValueEntry
from app.models.student import StudentForm, StudentRecord

__all__ = ["KeyValueEntry", "StudentForm", "StudentRecord"]
