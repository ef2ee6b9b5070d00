from schoolhub.entities.base import EntityDescriptor, SqlEntity
from schoolhub.entities.catalog import courses, departments, programs
from schoolhub.entities.records import academic_records, attendance
from schoolhub.entities.users import users

__all__ = [
    "EntityDescriptor",
    "SqlEntity",
    "academic_records",
    "attendance",
    "courses",
    "departments",
    "programs",
    "users",
]
