from fastapi import APIRouter
from schoolhub.api.crud import build_crud_router
from schoolhub.entities import academic_records, attendance, courses, departments, programs, users

router = APIRouter()
router.include_router(build_crud_router(users, "/users", tags=["Users"]))
router.include_router(build_crud_router(departments, "/departments", tags=["Departments"]))
router.include_router(build_crud_router(programs, "/programs", tags=["Programs"]))
router.include_router(build_crud_router(courses, "/courses", tags=["Courses"]))
router.include_router(build_crud_router(attendance, "/attendance", tags=["Attendance"]))
router.include_router(build_crud_router(academic_records, "/academic", tags=["AcademicRecords"]))
