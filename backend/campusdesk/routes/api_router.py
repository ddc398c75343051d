"""Central API router composition.

Mounts every route module under `/api/v1` so `main` has a single
router to include.
"""

from fastapi import APIRouter

from .academic import router as academic_router
from .admissions import router as admissions_router
from .auth import router as auth_router
from .fees import router as fees_router
from .hostels import router as hostels_router
from .leaves import router as leaves_router
from .library import router as library_router
from .notices import router as notices_router
from .records import router as records_router
from .students import router as students_router
from .utility import router as utility_router

router = APIRouter(prefix="/api/v1")

router.include_router(auth_router)
router.include_router(academic_router)
router.include_router(admissions_router)
router.include_router(students_router)
router.include_router(library_router)
router.include_router(hostels_router)
router.include_router(fees_router)
router.include_router(notices_router)
router.include_router(leaves_router)
router.include_router(records_router)
router.include_router(utility_router)
