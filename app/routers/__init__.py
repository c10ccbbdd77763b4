"""
API routers, one per resource
"""
from .competitions import router as competitions_router
from .categories import router as categories_router
from .entries import router as entries_router
from .scores import router as scores_router
from .results import router as results_router
from .admin_filters import router as admin_filters_router
from .medals import router as medals_router
from .photos import router as photos_router
from .exports import router as exports_router
from .data_management import router as data_management_router
from .realtime import router as realtime_router

all_routers = [
    competitions_router,
    categories_router,
    entries_router,
    scores_router,
    results_router,
    admin_filters_router,
    medals_router,
    photos_router,
    exports_router,
    data_management_router,
    realtime_router,
]

__all__ = ["all_routers"]
