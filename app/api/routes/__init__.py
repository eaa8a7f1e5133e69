from app.api.routes.auth import router as auth_router
from app.api.routes.projects import router as projects_router
from app.api.routes.developers import router as developers_router
from app.api.routes.enquiry import router as enquiry_router
from app.api.routes.migrations import router as migrations_router
from app.api.routes.alnair import router as alnair_router
from app.api.routes.analyzer import router as analyzer_router
from app.api.routes.admin import router as admin_router

__all__ = [
    "auth_router",
    "projects_router",
    "developers_router",
    "enquiry_router",
    "migrations_router",
    "alnair_router",
    "analyzer_router",
    "admin_router"
]
