# Import all models in dependency order so relationships resolve
from app.models.user import User
from app.models.developer import Developer
from app.models.project import Project, PROJECT_STATUS_ACTIVE
from app.models.lead import Lead, LeadStatus, SalesStage, ClientProfileMixin
from app.models.enquiry import Enquiry

__all__ = [
    "User",
    "Developer",
    "Project",
    "PROJECT_STATUS_ACTIVE",
    "Lead",
    "LeadStatus",
    "SalesStage",
    "ClientProfileMixin",
    "Enquiry",
]
