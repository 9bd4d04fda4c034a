# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .agent_service import AgentService
from .automation_service import AutomationService
from .content_service import ProjectService, SubmissionService
from .deal_service import DealService
from .enquiry_service import EnquiryService
from .property_service import PropertyFilters, PropertyService
from .storage_service import StorageService, UploadedImage

__all__ = [
    "AgentService",
    "AutomationService",
    "DealService",
    "EnquiryService",
    "ProjectService",
    "PropertyFilters",
    "PropertyService",
    "StorageService",
    "SubmissionService",
    "UploadedImage",
]
