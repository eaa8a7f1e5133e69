__all__ = [
    "aggregator_service",
    "analyzer_service",
    "auth_service",
    "cache",
    "developer_service",
    "enquiry_service",
    "lead_service",
    "listing_cache",
    "project_service",
]
