"""
Core Application - Infrastructure & Base Classes

Shared building blocks for the domain apps (authentication, warehouses,
payments, notifications):

Models (core.models / core.model_mixins):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (core.services):
    - BaseService: Base class for service layer (logger, atomic)
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (core.exceptions):
    - BaseApplicationError and its HTTP-mapped subclasses
    - api_exception_handler: DRF exception handler for domain errors

Views (core.views):
    - health_check: Database/cache probe for load balancers
"""
