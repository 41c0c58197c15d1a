"""
Core Application - Infrastructure & Base Classes

This app contains infrastructure code shared by the domain apps
(firms, applications, holding, payments):

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - MetadataMixin: Flexible JSON metadata storage

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - NotFoundError: Resource not found
    - PermissionDeniedError: Authorization failures
    - ConflictError: State conflicts (already paid, invalid status)
    - ExternalServiceError: Store or third-party service failures

Helpers (import from core.helpers):
    - generate_url_token: Cryptographically secure URL-safe tokens

Views (import from core.views):
    - health_check: Liveness/readiness endpoint
"""
