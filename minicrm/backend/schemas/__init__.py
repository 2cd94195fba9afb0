# Pydantic schemas package
from minicrm.backend.schemas.base import (
    ApiResponse,
    CamelModel,
    ErrorDetail,
    ErrorResponse,
    ResponseMetadata,
)

__all__ = [
    "ApiResponse",
    "CamelModel",
    "ErrorDetail",
    "ErrorResponse",
    "ResponseMetadata",
]
