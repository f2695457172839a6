"""
Domain package for the agentlab router service.

This package contains all domain models, enums and value objects
used throughout the application for type safety and validation.
"""

from .base_enums import ChunkType, PipelineStage, RouteDecision
from .requests import MISSING_QUESTION_MESSAGE, QueryRequest
from .responses import (
    ErrorResponse,
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    GeneratedSQL,
    HealthResponse,
    IndexingStats,
    PipelineResponse,
    RetrievedChunk,
    SchemaContext,
)
from .pipeline import PipelineState

__all__ = [
    # Enums
    "ChunkType",
    "PipelineStage",
    "RouteDecision",

    # Requests
    "MISSING_QUESTION_MESSAGE",
    "QueryRequest",

    # Stage values
    "RetrievedChunk",
    "SchemaContext",
    "GeneratedSQL",
    "ExecutionSuccess",
    "ExecutionFailure",
    "ExecutionResult",

    # Responses
    "PipelineResponse",
    "HealthResponse",
    "ErrorResponse",
    "IndexingStats",

    # Pipeline
    "PipelineState",
]
