"""
Workflow definitions

Pre-built workflow definitions for common use cases.
"""

from .code_review import create_code_review_workflow, route_on_quality, SAMPLE_CODE

__all__ = [
    "create_code_review_workflow",
    "route_on_quality",
    "SAMPLE_CODE"
]
