"""
Node handlers for code analysis

State-in, state-out functions used by the code review workflow.
"""

from .code_analysis import (
    extract_functions,
    check_complexity,
    detect_issues,
    calculate_quality_score,
    suggest_improvements,
    final_review
)

__all__ = [
    "extract_functions",
    "check_complexity",
    "detect_issues",
    "calculate_quality_score",
    "suggest_improvements",
    "final_review"
]
