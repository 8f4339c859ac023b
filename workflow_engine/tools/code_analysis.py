"""
Code analysis handlers used by the code review workflow.

Each handler takes the workflow state (a dict holding at least `code`) and
returns a new dict with its findings merged in; the input is never mutated.
"""

from typing import Any, Dict, List
import ast
import logging

logger = logging.getLogger(__name__)

State = Dict[str, Any]

_BRANCH_NODES = (ast.If, ast.For, ast.AsyncFor, ast.While, ast.IfExp, ast.ExceptHandler, ast.With, ast.AsyncWith)

MAX_LINE_LENGTH = 100


def _parse(code: str) -> ast.Module:
    try:
        return ast.parse(code)
    except SyntaxError as e:
        raise ValueError(f"Code does not parse: {e.msg} (line {e.lineno})") from e


def extract_functions(state: State) -> State:
    """List every function definition with its line number."""
    code = state.get("code", "")
    if not code:
        return {**state, "functions": [], "function_count": 0}

    functions = [
        {"name": node.name, "line": node.lineno}
        for node in ast.walk(_parse(code))
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
    ]
    return {**state, "functions": functions, "function_count": len(functions)}


def check_complexity(state: State) -> State:
    """Cyclomatic complexity per function: one plus each branch point and boolean operator."""
    code = state.get("code", "")
    scores: List[Dict[str, Any]] = []

    if code:
        for node in ast.walk(_parse(code)):
            if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            complexity = 1
            for child in ast.walk(node):
                if isinstance(child, _BRANCH_NODES):
                    complexity += 1
                elif isinstance(child, ast.BoolOp):
                    complexity += len(child.values) - 1
            scores.append({
                "function": node.name,
                "complexity": complexity,
                "level": "high" if complexity > 5 else "low"
            })

    average = sum(s["complexity"] for s in scores) / len(scores) if scores else 0
    return {**state, "complexity_scores": scores, "average_complexity": round(average, 2)}


def detect_issues(state: State) -> State:
    """Flag long lines, functions without docstrings and leftover TODO/FIXME markers."""
    code = state.get("code", "")
    issues: List[Dict[str, Any]] = []

    if code:
        for lineno, line in enumerate(code.split("\n"), 1):
            if len(line) > MAX_LINE_LENGTH:
                issues.append({
                    "type": "style", "line": lineno, "severity": "low",
                    "message": f"Line too long (>{MAX_LINE_LENGTH} characters)"
                })
            if "TODO" in line or "FIXME" in line:
                issues.append({
                    "type": "maintenance", "line": lineno, "severity": "low",
                    "message": "TODO/FIXME comment found"
                })

        for node in ast.walk(_parse(code)):
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and ast.get_docstring(node) is None:
                issues.append({
                    "type": "documentation", "line": node.lineno, "severity": "medium",
                    "message": f"Function {node.name} missing docstring"
                })

    severity_counts = {"high": 0, "medium": 0, "low": 0}
    for issue in issues:
        severity_counts[issue["severity"]] += 1

    issues.sort(key=lambda issue: issue["line"])
    return {**state, "issues": issues, "issue_count": len(issues), "severity_counts": severity_counts}


def calculate_quality_score(state: State) -> State:
    """Score the code from 0 to 10, starting at 10 and deducting for complexity and issues."""
    severity_counts = state.get("severity_counts", {})
    average_complexity = state.get("average_complexity", 0)

    score = 10.0
    if average_complexity > 10:
        score -= 3
    elif average_complexity > 5:
        score -= 1

    score -= severity_counts.get("high", 0) * 2
    score -= severity_counts.get("medium", 0) * 1
    score -= severity_counts.get("low", 0) * 0.5

    if state.get("function_count", 0) > 0:
        score += 1

    quality_score = max(0.0, min(10.0, score))
    if quality_score >= 8:
        quality_level = "excellent"
    elif quality_score >= 6:
        quality_level = "good"
    elif quality_score >= 4:
        quality_level = "fair"
    else:
        quality_level = "poor"

    logger.debug(f"Quality score {quality_score} ({quality_level})")
    return {**state, "quality_score": quality_score, "quality_level": quality_level}


def suggest_improvements(state: State) -> State:
    """Turn complexity scores and issue patterns into refactoring suggestions."""
    suggestions: List[Dict[str, Any]] = []

    for score in state.get("complexity_scores", []):
        if score["complexity"] > 10:
            suggestions.append({
                "type": "refactor", "target": score["function"], "priority": "high",
                "suggestion": f"Break {score['function']} into smaller functions (complexity: {score['complexity']})"
            })
        elif score["complexity"] > 5:
            suggestions.append({
                "type": "refactor", "target": score["function"], "priority": "medium",
                "suggestion": f"Consider simplifying {score['function']} (complexity: {score['complexity']})"
            })

    issue_types: Dict[str, int] = {}
    for issue in state.get("issues", []):
        issue_types[issue["type"]] = issue_types.get(issue["type"], 0) + 1

    if issue_types.get("documentation", 0):
        suggestions.append({
            "type": "documentation", "target": "general", "priority": "medium",
            "suggestion": "Add docstrings to improve code documentation"
        })
    if issue_types.get("style", 0) > 5:
        suggestions.append({
            "type": "style", "target": "general", "priority": "low",
            "suggestion": "Consider using a code formatter (black, autopep8)"
        })

    return {**state, "suggestions": suggestions, "suggestion_count": len(suggestions)}


def final_review(state: State) -> State:
    approved = state.get("quality_score", 0) >= state.get("quality_threshold", 7)
    return {**state, "review_status": "approved" if approved else "changes_requested"}
