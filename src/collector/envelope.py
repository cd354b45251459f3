"""
Response Envelope Validation and Extraction

Every DataForSEO response is wrapped in the same envelope:

    {
        "status_code": 20000,
        "status_message": "Ok.",
        "cost": 0.0103,
        "tasks": [
            {"status_code": 20000, "status_message": "Ok.", "cost": 0.0103, "result": [...]}
        ]
    }

The raw JSON is validated once at the boundary into typed models; the
extractors below never index into untyped dicts.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError, field_validator

from .errors import STATUS_OK, EnvelopeError, EnvelopeReason, UpstreamStatusError

logger = logging.getLogger(__name__)


# ============================================================================
# SCHEMA
# ============================================================================

class TaskResult(BaseModel):
    """One task inside the envelope."""
    id: Optional[str] = None
    status_code: Optional[int] = None
    status_message: str = ""
    cost: float = 0.0
    result_count: Optional[int] = None
    result: Optional[List[Any]] = None

    @field_validator("cost", mode="before")
    @classmethod
    def _null_cost(cls, value):
        return 0.0 if value is None else value

    @field_validator("status_message", mode="before")
    @classmethod
    def _null_message(cls, value):
        return "" if value is None else value

    @property
    def ok(self) -> bool:
        return self.status_code == STATUS_OK


class UpstreamEnvelope(BaseModel):
    """Top-level DataForSEO response."""
    version: Optional[str] = None
    status_code: Optional[int] = None
    status_message: str = ""
    time: Optional[str] = None
    cost: float = 0.0
    tasks_count: Optional[int] = None
    tasks: Optional[List[TaskResult]] = None

    @field_validator("cost", mode="before")
    @classmethod
    def _null_cost(cls, value):
        return 0.0 if value is None else value

    @field_validator("status_message", mode="before")
    @classmethod
    def _null_message(cls, value):
        return "" if value is None else value

    @property
    def ok(self) -> bool:
        return self.status_code == STATUS_OK


@dataclass
class ExtractionSummary:
    """Diagnostic view of an envelope."""
    total_cost: float = 0.0
    total_tasks: int = 0
    successful_tasks: int = 0
    failed_tasks: int = 0
    total_results: int = 0
    response_time: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


# ============================================================================
# VALIDATION
# ============================================================================

def parse_envelope(raw: Optional[Dict[str, Any]], endpoint: Optional[str] = None) -> UpstreamEnvelope:
    """
    Validate raw JSON into an UpstreamEnvelope.

    Raises:
        EnvelopeError: EMPTY for a null body, MALFORMED when the shape does
            not match the envelope schema
    """
    if raw is None:
        raise EnvelopeError(
            "Invalid DataForSEO response: empty body",
            reason=EnvelopeReason.EMPTY,
            endpoint=endpoint,
        )
    try:
        return UpstreamEnvelope.model_validate(raw)
    except ValidationError as e:
        raise EnvelopeError(
            f"Invalid DataForSEO response: {e.error_count()} schema error(s)",
            reason=EnvelopeReason.MALFORMED,
            endpoint=endpoint,
        ) from e


def ensure_envelope_ok(envelope: UpstreamEnvelope, endpoint: Optional[str] = None) -> UpstreamEnvelope:
    """Fail when the envelope itself reports a non-success status."""
    if not envelope.ok:
        raise UpstreamStatusError(
            f"API request failed: {envelope.status_message or 'Unknown error'} "
            f"(code: {envelope.status_code})",
            upstream_status=envelope.status_code,
            status_message=envelope.status_message,
            reason=EnvelopeReason.ENVELOPE_FAILED,
            endpoint=endpoint,
            cost=envelope.cost,
        )
    return envelope


# ============================================================================
# EXTRACTION
# ============================================================================

def total_cost(envelope: Optional[UpstreamEnvelope]) -> float:
    """Sum of task costs, or the envelope cost when there is no task list."""
    if envelope is None:
        return 0.0
    if envelope.tasks is None:
        return envelope.cost
    return sum(task.cost for task in envelope.tasks)


def extract_first_task_result(envelope: Optional[UpstreamEnvelope]) -> List[Any]:
    """
    Return the result list of the first task.

    Raises:
        EnvelopeError: EMPTY, NO_TASKS
        UpstreamStatusError: a failed first task (TASK_FAILED), or a
            top-level failure (ENVELOPE_FAILED) around a successful first task
    """
    if envelope is None:
        raise EnvelopeError(
            "Invalid DataForSEO response: empty body",
            reason=EnvelopeReason.EMPTY,
        )

    if not envelope.tasks:
        raise EnvelopeError(
            "Invalid DataForSEO response: no tasks found",
            reason=EnvelopeReason.NO_TASKS,
            status_code=envelope.status_code,
            cost=total_cost(envelope),
        )

    first_task = envelope.tasks[0]
    if not first_task.ok:
        raise UpstreamStatusError(
            f"DataForSEO task failed: {first_task.status_message} (code: {first_task.status_code})",
            upstream_status=first_task.status_code,
            status_message=first_task.status_message,
            reason=EnvelopeReason.TASK_FAILED,
            cost=total_cost(envelope),
        )

    # task-level failures take precedence over the envelope status
    ensure_envelope_ok(envelope)

    return first_task.result or []


def extract_first_result_item(envelope: Optional[UpstreamEnvelope]) -> Any:
    """
    Return the first item of the first task's result list.

    Raises:
        EnvelopeError: NO_RESULTS when the list is empty, plus everything
            extract_first_task_result raises
    """
    results = extract_first_task_result(envelope)
    if not results:
        raise EnvelopeError(
            "DataForSEO task returned no results",
            reason=EnvelopeReason.NO_RESULTS,
            status_code=envelope.status_code,
            cost=total_cost(envelope),
        )
    return results[0]


def extract_all_results(envelope: Optional[UpstreamEnvelope]) -> List[Any]:
    """
    Concatenate the results of every successful task.

    Failed tasks are skipped with a warning; used for batch requests that
    carry more than one task.
    """
    if envelope is None:
        raise EnvelopeError(
            "Invalid DataForSEO response: empty body",
            reason=EnvelopeReason.EMPTY,
        )

    if not envelope.tasks:
        raise EnvelopeError(
            "Invalid DataForSEO response: no tasks found",
            reason=EnvelopeReason.NO_TASKS,
            status_code=envelope.status_code,
            cost=total_cost(envelope),
        )

    ensure_envelope_ok(envelope)

    results: List[Any] = []
    for index, task in enumerate(envelope.tasks):
        if not task.ok:
            logger.warning(
                f"Task {index + 1} failed: {task.status_message} (code: {task.status_code})"
            )
            continue
        results.extend(task.result or [])
    return results


def extract_serp_items(envelope: Optional[UpstreamEnvelope]) -> List[Any]:
    """SERP items of the first result object, or the raw result list when it has no items."""
    results = extract_first_task_result(envelope)
    if results and isinstance(results[0], dict) and results[0].get("items"):
        return results[0]["items"]
    return results


def summarize(envelope: Optional[UpstreamEnvelope]) -> ExtractionSummary:
    """
    Summarize an envelope for diagnostics. Never raises.

    One warning is produced per failed task and per task without results.
    """
    if envelope is None:
        return ExtractionSummary(warnings=["Response is null or undefined"])

    warnings: List[str] = []
    tasks = envelope.tasks or []

    if envelope.tasks is None:
        warnings.append("Missing or invalid tasks array")
    elif not tasks:
        warnings.append("No tasks found in response")

    for index, task in enumerate(tasks):
        if not task.ok:
            warnings.append(
                f"Task {index + 1} failed: {task.status_message} (code: {task.status_code})"
            )
        if not task.result:
            warnings.append(f"Task {index + 1} has no results")

    successful = [task for task in tasks if task.ok]

    return ExtractionSummary(
        total_cost=total_cost(envelope),
        total_tasks=len(tasks),
        successful_tasks=len(successful),
        failed_tasks=len(tasks) - len(successful),
        total_results=sum(len(task.result or []) for task in successful),
        response_time=envelope.time,
        warnings=warnings,
    )
