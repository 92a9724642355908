# src/taskwatch/status/status_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Mapping

from ..core.errors import MalformedResponse


class TaskStatus(StrEnum):
    """Overall task status as reported by the job runner."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    FAILED = "FAILED"
    COMPLETE = "COMPLETE"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETE, TaskStatus.FAILED)


class MapReduceStage(StrEnum):
    GET_INPUT = "GET_INPUT"
    MAP = "MAP"
    SHUFFLE = "SHUFFLE"
    REDUCE = "REDUCE"
    SUMMARIZE = "SUMMARIZE"


def _count(data: Mapping[str, Any], key: str) -> int:
    raw = data.get(key)
    # bool is an int subclass; a JSON true/false is not a counter.
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise MalformedResponse(f"Expected a number for {key!r}, got {raw!r}.")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise MalformedResponse(f"Expected a whole number for {key!r}, got {raw!r}.")
        raw = int(raw)
    return raw


def _string(data: Mapping[str, Any], key: str) -> str:
    raw = data.get(key)
    if raw is None or isinstance(raw, (dict, list, bool)):
        raise MalformedResponse(f"Expected a string for {key!r}, got {raw!r}.")
    # Some runners report ids as numbers.
    return str(raw)


@dataclass(slots=True, frozen=True)
class StageStatus:
    """
    Counters for one phase of the job.

    pending and total are both 0 when the phase has not started or does not apply.
    """

    pending: int = 0
    pending_bytes: int = 0
    total: int = 0

    def __post_init__(self) -> None:
        if self.pending < 0 or self.pending_bytes < 0 or self.total < 0:
            raise ValueError(f"Stage counters must be >= 0: {self!r}")
        if self.pending > self.total:
            raise ValueError(f"pending ({self.pending}) exceeds total ({self.total})")

    @classmethod
    def from_dict(cls, data: Any, *, name: str = "stage") -> StageStatus:
        if not isinstance(data, Mapping):
            raise MalformedResponse(f"Expected an object for {name!r}, got {data!r}.")
        try:
            return cls(
                pending=_count(data, "pending"),
                pending_bytes=_count(data, "pendingBytes"),
                total=_count(data, "total"),
            )
        except ValueError as exc:
            raise MalformedResponse(f"Invalid {name!r} counters: {exc}") from exc

    def to_dict(self) -> dict[str, int]:
        return {"pending": self.pending, "pendingBytes": self.pending_bytes, "total": self.total}


@dataclass(slots=True, frozen=True)
class StatusSnapshot:
    """
    One observation of a task.

    Snapshots are value objects: each poll produces a new one that replaces the
    previous one wholesale.
    """

    script_id: str
    deployment_id: str
    status: TaskStatus
    stage: MapReduceStage | None
    stage_percent_complete: float
    size: int
    map: StageStatus
    reduce: StageStatus
    summarize: StageStatus

    def __post_init__(self) -> None:
        if self.stage is not None and self.status != TaskStatus.PROCESSING:
            raise ValueError(f"stage must be None while status is {self.status.value}")
        if not 0 <= self.stage_percent_complete <= 100:
            raise ValueError(f"stage_percent_complete out of range: {self.stage_percent_complete}")
        if self.size < 0:
            raise ValueError(f"size must be >= 0: {self.size}")

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def from_dict(cls, data: Any) -> StatusSnapshot:
        """
        Validate and convert the wire shape (camelCase keys) into a snapshot.

        Raises MalformedResponse for anything that does not fit.
        """
        if not isinstance(data, Mapping):
            raise MalformedResponse(f"Expected a status object, got {type(data).__name__}.")

        raw_status = data.get("status")
        try:
            status = TaskStatus(raw_status)
        except ValueError:
            raise MalformedResponse(f"Unknown task status: {raw_status!r}.") from None

        raw_stage = data.get("stage")
        stage: MapReduceStage | None = None
        if raw_stage is not None:
            try:
                stage = MapReduceStage(raw_stage)
            except ValueError:
                raise MalformedResponse(f"Unknown map/reduce stage: {raw_stage!r}.") from None
        if status != TaskStatus.PROCESSING:
            # Runners may still report the last stage of a finished task.
            stage = None

        raw_pct = data.get("stagePercentComplete", 0)
        if isinstance(raw_pct, bool) or not isinstance(raw_pct, (int, float)):
            raise MalformedResponse(f"Expected a number for 'stagePercentComplete', got {raw_pct!r}.")
        # Best-effort value; never trust it to be in range.
        pct = min(100.0, max(0.0, float(raw_pct)))

        size = _count(data, "size")
        if size < 0:
            raise MalformedResponse(f"Invalid size: {size}.")

        return cls(
            script_id=_string(data, "scriptId"),
            deployment_id=_string(data, "deploymentId"),
            status=status,
            stage=stage,
            stage_percent_complete=pct,
            size=size,
            map=StageStatus.from_dict(data.get("map"), name="map"),
            reduce=StageStatus.from_dict(data.get("reduce"), name="reduce"),
            summarize=StageStatus.from_dict(data.get("summarize"), name="summarize"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "scriptId": self.script_id,
            "deploymentId": self.deployment_id,
            "status": self.status.value,
            "stage": None if self.stage is None else self.stage.value,
            "stagePercentComplete": self.stage_percent_complete,
            "size": self.size,
            "map": self.map.to_dict(),
            "reduce": self.reduce.to_dict(),
            "summarize": self.summarize.to_dict(),
        }
