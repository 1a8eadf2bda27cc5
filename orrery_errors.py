"""
Error and warning types shared by the orrery layout engine.

IntegrityError and ConfigurationError are raised and abort the whole pass.
IntegrityWarning is plain data attached to a successful result.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

CYCLE_DETECTED = "cycle_detected"
MULTIPLE_PARENTS = "multiple_parents"
DANGLING_REFERENCE = "dangling_reference"
DUPLICATE_BODY = "duplicate_body"
INVALID_BODY = "invalid_body"

ORPHAN_PROMOTED = "orphan_promoted"


class IntegrityError(ValueError):
    def __init__(self, kind: str, message: str, body_ids: Iterable[int] = ()) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.body_ids: Tuple[int, ...] = tuple(body_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "integrity",
            "kind": self.kind,
            "message": self.message,
            "body_ids": list(self.body_ids),
        }


class ConfigurationError(ValueError):
    def __init__(self, message: str, depth: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.depth = depth

    def to_dict(self) -> Dict[str, Any]:
        return {"error": "configuration", "message": self.message, "depth": self.depth}


@dataclass(frozen=True)
class IntegrityWarning:
    kind: str
    body_id: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "body_id": self.body_id, "message": self.message}
