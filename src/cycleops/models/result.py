"""
Tagged operation results.

Facade operations return ``Ok(value)`` or ``Err(error)`` instead of raising
for expected business, lifecycle and infrastructure failures.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, TypeVar, Union

from cycleops.exceptions.base import CycleOpsError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: CycleOpsError

    @property
    def ok(self) -> bool:
        return False

    @property
    def error_type(self) -> str:
        return type(self.error).__name__

    @property
    def http_status(self) -> int:
        return self.error.http_status

    def to_dict(self) -> Dict[str, Any]:
        return self.error.to_dict()

    def unwrap(self) -> Any:
        raise self.error


Result = Union[Ok[T], Err]
