from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any, Optional, Union


class ErrorKind(StrEnum):
    PROVIDER = 'provider'
    NETWORK = 'network'


@dataclass(frozen=True)
class DispatchError:
    kind: ErrorKind
    message: str
    code: Optional[Union[int, str]] = None
    status: Optional[int] = None
    body: Any = None


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one dispatch call: Ok(info) or Err(error), never an exception"""

    success: bool
    info: dict = field(default_factory=dict)
    error: Optional[DispatchError] = None

    @classmethod
    def ok(cls, **info) -> 'DispatchResult':
        return cls(True, info)

    @classmethod
    def err(cls, kind: ErrorKind, message: str, code=None, status=None, body=None) -> 'DispatchResult':
        return cls(False, error=DispatchError(kind, message, code=code, status=status, body=body))

    def to_dict(self) -> dict:
        if self.success:
            return {'success': True, **self.info}
        return {'success': False, 'error': asdict(self.error)}
