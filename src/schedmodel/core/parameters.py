"""
Machine Parameter Set

Global, scheduler-visible constants of a target. The set of features the
model does not support is part of this record rather than ambient state, so
two models for different targets can be queried side by side.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from .errors import InvalidParameterError


_INT_FIELDS = (
    'issue_width',
    'load_latency',
    'mispredict_penalty',
    'loop_buffer_size',
    'micro_op_buffer_size',
)
_BOOL_FIELDS = ('post_ra_scheduler', 'complete_model')


@dataclass(frozen=True)
class MachineParameters:
    """
    Global constraints of a machine model.

    Attributes:
        issue_width: Maximum operations issued per cycle
        load_latency: Default cache-hit load latency (cycles)
        mispredict_penalty: Branch mispredict recovery (cycles)
        loop_buffer_size: Front-end micro-ops buffered before stalling
            (None if the target has no loop buffer)
        micro_op_buffer_size: Back-end in-flight micro-op capacity
            (0 means in-order issue)
        unsupported_features: Features the model cannot describe; any
            descriptor tagged with one is rejected at query time
        post_ra_scheduler: Whether the target wants a post-RA scheduling pass
        complete_model: Whether the model claims to cover every operation class
    """
    issue_width: int = 1
    load_latency: int = 4
    mispredict_penalty: int = 10
    loop_buffer_size: Optional[int] = None
    micro_op_buffer_size: int = 0
    unsupported_features: FrozenSet[str] = field(default_factory=frozenset)
    post_ra_scheduler: bool = False
    complete_model: bool = True

    def __post_init__(self):
        """Validate types and ranges, and normalize the feature set."""
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if value is None and name == 'loop_buffer_size':
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidParameterError(
                    f"{name} must be an integer, got {type(value).__name__} {value!r}"
                )
        for name in _BOOL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise InvalidParameterError(
                    f"{name} must be true or false, got {type(value).__name__} {value!r}"
                )
        if self.issue_width < 1:
            raise InvalidParameterError(f"issue_width must be >= 1, got {self.issue_width}")
        if self.load_latency < 0:
            raise InvalidParameterError(f"load_latency must be >= 0, got {self.load_latency}")
        if self.mispredict_penalty < 0:
            raise InvalidParameterError(
                f"mispredict_penalty must be >= 0, got {self.mispredict_penalty}"
            )
        if self.loop_buffer_size is not None and self.loop_buffer_size < 0:
            raise InvalidParameterError(
                f"loop_buffer_size must be >= 0, got {self.loop_buffer_size}"
            )
        if self.micro_op_buffer_size < 0:
            raise InvalidParameterError(
                f"micro_op_buffer_size must be >= 0, got {self.micro_op_buffer_size}"
            )
        if isinstance(self.unsupported_features, str):
            raise InvalidParameterError("unsupported_features must be a collection of names")
        # frozen dataclass: bypass __setattr__ to normalize
        object.__setattr__(self, 'unsupported_features', frozenset(self.unsupported_features))

    @property
    def in_order(self) -> bool:
        return self.micro_op_buffer_size == 0

    def supports(self, feature: str) -> bool:
        return feature not in self.unsupported_features

    def to_dict(self) -> Dict[str, Any]:
        """Flat record for serialization."""
        result = asdict(self)
        result['unsupported_features'] = sorted(self.unsupported_features)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MachineParameters':
        data = dict(data)
        if 'unsupported_features' in data:
            data['unsupported_features'] = frozenset(data['unsupported_features'] or ())
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
