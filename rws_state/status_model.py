from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

from .constants import NO_INTEGRATED_UNIT
from .enums import (
    Coordinate,
    MechanicalUnitMode,
    MechanicalUnitType,
    RAPIDTaskExecutionState,
    SignalKind,
)
from .errors import TypeMismatch


@dataclass(frozen=True)
class MechanicalUnitStaticInfo:
    """
    Configuration of a mechanical unit that does not change while the system runs.
    The integration relations are None when the controller reports no relation.
    """
    type: MechanicalUnitType
    task_name: str
    axes: int
    axes_total: int  # own axes plus those of an integrated unit
    is_integrated_unit: Optional[str]   # unit this one is integrated into
    has_integrated_unit: Optional[str]  # unit integrated into this one

    @property
    def raw_is_integrated_unit(self) -> str:
        return self.is_integrated_unit if self.is_integrated_unit is not None else NO_INTEGRATED_UNIT

    @property
    def raw_has_integrated_unit(self) -> str:
        return self.has_integrated_unit if self.has_integrated_unit is not None else NO_INTEGRATED_UNIT


@dataclass(frozen=True)
class MechanicalUnitDynamicInfo:
    # Empty names mean nothing is active
    tool_name: str
    wobj_name: str
    payload_name: str
    total_payload_name: str
    status: str    # controller free text, passed through verbatim
    mode: MechanicalUnitMode
    jog_mode: str  # controller free text, passed through verbatim
    coord_system: Coordinate


@dataclass(frozen=True)
class SystemInfo:
    robot_ware_version: str
    system_name: str
    system_type: str  # e.g. virtual or physical controller
    system_options: Tuple[str, ...]  # as reported, order preserved


@dataclass(frozen=True)
class RobotWareOptionInfo:
    name: str
    description: str


@dataclass(frozen=True)
class RAPIDModuleInfo:
    name: str
    type: str


@dataclass(frozen=True)
class RAPIDTaskInfo:
    name: str
    is_motion_task: bool
    is_active: bool
    execution_state: RAPIDTaskExecutionState


@dataclass(frozen=True)
class StaticInfo:
    """Controller configuration as last observed, from a single query round."""
    rapid_tasks: Tuple[RAPIDTaskInfo, ...]
    system_info: SystemInfo

    def task(self, name: str) -> Optional[RAPIDTaskInfo]:
        for t in self.rapid_tasks:
            if t.name == name:
                return t
        return None

    @property
    def motion_tasks(self) -> Tuple[RAPIDTaskInfo, ...]:
        return tuple(t for t in self.rapid_tasks if t.is_motion_task)


_PYTHON_TYPES = {
    SignalKind.DIGITAL: bool,
    SignalKind.ANALOG: float,
}


@dataclass(frozen=True)
class SignalValue:
    """
    Value of one I/O signal: bool for digital signals, float for analog.
    The discriminant is carried explicitly; reading the other case raises
    TypeMismatch instead of converting.
    """
    kind: SignalKind
    value: Union[bool, float]

    def __post_init__(self):
        expected = _PYTHON_TYPES.get(self.kind)
        if expected is None:
            raise ValueError(f"signal kind must be DIGITAL or ANALOG, got {self.kind}")
        if expected is float and type(self.value) is int:
            object.__setattr__(self, "value", float(self.value))
        # bool is an int subclass; check exact type so True never passes as analog
        if type(self.value) is not expected:
            if isinstance(self.value, bool):
                actual = SignalKind.DIGITAL
            elif isinstance(self.value, (int, float)):
                actual = SignalKind.ANALOG
            else:
                actual = SignalKind.UNKNOWN
            raise TypeMismatch(expected=self.kind, actual=actual)

    @classmethod
    def digital(cls, value: bool) -> "SignalValue":
        return cls(SignalKind.DIGITAL, value)

    @classmethod
    def analog(cls, value: float) -> "SignalValue":
        return cls(SignalKind.ANALOG, value)

    @property
    def is_digital(self) -> bool:
        return self.kind is SignalKind.DIGITAL

    @property
    def is_analog(self) -> bool:
        return self.kind is SignalKind.ANALOG

    def as_bool(self) -> bool:
        if self.kind is not SignalKind.DIGITAL:
            raise TypeMismatch(expected=SignalKind.DIGITAL, actual=self.kind)
        return self.value

    def as_float(self) -> float:
        if self.kind is not SignalKind.ANALOG:
            raise TypeMismatch(expected=SignalKind.ANALOG, actual=self.kind)
        return self.value


class IOSignalInfo(Mapping[str, SignalValue]):
    """
    Read-only mapping from signal name to SignalValue.
    Names are kept exactly as the controller reported them.
    """

    __slots__ = ("_signals",)

    def __init__(self, signals: Optional[Mapping[str, SignalValue]] = None):
        self._signals: Mapping[str, SignalValue] = MappingProxyType(dict(signals or {}))

    def __getitem__(self, name: str) -> SignalValue:
        return self._signals[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._signals)

    def __len__(self) -> int:
        return len(self._signals)

    def __eq__(self, other) -> bool:
        if isinstance(other, Mapping):
            return dict(self._signals) == dict(other)
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._signals.items()))

    def __repr__(self) -> str:
        return f"IOSignalInfo({dict(self._signals)!r})"

    def kind_of(self, name: str) -> SignalKind:
        return self._signals[name].kind

    def read_bool(self, name: str) -> bool:
        value = self._signals[name]
        if value.kind is not SignalKind.DIGITAL:
            raise TypeMismatch(expected=SignalKind.DIGITAL, actual=value.kind, name=name)
        return value.value

    def read_float(self, name: str) -> float:
        value = self._signals[name]
        if value.kind is not SignalKind.ANALOG:
            raise TypeMismatch(expected=SignalKind.ANALOG, actual=value.kind, name=name)
        return value.value

    def to_dict(self) -> Dict[str, Union[bool, float]]:
        return {name: v.value for name, v in self._signals.items()}
