"""
rws_state

Typed controller state snapshots for ABB Robot Web Services clients.

This package models mechanical units, RAPID tasks and modules, system identity
and I/O signal values as immutable value types, with total construction
functions from raw response fields and a synchronization layer that refreshes
snapshots atomically.
"""

from .builders import (
    build_io_signal_info,
    build_mechanical_unit_dynamic_info,
    build_mechanical_unit_static_info,
    build_rapid_module_info,
    build_rapid_task_info,
    build_robotware_option_info,
    build_static_info,
    build_system_info,
)
from .client import RawStateSource, StateSynchronizer, XmlResponseSource
from .config_schema import SyncConfig
from .diagnostics import DiagnosticLog
from .enums import (
    Coordinate,
    MechanicalUnitMode,
    MechanicalUnitType,
    RAPIDTaskExecutionState,
    SignalKind,
)
from .errors import (
    IncompleteResponse,
    InvalidFieldValue,
    PartialAggregateFailure,
    RefreshTimeout,
    ResponseParseError,
    RWSStateError,
    TypeMismatch,
)
from .status_model import (
    IOSignalInfo,
    MechanicalUnitDynamicInfo,
    MechanicalUnitStaticInfo,
    RAPIDModuleInfo,
    RAPIDTaskInfo,
    RobotWareOptionInfo,
    SignalValue,
    StaticInfo,
    SystemInfo,
)

__all__ = [
    "builders",
    "client",
    "config_schema",
    "constants",
    "diagnostics",
    "enums",
    "errors",
    "status_model",
    "xml_decoder",
]

__version__ = "0.1.0"
