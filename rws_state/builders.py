"""
Construction functions from raw response fields to model records.

Raw fields are mappings keyed by the RWS field names (the XHTML span classes).
Every function either returns a complete record or raises; enum-like fields
never raise and fall back to their unknown member instead.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .constants import (
    FALSE_STRINGS, NO_INTEGRATED_UNIT, TRUE_STRINGS,
    SPAN_SIGNAL_NAME, SPAN_SIGNAL_TYPE, SPAN_SIGNAL_VALUE,
)
from .diagnostics import DiagnosticLog, DuplicateSignal, SkippedSignal
from .enums import (
    Coordinate,
    MechanicalUnitMode,
    MechanicalUnitType,
    RAPIDTaskExecutionState,
    SignalKind,
)
from .errors import IncompleteResponse, InvalidFieldValue
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


logger = logging.getLogger(__name__)

_MISSING = object()


def _require(raw: Mapping[str, Any], entity: str, *keys: str):
    # First key is the RWS name; later keys are accepted aliases
    for key in keys:
        value = raw.get(key, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    raise IncompleteResponse(entity, keys[0])


def _text(raw: Mapping[str, Any], entity: str, *keys: str) -> str:
    value = _require(raw, entity, *keys)
    if isinstance(value, (list, tuple)):
        raise InvalidFieldValue(entity, keys[0], value)
    return str(value)


def _int(raw: Mapping[str, Any], entity: str, key: str) -> int:
    value = _require(raw, entity, key)
    if isinstance(value, bool):
        raise InvalidFieldValue(entity, key, value)
    try:
        return int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as e:
        raise InvalidFieldValue(entity, key, value) from e


def parse_bool(value, entity: str = "value", field: str = "value") -> bool:
    if isinstance(value, bool):
        return value
    # Integer 0/1 only; a float is an analog reading, never a digital one
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise InvalidFieldValue(entity, field, value)


def parse_float(value, entity: str = "value", field: str = "value") -> float:
    if isinstance(value, bool):
        raise InvalidFieldValue(entity, field, value)
    try:
        return float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as e:
        raise InvalidFieldValue(entity, field, value) from e


def _integration_name(raw: Mapping[str, Any], entity: str, key: str) -> Optional[str]:
    name = _text(raw, entity, key)
    if name == NO_INTEGRATED_UNIT:
        return None
    return name


def build_mechanical_unit_static_info(raw: Mapping[str, Any],
                                      diagnostics: Optional[DiagnosticLog] = None) -> MechanicalUnitStaticInfo:
    entity = "MechanicalUnitStaticInfo"
    return MechanicalUnitStaticInfo(
        type=MechanicalUnitType.from_raw(_require(raw, entity, "type"), diagnostics),
        task_name=_text(raw, entity, "task-name"),
        axes=_int(raw, entity, "axes"),
        axes_total=_int(raw, entity, "axes-total"),
        is_integrated_unit=_integration_name(raw, entity, "is-integrated-unit"),
        has_integrated_unit=_integration_name(raw, entity, "has-integrated-unit"),
    )


def build_mechanical_unit_dynamic_info(raw: Mapping[str, Any],
                                       diagnostics: Optional[DiagnosticLog] = None) -> MechanicalUnitDynamicInfo:
    entity = "MechanicalUnitDynamicInfo"
    return MechanicalUnitDynamicInfo(
        tool_name=_text(raw, entity, "tool-name"),
        wobj_name=_text(raw, entity, "wobj-name"),
        payload_name=_text(raw, entity, "payload-name"),
        total_payload_name=_text(raw, entity, "total-payload-name"),
        status=_text(raw, entity, "status"),
        mode=MechanicalUnitMode.from_raw(_require(raw, entity, "mode"), diagnostics),
        jog_mode=_text(raw, entity, "jog-mode"),
        coord_system=Coordinate.from_raw(_require(raw, entity, "coord-system"), diagnostics),
    )


def build_system_info(raw: Mapping[str, Any]) -> SystemInfo:
    entity = "SystemInfo"
    options = _require(raw, entity, "options")
    if isinstance(options, str):
        options = [options]
    return SystemInfo(
        robot_ware_version=_text(raw, entity, "rwversion"),
        system_name=_text(raw, entity, "name"),
        system_type=_text(raw, entity, "ctrl-type"),
        system_options=tuple(str(o) for o in options),
    )


def build_robotware_option_info(raw: Mapping[str, Any]) -> RobotWareOptionInfo:
    entity = "RobotWareOptionInfo"
    return RobotWareOptionInfo(
        name=_text(raw, entity, "option", "name"),
        description=_text(raw, entity, "desc", "description"),
    )


def build_rapid_module_info(raw: Mapping[str, Any]) -> RAPIDModuleInfo:
    entity = "RAPIDModuleInfo"
    return RAPIDModuleInfo(
        name=_text(raw, entity, "name"),
        type=_text(raw, entity, "type"),
    )


def build_rapid_task_info(raw: Mapping[str, Any],
                          diagnostics: Optional[DiagnosticLog] = None) -> RAPIDTaskInfo:
    entity = "RAPIDTaskInfo"
    return RAPIDTaskInfo(
        name=_text(raw, entity, "name"),
        is_motion_task=parse_bool(_require(raw, entity, "motiontask", "is_motion_task"), entity, "motiontask"),
        is_active=parse_bool(_require(raw, entity, "active", "is_active"), entity, "active"),
        execution_state=RAPIDTaskExecutionState.from_raw(
            _require(raw, entity, "excstate", "execution_state"), diagnostics
        ),
    )


def build_static_info(rapid_tasks: Iterable[RAPIDTaskInfo], system_info: SystemInfo) -> StaticInfo:
    return StaticInfo(rapid_tasks=tuple(rapid_tasks), system_info=system_info)


def build_signal_value(name: str, raw_value, kind: SignalKind) -> SignalValue:
    entity = f"signal '{name}'"
    if kind is SignalKind.DIGITAL:
        return SignalValue.digital(parse_bool(raw_value, entity))
    if kind is SignalKind.ANALOG:
        return SignalValue.analog(parse_float(raw_value, entity))
    raise ValueError(f"{entity}: cannot build a value for kind {kind.name}")


def build_io_signal_info(entries: Iterable[Sequence[Any]],
                         diagnostics: Optional[DiagnosticLog] = None) -> IOSignalInfo:
    """
    Build the signal map from (name, raw value, declared kind) triples.

    One entry per distinct name; when a name repeats, the last occurrence wins
    and the repeat is logged. Entries whose declared kind is neither digital
    nor analog are skipped.
    """
    signals: Dict[str, SignalValue] = {}
    for name, raw_value, raw_kind in entries:
        kind = SignalKind.from_raw(raw_kind, diagnostics)
        if kind is SignalKind.UNKNOWN:
            logger.warning(f"Signal {name!r}: declared kind {raw_kind!r} not representable; skipped")
            if diagnostics is not None:
                diagnostics.record(SkippedSignal(name=name, raw_kind=raw_kind))
            # The last occurrence wins even when it cannot be represented
            if signals.pop(name, None) is not None:
                logger.warning(f"Signal {name!r}: dropping earlier value superseded by skipped entry")
            continue
        value = build_signal_value(name, raw_value, kind)
        previous = signals.get(name)
        if previous is not None:
            logger.warning(f"Signal {name!r} reported more than once; keeping last value")
            if diagnostics is not None:
                diagnostics.record(DuplicateSignal(name=name, previous=previous, replacement=value))
        signals[name] = value
    return IOSignalInfo(signals)


def signal_entries_from_items(items: Iterable[Mapping[str, Any]]) -> Tuple[Tuple[str, Any, Any], ...]:
    """Flatten extracted `ios-signal-li` items into (name, raw value, declared kind) triples."""
    entries = []
    for item in items:
        name = _text(item, "IOSignal", SPAN_SIGNAL_NAME)
        entity = f"signal '{name}'"
        entries.append((name, _require(item, entity, SPAN_SIGNAL_VALUE), _require(item, entity, SPAN_SIGNAL_TYPE)))
    return tuple(entries)
