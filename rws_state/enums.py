from enum import Enum, auto
from typing import Dict, Optional

from .constants import (
    EXCSTATE_READY, EXCSTATE_STOPPED, EXCSTATE_STARTED,
    EXCSTATE_UNINITIALIZED, EXCSTATE_UNINIT, EXCSTATE_UNKNOWN,
    MECHUNIT_TYPE_NONE, MECHUNIT_TYPE_TCP_ROBOT, MECHUNIT_TYPE_ROBOT,
    MECHUNIT_TYPE_SINGLE, MECHUNIT_TYPE_UNDEFINED,
    MECHUNIT_MODE_ACTIVATED, MECHUNIT_MODE_DEACTIVATED, MECHUNIT_MODE_UNKNOWN,
    COORD_BASE, COORD_WORLD, COORD_TOOL, COORD_WOBJ, COORD_ACTIVE,
    SIGNAL_TYPE_DI, SIGNAL_TYPE_DO, SIGNAL_TYPE_AI, SIGNAL_TYPE_AO,
)
from .diagnostics import DiagnosticLog, note_unrecognized


class _RawVocabulary(Enum):
    """
    Base for controller-reported vocabularies.
    Subclasses name a fallback member and a lowercase raw-string table;
    `from_raw` is total and never raises.
    """

    @classmethod
    def _fallback(cls):
        raise NotImplementedError

    @classmethod
    def _table(cls) -> Dict[str, "_RawVocabulary"]:
        raise NotImplementedError

    @classmethod
    def from_raw(cls, raw, diagnostics: Optional[DiagnosticLog] = None):
        if isinstance(raw, cls):
            return raw
        key = raw.strip().lower() if isinstance(raw, str) else None
        member = cls._table().get(key) if key else None
        if member is None:
            member = cls._fallback()
            # An explicit "unknown" from the controller is information, not an anomaly
            if key != member.name.lower():
                note_unrecognized(cls.__name__, raw, member, diagnostics)
        return member


class RAPIDTaskExecutionState(_RawVocabulary):
    UNKNOWN = auto()
    READY = auto()
    STOPPED = auto()
    STARTED = auto()
    UNINITIALIZED = auto()

    @classmethod
    def _fallback(cls):
        return cls.UNKNOWN

    @classmethod
    def _table(cls):
        return {
            EXCSTATE_READY: cls.READY,
            EXCSTATE_STOPPED: cls.STOPPED,
            EXCSTATE_STARTED: cls.STARTED,
            EXCSTATE_UNINITIALIZED: cls.UNINITIALIZED,
            EXCSTATE_UNINIT: cls.UNINITIALIZED,
            EXCSTATE_UNKNOWN: cls.UNKNOWN,
        }


class MechanicalUnitType(_RawVocabulary):
    NONE = auto()       # no unit
    TCP_ROBOT = auto()  # multi-joint, accepts Cartesian commands
    ROBOT = auto()      # multi-joint, joint space only
    SINGLE = auto()     # one joint
    UNDEFINED = auto()  # type could not be resolved

    @classmethod
    def _fallback(cls):
        return cls.UNDEFINED

    @classmethod
    def _table(cls):
        return {
            MECHUNIT_TYPE_NONE.lower(): cls.NONE,
            MECHUNIT_TYPE_TCP_ROBOT.lower(): cls.TCP_ROBOT,
            MECHUNIT_TYPE_ROBOT.lower(): cls.ROBOT,
            MECHUNIT_TYPE_SINGLE.lower(): cls.SINGLE,
            MECHUNIT_TYPE_UNDEFINED.lower(): cls.UNDEFINED,
        }


class MechanicalUnitMode(_RawVocabulary):
    UNKNOWN = auto()
    ACTIVATED = auto()
    DEACTIVATED = auto()

    @classmethod
    def _fallback(cls):
        return cls.UNKNOWN

    @classmethod
    def _table(cls):
        return {
            MECHUNIT_MODE_ACTIVATED.lower(): cls.ACTIVATED,
            MECHUNIT_MODE_DEACTIVATED.lower(): cls.DEACTIVATED,
            MECHUNIT_MODE_UNKNOWN.lower(): cls.UNKNOWN,
        }


class Coordinate(_RawVocabulary):
    BASE = auto()
    WORLD = auto()
    TOOL = auto()
    WOBJ = auto()
    ACTIVE = auto()
    UNKNOWN = auto()

    @classmethod
    def _fallback(cls):
        return cls.UNKNOWN

    @classmethod
    def _table(cls):
        return {
            COORD_BASE.lower(): cls.BASE,
            COORD_WORLD.lower(): cls.WORLD,
            COORD_TOOL.lower(): cls.TOOL,
            COORD_WOBJ.lower(): cls.WOBJ,
            COORD_ACTIVE.lower(): cls.ACTIVE,
        }


class SignalKind(_RawVocabulary):
    UNKNOWN = auto()
    DIGITAL = auto()  # value is bool
    ANALOG = auto()   # value is float

    @classmethod
    def _fallback(cls):
        return cls.UNKNOWN

    @classmethod
    def _table(cls):
        return {
            SIGNAL_TYPE_DI.lower(): cls.DIGITAL,
            SIGNAL_TYPE_DO.lower(): cls.DIGITAL,
            SIGNAL_TYPE_AI.lower(): cls.ANALOG,
            SIGNAL_TYPE_AO.lower(): cls.ANALOG,
            "digital": cls.DIGITAL,
            "analog": cls.ANALOG,
        }
