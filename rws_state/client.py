import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .builders import (
    build_io_signal_info,
    build_mechanical_unit_dynamic_info,
    build_mechanical_unit_static_info,
    build_rapid_module_info,
    build_rapid_task_info,
    build_robotware_option_info,
    build_static_info,
    build_system_info,
    signal_entries_from_items,
)
from .config_schema import SyncConfig
from .constants import (
    CLASS_CTRL_IDENTITY, CLASS_IO_SIGNAL, CLASS_MECHUNIT, CLASS_RAPID_MODULE,
    CLASS_RAPID_TASK, CLASS_SYSTEM, CLASS_SYSTEM_OPTION,
    PATH_CTRL_IDENTITY, PATH_IO_SIGNALS, PATH_MECHUNIT, PATH_MECHUNIT_STATIC,
    PATH_RAPID_MODULES, PATH_RAPID_TASKS, PATH_ROBOTWARE_OPTIONS, PATH_SYSTEM,
    SPAN_CTRL_TYPE, SPAN_OPTION,
)
from .diagnostics import DiagnosticLog
from .errors import PartialAggregateFailure, RefreshTimeout
from .status_model import (
    IOSignalInfo,
    MechanicalUnitDynamicInfo,
    MechanicalUnitStaticInfo,
    RAPIDModuleInfo,
    RobotWareOptionInfo,
    StaticInfo,
)
from .xml_decoder import collect_span_texts, parse_list_items, parse_single_item


logger = logging.getLogger(__name__)

# Snapshot kinds; unit- and task-scoped kinds are suffixed with ":<name>"
KIND_STATIC_INFO = "static_info"
KIND_IO_SIGNALS = "io_signals"
KIND_ROBOTWARE_OPTIONS = "robotware_options"
KIND_RAPID_MODULES = "rapid_modules"
KIND_MECHUNIT_STATIC = "mechunit_static"
KIND_MECHUNIT_DYNAMIC = "mechunit_dynamic"


def scoped_kind(kind: str, name: str) -> str:
    return f"{kind}:{name}"


class RawStateSource:
    """
    Contract for whatever fetches raw controller state.
    Record-valued methods return mappings keyed by RWS field names;
    io_signals returns (name, raw value, declared kind) triples.
    """

    def rapid_tasks(self) -> List[Mapping[str, Any]]:
        raise NotImplementedError

    def system_info(self) -> Mapping[str, Any]:
        raise NotImplementedError

    def robotware_options(self) -> List[Mapping[str, Any]]:
        raise NotImplementedError

    def rapid_modules(self, task: str) -> List[Mapping[str, Any]]:
        raise NotImplementedError

    def mechanical_unit_static(self, unit: str) -> Mapping[str, Any]:
        raise NotImplementedError

    def mechanical_unit_dynamic(self, unit: str) -> Mapping[str, Any]:
        raise NotImplementedError

    def io_signals(self) -> List[Tuple[str, Any, Any]]:
        raise NotImplementedError


class XmlResponseSource(RawStateSource):
    """
    RawStateSource over RWS XHTML responses.
    `fetch(path)` performs the GET (transport, auth and session are the
    caller's business) and returns the response body.
    """

    def __init__(self, fetch: Callable[[str], str]):
        self._fetch = fetch

    def rapid_tasks(self):
        return parse_list_items(self._fetch(PATH_RAPID_TASKS), CLASS_RAPID_TASK)

    def system_info(self):
        system_xml = self._fetch(PATH_SYSTEM)
        system = parse_single_item(system_xml, CLASS_SYSTEM)
        identity = parse_single_item(self._fetch(PATH_CTRL_IDENTITY), CLASS_CTRL_IDENTITY)
        return {
            'rwversion': system.get('rwversion'),
            'name': system.get('name'),
            SPAN_CTRL_TYPE: identity.get(SPAN_CTRL_TYPE),
            'options': collect_span_texts(system_xml, CLASS_SYSTEM_OPTION, SPAN_OPTION),
        }

    def robotware_options(self):
        return parse_list_items(self._fetch(PATH_ROBOTWARE_OPTIONS), CLASS_SYSTEM_OPTION)

    def rapid_modules(self, task: str):
        return parse_list_items(self._fetch(PATH_RAPID_MODULES.format(task=task)), CLASS_RAPID_MODULE)

    def mechanical_unit_static(self, unit: str):
        return parse_single_item(self._fetch(PATH_MECHUNIT_STATIC.format(unit=unit)), CLASS_MECHUNIT)

    def mechanical_unit_dynamic(self, unit: str):
        return parse_single_item(self._fetch(PATH_MECHUNIT.format(unit=unit)), CLASS_MECHUNIT)

    def io_signals(self):
        return signal_entries_from_items(parse_list_items(self._fetch(PATH_IO_SIGNALS), CLASS_IO_SIGNAL))


class StateSynchronizer:
    """
    Fills and refreshes snapshots from a RawStateSource.

    A refresh either publishes a complete new value or leaves the previous one
    in place. Refreshes of the same kind are serialized; different kinds run
    independently. Listeners are called only when the value actually changed.
    """

    def __init__(self, source: RawStateSource, config: Optional[SyncConfig] = None,
                 diagnostics: Optional[DiagnosticLog] = None):
        self._source = source
        self.config = config or SyncConfig()
        self.diagnostics = diagnostics
        self._state_lock = threading.Lock()
        self._kind_locks: Dict[str, threading.Lock] = {}
        # One pool per kind, so a hung query only ever holds its own kind's workers
        self._executors: Dict[str, ThreadPoolExecutor] = {}
        self._abandoned: Dict[str, List[Future]] = {}
        self._snapshots: Dict[str, Any] = {}
        self._refreshed_at: Dict[str, float] = {}
        self._listeners: Dict[str, List[Callable[[Any, Any], None]]] = {}

    # Lifecycle
    def close(self):
        with self._state_lock:
            executors = list(self._executors.values())
            self._executors.clear()
        for executor in executors:
            executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # Listeners
    def add_listener(self, kind: str, callback: Callable[[Any, Any], None]):
        """Register callback(new, previous) for a snapshot kind."""
        with self._state_lock:
            self._listeners.setdefault(kind, []).append(callback)

    def remove_listener(self, kind: str, callback: Callable[[Any, Any], None]):
        with self._state_lock:
            callbacks = self._listeners.get(kind, [])
            if callback in callbacks:
                callbacks.remove(callback)

    # Latest snapshots
    def latest(self, kind: str):
        with self._state_lock:
            return self._snapshots.get(kind)

    def age(self, kind: str) -> Optional[float]:
        with self._state_lock:
            at = self._refreshed_at.get(kind)
        if at is None:
            return None
        return time.monotonic() - at

    @property
    def static_info(self) -> Optional[StaticInfo]:
        return self.latest(KIND_STATIC_INFO)

    @property
    def io_signals(self) -> Optional[IOSignalInfo]:
        return self.latest(KIND_IO_SIGNALS)

    @property
    def robotware_options(self) -> Optional[Tuple[RobotWareOptionInfo, ...]]:
        return self.latest(KIND_ROBOTWARE_OPTIONS)

    def rapid_modules(self, task: str) -> Optional[Tuple[RAPIDModuleInfo, ...]]:
        return self.latest(scoped_kind(KIND_RAPID_MODULES, task))

    def mechanical_unit_static(self, unit: str) -> Optional[MechanicalUnitStaticInfo]:
        return self.latest(scoped_kind(KIND_MECHUNIT_STATIC, unit))

    def mechanical_unit_dynamic(self, unit: str) -> Optional[MechanicalUnitDynamicInfo]:
        return self.latest(scoped_kind(KIND_MECHUNIT_DYNAMIC, unit))

    # Refresh operations
    def refresh_static_info(self) -> StaticInfo:
        source, diag = self._source, self.diagnostics
        parts = {
            'rapid_tasks': lambda: tuple(build_rapid_task_info(raw, diag) for raw in source.rapid_tasks()),
            'system_info': lambda: build_system_info(source.system_info()),
        }
        return self._refresh(
            KIND_STATIC_INFO, parts,
            lambda r: build_static_info(r['rapid_tasks'], r['system_info']),
        )

    def get_static_info(self, max_age_s: Optional[float] = None) -> StaticInfo:
        """Return the cached StaticInfo unless it is older than max_age_s."""
        if max_age_s is None:
            max_age_s = self.config.min_refresh_interval_s
        age = self.age(KIND_STATIC_INFO)
        cached = self.static_info
        if cached is not None and age is not None and age <= max_age_s:
            return cached
        return self.refresh_static_info()

    def refresh_io_signals(self) -> IOSignalInfo:
        source, diag = self._source, self.diagnostics
        return self._refresh(
            KIND_IO_SIGNALS,
            {'io_signals': lambda: build_io_signal_info(source.io_signals(), diag)},
        )

    def refresh_robotware_options(self) -> Tuple[RobotWareOptionInfo, ...]:
        source = self._source
        return self._refresh(
            KIND_ROBOTWARE_OPTIONS,
            {'robotware_options': lambda: tuple(build_robotware_option_info(raw) for raw in source.robotware_options())},
        )

    def refresh_rapid_modules(self, task: str) -> Tuple[RAPIDModuleInfo, ...]:
        source = self._source
        return self._refresh(
            scoped_kind(KIND_RAPID_MODULES, task),
            {'rapid_modules': lambda: tuple(build_rapid_module_info(raw) for raw in source.rapid_modules(task))},
        )

    def refresh_mechanical_unit_static(self, unit: str) -> MechanicalUnitStaticInfo:
        source, diag = self._source, self.diagnostics
        return self._refresh(
            scoped_kind(KIND_MECHUNIT_STATIC, unit),
            {'mechanical_unit_static': lambda: build_mechanical_unit_static_info(source.mechanical_unit_static(unit), diag)},
        )

    def refresh_mechanical_unit_dynamic(self, unit: str) -> MechanicalUnitDynamicInfo:
        source, diag = self._source, self.diagnostics
        return self._refresh(
            scoped_kind(KIND_MECHUNIT_DYNAMIC, unit),
            {'mechanical_unit_dynamic': lambda: build_mechanical_unit_dynamic_info(source.mechanical_unit_dynamic(unit), diag)},
        )

    # Internal helpers
    def _lock_for(self, kind: str) -> threading.Lock:
        with self._state_lock:
            lock = self._kind_locks.get(kind)
            if lock is None:
                lock = self._kind_locks[kind] = threading.Lock()
            return lock

    def _executor_for(self, kind: str, workers: int) -> ThreadPoolExecutor:
        with self._state_lock:
            executor = self._executors.get(kind)
            if executor is None:
                executor = self._executors[kind] = ThreadPoolExecutor(
                    max_workers=workers, thread_name_prefix=f"rws-sync-{kind}",
                )
            return executor

    def _refresh(self, kind: str, parts: Dict[str, Callable[[], Any]],
                 assemble: Optional[Callable[[Dict[str, Any]], Any]] = None):
        with self._lock_for(kind):
            still_running = [f for f in self._abandoned.get(kind, ()) if not f.done()]
            self._abandoned[kind] = still_running
            if still_running:
                # Queries from a timed-out round still hold this kind's workers
                logger.error(f"Refresh of {kind} skipped; {len(still_running)} timed-out call(s) still running")
                raise RefreshTimeout(kind, self.config.timeout_s)

            started = time.monotonic()
            executor = self._executor_for(kind, len(parts))
            futures = {name: executor.submit(fn) for name, fn in parts.items()}
            _done, pending = wait(futures.values(), timeout=self.config.timeout_s)
            if pending:
                for f in pending:
                    if not f.cancel():
                        self._abandoned[kind].append(f)
                logger.error(f"Refresh of {kind} timed out after {self.config.timeout_s}s; keeping previous snapshot")
                raise RefreshTimeout(kind, self.config.timeout_s)

            results: Dict[str, Any] = {}
            failures: Dict[str, BaseException] = {}
            for name, f in futures.items():
                exc = f.exception()
                if exc is not None:
                    failures[name] = exc
                else:
                    results[name] = f.result()

            if failures:
                first = next(iter(failures.values()))
                logger.error(f"Refresh of {kind} failed ({', '.join(failures)}): {first}")
                if len(parts) > 1:
                    raise PartialAggregateFailure(kind, list(failures)) from first
                raise first

            if assemble is None:
                (value,) = results.values()
            else:
                value = assemble(results)
            logger.debug(f"Refreshed {kind} in {(time.monotonic() - started) * 1000.0:.1f} ms")
            self._publish(kind, value)
            return value

    def _publish(self, kind: str, value):
        with self._state_lock:
            previous = self._snapshots.get(kind)
            self._snapshots[kind] = value
            self._refreshed_at[kind] = time.monotonic()
            listeners = list(self._listeners.get(kind, ()))

        if previous == value:
            logger.debug(f"{kind} unchanged since last refresh")
            return
        for callback in listeners:
            try:
                callback(value, previous)
            except Exception:
                logger.exception(f"Listener for {kind} raised")
