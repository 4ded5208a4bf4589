"""Tests for the synchronization layer."""

import threading
import time

import pytest

from rws_state.client import (
    KIND_IO_SIGNALS,
    KIND_STATIC_INFO,
    StateSynchronizer,
    XmlResponseSource,
)
from rws_state.config_schema import SyncConfig
from rws_state.enums import MechanicalUnitType, RAPIDTaskExecutionState
from rws_state.errors import (
    IncompleteResponse,
    PartialAggregateFailure,
    RefreshTimeout,
)
from rws_state.status_model import StaticInfo

from test_xml_decoder import SYSTEM_XML, TASKS_XML


def test_refresh_static_info(sync):
    info = sync.refresh_static_info()
    assert isinstance(info, StaticInfo)
    assert [t.name for t in info.rapid_tasks] == ['T_ROB1', 'T_BACK']
    assert info.rapid_tasks[0].execution_state is RAPIDTaskExecutionState.STARTED
    assert info.system_info.system_name == 'IRB120_Cell'
    assert sync.static_info is info


def test_system_failure_fails_whole_aggregate(sync, source):
    source.fail['system_info'] = ConnectionError("controller went away")
    with pytest.raises(PartialAggregateFailure) as excinfo:
        sync.refresh_static_info()
    assert excinfo.value.failed_parts == ('system_info',)
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert 'rapid_tasks' in source.calls
    assert sync.static_info is None


def test_incomplete_part_fails_whole_aggregate(sync, source):
    del source.system['rwversion']
    with pytest.raises(PartialAggregateFailure) as excinfo:
        sync.refresh_static_info()
    assert isinstance(excinfo.value.__cause__, IncompleteResponse)


def test_failed_refresh_keeps_previous_snapshot(sync, source):
    first = sync.refresh_static_info()
    source.fail['rapid_tasks'] = ConnectionError("timeout")
    with pytest.raises(PartialAggregateFailure):
        sync.refresh_static_info()
    assert sync.static_info is first


def test_single_part_failure_propagates_unwrapped(sync, source):
    source.fail['io_signals'] = ConnectionError("refused")
    with pytest.raises(ConnectionError):
        sync.refresh_io_signals()
    assert sync.io_signals is None


def test_timeout_keeps_previous_snapshot(source, diagnostics):
    with StateSynchronizer(source, SyncConfig(timeout_s=0.2), diagnostics) as sync:
        first = sync.refresh_io_signals()
        gate = threading.Event()
        source.block['io_signals'] = gate
        try:
            with pytest.raises(RefreshTimeout) as excinfo:
                sync.refresh_io_signals()
            assert excinfo.value.kind == KIND_IO_SIGNALS
            assert sync.io_signals is first
        finally:
            gate.set()


def test_signals_replaced_wholesale(sync, source):
    first = sync.refresh_io_signals()
    assert set(first) == {'do1', 'ai1'}
    source.signals = [('do2', '0', 'DO')]
    second = sync.refresh_io_signals()
    assert set(second) == {'do2'}
    assert sync.io_signals is second
    # The earlier snapshot is untouched
    assert set(first) == {'do1', 'ai1'}


def test_listeners_fire_only_on_change(sync, source):
    seen = []
    sync.add_listener(KIND_IO_SIGNALS, lambda new, old: seen.append((new, old)))

    first = sync.refresh_io_signals()
    sync.refresh_io_signals()
    assert len(seen) == 1
    assert seen[0] == (first, None)

    source.signals = [('do1', '0', 'DO'), ('ai1', '3.5', 'AI')]
    second = sync.refresh_io_signals()
    assert len(seen) == 2
    assert seen[1] == (second, first)


def test_listener_error_does_not_fail_refresh(sync):
    def broken(new, old):
        raise RuntimeError("listener bug")

    sync.add_listener(KIND_STATIC_INFO, broken)
    assert sync.refresh_static_info() is sync.static_info


def test_remove_listener(sync):
    seen = []
    callback = lambda new, old: seen.append(new)  # noqa: E731
    sync.add_listener(KIND_IO_SIGNALS, callback)
    sync.remove_listener(KIND_IO_SIGNALS, callback)
    sync.refresh_io_signals()
    assert seen == []


def test_get_static_info_throttles(sync, source):
    first = sync.get_static_info(max_age_s=60.0)
    again = sync.get_static_info(max_age_s=60.0)
    assert again is first
    assert source.calls.count('rapid_tasks') == 1

    sync.get_static_info(max_age_s=0.0)
    assert source.calls.count('rapid_tasks') == 2


def test_mechanical_unit_refresh(sync):
    static = sync.refresh_mechanical_unit_static('ROB_1')
    dynamic = sync.refresh_mechanical_unit_dynamic('ROB_1')
    assert static.type is MechanicalUnitType.TCP_ROBOT
    assert static.is_integrated_unit is None
    assert dynamic.tool_name == 'tool0'
    assert sync.mechanical_unit_static('ROB_1') is static
    assert sync.mechanical_unit_dynamic('ROB_1') is dynamic
    assert sync.mechanical_unit_static('ROB_2') is None


def test_modules_and_options(sync):
    modules = sync.refresh_rapid_modules('T_ROB1')
    assert [m.name for m in modules] == ['BASE', 'MainModule']
    assert sync.rapid_modules('T_ROB1') == modules
    options = sync.refresh_robotware_options()
    assert options[0].name == 'RobotWare Base'
    assert sync.robotware_options is options


def test_same_kind_refreshes_are_serialized(source, diagnostics):
    active = []
    overlap = []
    original = source.io_signals

    def slow_signals():
        active.append(1)
        if len(active) > 1:
            overlap.append(True)
        time.sleep(0.05)
        active.pop()
        return original()

    source.io_signals = slow_signals
    with StateSynchronizer(source, SyncConfig(timeout_s=2.0), diagnostics) as sync:
        threads = [threading.Thread(target=sync.refresh_io_signals) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
    assert overlap == []


def test_different_kinds_run_independently(sync, source):
    gate = threading.Event()
    source.block['system_info'] = gate
    result = {}

    def refresh_static():
        try:
            result['static'] = sync.refresh_static_info()
        except Exception as e:
            result['static'] = e

    t = threading.Thread(target=refresh_static)
    t.start()
    # Signals do not wait for the blocked static info refresh
    signals = sync.refresh_io_signals()
    assert signals.read_bool('do1') is True
    gate.set()
    t.join()
    assert isinstance(result['static'], StaticInfo)


def test_hung_kind_does_not_starve_other_kinds(source, diagnostics):
    with StateSynchronizer(source, SyncConfig(timeout_s=0.2), diagnostics) as sync:
        gate = threading.Event()
        source.block['io_signals'] = gate
        try:
            with pytest.raises(RefreshTimeout):
                sync.refresh_io_signals()
            # The first call is still running, so the retry fails without queueing another
            with pytest.raises(RefreshTimeout):
                sync.refresh_io_signals()
            assert source.calls.count('io_signals') == 1

            static = sync.refresh_static_info()
            assert isinstance(static, StaticInfo)
        finally:
            gate.set()

        source.block.clear()
        deadline = time.monotonic() + 2.0
        while True:
            try:
                signals = sync.refresh_io_signals()
                break
            except RefreshTimeout:
                if time.monotonic() > deadline:
                    raise
                time.sleep(0.01)
        assert signals.read_bool('do1') is True


def test_config_validation():
    with pytest.raises(ValueError):
        SyncConfig(timeout_s=0)
    with pytest.raises(ValueError):
        SyncConfig(min_refresh_interval_s=-1)


IDENTITY_XML = """<html><body><ul>
<li class="ctrl-identity-info-li" title="identity">
  <span class="ctrl-name">IRB120_Cell</span>
  <span class="ctrl-type">Virtual Controller</span>
</li>
</ul></body></html>
"""

SIGNALS_XML = """<html><body><ul>
<li class="ios-signal-li" title="Local/DRV_1/do1">
  <span class="name">do1</span><span class="type">DO</span><span class="category"></span>
  <span class="lvalue">1</span><span class="lstate">not simulated</span>
</li>
<li class="ios-signal-li" title="Local/DRV_1/ai1">
  <span class="name">ai1</span><span class="type">AI</span>
  <span class="lvalue">3.5</span>
</li>
</ul></body></html>
"""


class TestXmlResponseSource:
    @pytest.fixture
    def responses(self):
        return {
            '/rw/rapid/tasks': TASKS_XML,
            '/rw/system': SYSTEM_XML,
            '/ctrl/identity': IDENTITY_XML,
            '/rw/iosystem/signals': SIGNALS_XML,
        }

    @pytest.fixture
    def xml_sync(self, responses):
        def fetch(path):
            return responses[path]

        with StateSynchronizer(XmlResponseSource(fetch)) as s:
            yield s

    def test_static_info_from_xml(self, xml_sync):
        info = xml_sync.refresh_static_info()
        assert [t.name for t in info.rapid_tasks] == ['T_ROB1', 'T_BACK']
        assert info.rapid_tasks[1].is_active is False
        assert info.system_info.robot_ware_version == '6.08.00.00'
        assert info.system_info.system_type == 'Virtual Controller'
        assert info.system_info.system_options == ('RobotWare Base', 'English', '616-1 PC Interface')

    def test_signals_from_xml(self, xml_sync):
        signals = xml_sync.refresh_io_signals()
        assert signals.read_bool('do1') is True
        assert signals.read_float('ai1') == 3.5

    def test_missing_identity_fails_aggregate(self, xml_sync, responses):
        del responses['/ctrl/identity']
        with pytest.raises(PartialAggregateFailure):
            xml_sync.refresh_static_info()
        assert xml_sync.static_info is None
