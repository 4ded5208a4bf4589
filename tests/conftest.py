import threading

import pytest

from rws_state.client import RawStateSource, StateSynchronizer
from rws_state.config_schema import SyncConfig
from rws_state.diagnostics import DiagnosticLog


TASKS = [
    {'name': 'T_ROB1', 'type': 'normal', 'excstate': 'started', 'active': 'On', 'motiontask': 'TRUE'},
    {'name': 'T_BACK', 'type': 'static', 'excstate': 'ready', 'active': 'Off', 'motiontask': 'FALSE'},
]

SYSTEM = {
    'rwversion': '6.08.00.00',
    'name': 'IRB120_Cell',
    'ctrl-type': 'Virtual Controller',
    'options': ['RobotWare Base', 'English', '616-1 PC Interface'],
}

MECHUNIT_STATIC = {
    'type': 'TCPRobot',
    'task-name': 'T_ROB1',
    'axes': '6',
    'axes-total': '6',
    'is-integrated-unit': 'NoIntegratedUnit',
    'has-integrated-unit': 'NoIntegratedUnit',
}

MECHUNIT_DYNAMIC = {
    'tool-name': 'tool0',
    'wobj-name': 'wobj0',
    'payload-name': 'load0',
    'total-payload-name': 'load0',
    'status': 'Standby',
    'mode': 'Activated',
    'jog-mode': 'Linear',
    'coord-system': 'Base',
}

SIGNALS = [
    ('do1', '1', 'DO'),
    ('ai1', '3.5', 'AI'),
]


class FakeSource(RawStateSource):
    """In-memory source; assign attributes to change what the next refresh sees."""

    def __init__(self):
        self.tasks = [dict(t) for t in TASKS]
        self.system = dict(SYSTEM)
        self.options = [{'option': 'RobotWare Base', 'desc': 'Base functionality'}]
        self.modules = {'T_ROB1': [{'name': 'BASE', 'type': 'SysMod'}, {'name': 'MainModule', 'type': 'ProgMod'}]}
        self.mechunit_static = {'ROB_1': dict(MECHUNIT_STATIC)}
        self.mechunit_dynamic = {'ROB_1': dict(MECHUNIT_DYNAMIC)}
        self.signals = list(SIGNALS)
        self.fail = {}
        self.block = {}
        self.calls = []

    def _enter(self, name):
        self.calls.append(name)
        gate = self.block.get(name)
        if gate is not None:
            gate.wait(timeout=5.0)
        if name in self.fail:
            raise self.fail[name]

    def rapid_tasks(self):
        self._enter('rapid_tasks')
        return self.tasks

    def system_info(self):
        self._enter('system_info')
        return self.system

    def robotware_options(self):
        self._enter('robotware_options')
        return self.options

    def rapid_modules(self, task):
        self._enter('rapid_modules')
        return self.modules[task]

    def mechanical_unit_static(self, unit):
        self._enter('mechanical_unit_static')
        return self.mechunit_static[unit]

    def mechanical_unit_dynamic(self, unit):
        self._enter('mechanical_unit_dynamic')
        return self.mechunit_dynamic[unit]

    def io_signals(self):
        self._enter('io_signals')
        return self.signals


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def diagnostics():
    return DiagnosticLog()


@pytest.fixture
def sync(source, diagnostics):
    s = StateSynchronizer(source, SyncConfig(timeout_s=1.0), diagnostics)
    yield s
    # Release anything a test left blocked before shutting down
    for gate in source.block.values():
        gate.set()
    s.close()


@pytest.fixture
def gate():
    return threading.Event()
