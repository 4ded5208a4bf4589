"""
Robot Web Services wire constants.
Keep raw strings here; the rest of the package compares against these names.
"""

# Sentinel reported for both integration relations of a mechanical unit
NO_INTEGRATED_UNIT = "NoIntegratedUnit"

# RAPID task execution state ("excstate")
EXCSTATE_READY = "ready"
EXCSTATE_STOPPED = "stopped"
EXCSTATE_STARTED = "started"
EXCSTATE_UNINITIALIZED = "uninitialized"
EXCSTATE_UNINIT = "uninit"  # short form used by some RobotWare releases
EXCSTATE_UNKNOWN = "unknown"

# Mechanical unit type
MECHUNIT_TYPE_NONE = "None"
MECHUNIT_TYPE_TCP_ROBOT = "TCPRobot"
MECHUNIT_TYPE_ROBOT = "Robot"
MECHUNIT_TYPE_SINGLE = "Single"
MECHUNIT_TYPE_UNDEFINED = "Undefined"

# Mechanical unit mode
MECHUNIT_MODE_ACTIVATED = "Activated"
MECHUNIT_MODE_DEACTIVATED = "Deactivated"
MECHUNIT_MODE_UNKNOWN = "Unknown"

# Coordinate system kind
COORD_BASE = "Base"
COORD_WORLD = "World"
COORD_TOOL = "Tool"
COORD_WOBJ = "Wobj"
COORD_ACTIVE = "Active"

# I/O signal types
SIGNAL_TYPE_DI = "DI"
SIGNAL_TYPE_DO = "DO"
SIGNAL_TYPE_AI = "AI"
SIGNAL_TYPE_AO = "AO"
SIGNAL_TYPE_GI = "GI"
SIGNAL_TYPE_GO = "GO"

# Boolean spellings used across RWS resources
TRUE_STRINGS = ("true", "on", "1", "yes")
FALSE_STRINGS = ("false", "off", "0", "no")

# XHTML list item classes
CLASS_RAPID_TASK = "rap-task-li"
CLASS_RAPID_MODULE = "rap-module-info-li"
CLASS_SYSTEM = "sys-system-li"
CLASS_SYSTEM_OPTION = "sys-option-li"
CLASS_CTRL_IDENTITY = "ctrl-identity-info-li"
CLASS_MECHUNIT = "ms-mechunit"
CLASS_IO_SIGNAL = "ios-signal-li"

# Span classes that are not a one-to-one field of a record
SPAN_OPTION = "option"
SPAN_CTRL_TYPE = "ctrl-type"
SPAN_SIGNAL_NAME = "name"
SPAN_SIGNAL_TYPE = "type"
SPAN_SIGNAL_VALUE = "lvalue"

# Resource paths (relative to the controller's base URL)
PATH_RAPID_TASKS = "/rw/rapid/tasks"
PATH_RAPID_MODULES = "/rw/rapid/modules?task={task}"
PATH_SYSTEM = "/rw/system"
PATH_ROBOTWARE_OPTIONS = "/rw/system/options"
PATH_CTRL_IDENTITY = "/ctrl/identity"
PATH_MECHUNIT = "/rw/motionsystem/mechunits/{unit}"
PATH_MECHUNIT_STATIC = "/rw/motionsystem/mechunits/{unit}?resource=static"
PATH_IO_SIGNALS = "/rw/iosystem/signals"
