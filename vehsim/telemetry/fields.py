# Telemetry field names offered to external loggers each tick

DL_TIMESTAMP = "timestamp"
LOGGER_POSE = "logger_pose"
LOGGER_WHEEL = "logger_wheel"

PL_Q_X = "Qx"
PL_Q_Y = "Qy"
PL_Q_Z = "Qz"
PL_Q_YAW = "Qyaw"
PL_Q_PITCH = "Qpitch"
PL_Q_ROLL = "Qroll"
PL_DQ_X = "dQx"
PL_DQ_Y = "dQy"
PL_DQ_Z = "dQz"

WL_TORQUE = "torque"
WL_WEIGHT = "weight"
WL_VEL_X = "velocity_x"
WL_VEL_Y = "velocity_y"
WL_FRIC_X = "friction_x"
WL_FRIC_Y = "friction_y"

POSE_FIELDS = [
    DL_TIMESTAMP,
    PL_Q_X, PL_Q_Y, PL_Q_Z, PL_Q_YAW, PL_Q_PITCH, PL_Q_ROLL,
    PL_DQ_X, PL_DQ_Y, PL_DQ_Z,
]

WHEEL_FIELDS = [
    DL_TIMESTAMP,
    WL_TORQUE, WL_WEIGHT, WL_VEL_X, WL_VEL_Y, WL_FRIC_X, WL_FRIC_Y,
]


def wheel_logger_name(index: int) -> str:
    """Logger key for wheel ``index`` (e.g. logger_wheel1 for index 0)."""
    return f"{LOGGER_WHEEL}{index + 1}"
