from enum import Enum


class TxState(str, Enum):
    """Lifecycle of a repository handle."""
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class BackendKind(str, Enum):
    """Storage mechanisms the user repository can be bound to."""
    ORM = "orm"
    CORE = "core"
    DRIVER = "driver"
