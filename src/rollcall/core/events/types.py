"""Event type definitions."""

from enum import Enum

# Subscribing under this name receives every emitted event.
WILDCARD = "*"


class EventType(str, Enum):
    """Well-known event names, following the ``domain:verb`` convention."""

    # Students
    STUDENT_TOGGLE = "student:toggle"
    STUDENT_ADD = "student:add"
    STUDENT_EDIT = "student:edit"
    STUDENT_DELETE = "student:delete"

    # Tasks
    TASK_CREATE = "task:create"
    TASK_DELETE = "task:delete"
    TASK_SWITCH = "task:switch"
    TASK_SUBMIT = "task:submit"
    TASK_SCORE = "task:score"

    # State
    STATE_CHANGE = "state:change"
    STATE_RESET = "state:reset"

    # UI
    UI_TOAST = "ui:toast"
    UI_RENDER = "ui:render"

    # Application lifecycle
    APP_INITIALIZED = "app:initialized"
    APP_DESTROY = "app:destroy"
