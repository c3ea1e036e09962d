"""Enums shared across progress tracking."""

import enum


class ActivityPhase(str, enum.Enum):
    active = "active"
    warning = "warning"
    forced_logout = "forced_logout"


class LogoutType(str, enum.Enum):
    explicit = "explicit"
    navigation = "navigation"
    timeout = "timeout"
