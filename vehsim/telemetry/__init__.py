# Telemetry module - render handoff, logged field names, state checks
# FORBIDDEN: torch, models.*

from .render import RenderSnapshotBuffer, ForceSnapshot
from .validation import StateValidator
from . import fields
