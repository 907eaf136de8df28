"""SafetyGuard - construction site safety inspections for retail stores."""

__version__ = "0.1.0"
