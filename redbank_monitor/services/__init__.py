"""Service modules"""
from .scanner import StateScanner
from .scheduler import ScanScheduler, ScanState
from .monitor import Monitor

__all__ = ["StateScanner", "ScanScheduler", "ScanState", "Monitor"]
