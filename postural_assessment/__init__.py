"""Postural Assessment Engine - clinical posture findings from pose landmarks"""

__version__ = "1.0.0"
