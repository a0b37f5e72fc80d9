"""
Alice Magic - turns photos into Pixar-style cartoons.

Modules:
- controller: state machine of one transformation session
- stylization: client for the external image model
- service: web page and JSON API
"""

from .controller import TransformationController, SessionRegistry
from .images import ImageData
from .states import RequestState

__all__ = [
    "TransformationController",
    "SessionRegistry",
    "ImageData",
    "RequestState",
]
