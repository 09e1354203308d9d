from .camera import Camera
from .cameracontroller import CameraController

__all__ = [
    "Camera",
    "CameraController",
]
