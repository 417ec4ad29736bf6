# studenthome/core/fetch/__init__.py
from .image_check import DEFAULT_USER_AGENT, ImageChecker

__all__ = ["ImageChecker", "DEFAULT_USER_AGENT"]
