"""Staff domain - Team members, their services and weekly schedules"""

from .router import router

__all__ = ["router"]
