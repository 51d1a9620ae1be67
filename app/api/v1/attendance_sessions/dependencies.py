from fastapi import Request

from .scheduler import CodeRotationScheduler


def get_rotation_scheduler(request: Request) -> CodeRotationScheduler:
    """The process-wide scheduler created in the application lifespan."""
    return request.app.state.rotation_scheduler
