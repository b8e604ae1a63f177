"""Container status state machine.

Provides declarative status transitions for containers with callbacks
for side effects (end date bookkeeping, logging).
"""

from typing import TYPE_CHECKING

import structlog
from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from src.models.base import utcnow
from src.models.container import ContainerStatus

if TYPE_CHECKING:
    from src.models.container import Container

logger = structlog.get_logger()


class ContainerStateMachine(StateMachine):
    """State machine for container lifecycle management.

    States match the ContainerStatus enum:
    - active: Container in use in the yard
    - inactive: Temporarily out of use, may be reactivated
    - closed: Contract finished (final)

    Transitions:
    - deactivate: active -> inactive
    - reactivate: inactive -> active
    - close: active/inactive -> closed
    """

    active = State(initial=True, value=ContainerStatus.ACTIVE)
    inactive = State(value=ContainerStatus.INACTIVE)
    closed = State(final=True, value=ContainerStatus.CLOSED)

    deactivate = active.to(inactive)
    reactivate = inactive.to(active)
    close = active.to(closed) | inactive.to(closed)

    def __init__(self, container: "Container") -> None:
        """Bind the machine to a container's ``status`` column.

        Args:
            container: Container model instance to manage
        """
        self.container = container
        super().__init__(model=container, state_field="status")

    def on_deactivate(self) -> None:
        logger.info("container_deactivated", container_id=self.container.id)

    def on_reactivate(self) -> None:
        logger.info("container_reactivated", container_id=self.container.id)

    def on_close(self) -> None:
        """Stamp the end date when the container is closed without one.

        A container whose start date is still ahead ends on its start date.
        """
        if self.container.end_date is None:
            self.container.end_date = max(utcnow().date(), self.container.start_date)
        logger.info(
            "container_closed",
            container_id=self.container.id,
            end_date=str(self.container.end_date),
        )


# Event that moves a container into each target status.
_EVENT_FOR_TARGET = {
    ContainerStatus.ACTIVE: "reactivate",
    ContainerStatus.INACTIVE: "deactivate",
    ContainerStatus.CLOSED: "close",
}


def transition_status(container: "Container", target: ContainerStatus) -> bool:
    """Move a container to ``target`` through the allowed transitions.

    Args:
        container: Container to update in place.
        target: Desired status.

    Returns:
        True if the status changed, False if it already had that status.

    Raises:
        TransitionNotAllowed: If the lifecycle forbids the move.
    """
    if container.status == target:
        return False
    machine = ContainerStateMachine(container)
    machine.send(_EVENT_FOR_TARGET[target])
    return True


__all__ = [
    "ContainerStateMachine",
    "TransitionNotAllowed",
    "transition_status",
]
