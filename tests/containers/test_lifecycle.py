"""Tests for the container status lifecycle."""

from datetime import date, timedelta

import pytest

from src.containers.lifecycle import (
    ContainerStateMachine,
    TransitionNotAllowed,
    transition_status,
)
from src.models.base import utcnow
from src.models.container import Container, ContainerStatus


def _container(
    status: ContainerStatus,
    end_date: date | None = None,
    start_date: date = date(2024, 1, 1),
) -> Container:
    return Container(
        id=1,
        container_number="MSCU1234567",
        client_id=1,
        container_type="20DV",
        status=status,
        start_date=start_date,
        end_date=end_date,
    )


def test_machine_reads_current_status() -> None:
    machine = ContainerStateMachine(_container(ContainerStatus.INACTIVE))
    assert machine.current_state.id == "inactive"


def test_deactivate_and_reactivate() -> None:
    container = _container(ContainerStatus.ACTIVE)

    assert transition_status(container, ContainerStatus.INACTIVE) is True
    assert container.status is ContainerStatus.INACTIVE

    assert transition_status(container, ContainerStatus.ACTIVE) is True
    assert container.status is ContainerStatus.ACTIVE


def test_same_status_is_a_no_op() -> None:
    container = _container(ContainerStatus.ACTIVE)
    assert transition_status(container, ContainerStatus.ACTIVE) is False
    assert container.status is ContainerStatus.ACTIVE


@pytest.mark.parametrize("start", [ContainerStatus.ACTIVE, ContainerStatus.INACTIVE])
def test_close_sets_end_date_when_missing(start: ContainerStatus) -> None:
    container = _container(start)

    transition_status(container, ContainerStatus.CLOSED)

    assert container.status is ContainerStatus.CLOSED
    assert container.end_date is not None


def test_close_before_start_ends_on_start_date() -> None:
    start = utcnow().date() + timedelta(days=10)
    container = _container(ContainerStatus.ACTIVE, start_date=start)

    transition_status(container, ContainerStatus.CLOSED)

    assert container.end_date == start


def test_close_keeps_existing_end_date() -> None:
    container = _container(ContainerStatus.ACTIVE, end_date=date(2024, 6, 30))

    transition_status(container, ContainerStatus.CLOSED)

    assert container.end_date == date(2024, 6, 30)


@pytest.mark.parametrize("target", [ContainerStatus.ACTIVE, ContainerStatus.INACTIVE])
def test_closed_is_final(target: ContainerStatus) -> None:
    container = _container(ContainerStatus.CLOSED)

    with pytest.raises(TransitionNotAllowed):
        transition_status(container, target)

    assert container.status is ContainerStatus.CLOSED
