"""Form submission with a duplicate-submit guard and notice mapping.

Payloads are validated locally with the same form models the API uses, so
an invalid form reports its field errors without a request being sent.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from src.core.logging import get_logger
from src.forms.clients import ClientCreateForm
from src.forms.containers import (
    ContainerCreateForm,
    ContainerUpdateForm,
    EventForm,
    InventoryItemForm,
)
from src.forms.errors import field_errors_from_validation
from src.sdk.notices import NoticeBoard
from src.sdk.session import ApiError, YardSession

logger = get_logger(__name__)

INVALID_FORM_MESSAGE = "Please correct the highlighted fields"


class SubmissionInProgress(RuntimeError):
    """Raised when a form is submitted again before the first call returns."""


class SubmissionGuard:
    """Allow one outstanding submission at a time (the disabled button)."""

    def __init__(self) -> None:
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        if self._pending:
            raise SubmissionInProgress("A submission is already in progress")
        self._pending = True
        try:
            yield
        finally:
            self._pending = False


@dataclass
class SubmissionResult:
    """Outcome of one submission.

    Attributes:
        ok: True when the server accepted the payload.
        data: Decoded response body on success.
        field_errors: Field name to message on failure, for inline display.
        status_code: HTTP status of a failure (0 when unreachable, None
            when the form was rejected before sending).
    """

    ok: bool
    data: Any = None
    field_errors: dict[str, str] = field(default_factory=dict)
    status_code: int | None = None


class FormSubmitter:
    """Submit create/update forms and turn outcomes into notices."""

    def __init__(self, session: YardSession, notices: NoticeBoard) -> None:
        self.session = session
        self.notices = notices
        self.guard = SubmissionGuard()

    async def submit(
        self,
        method: str,
        path: str,
        payload: dict[str, Any],
        *,
        success_message: str,
        form: type[BaseModel] | None = None,
        partial: bool = False,
    ) -> SubmissionResult:
        """Send one form, rejecting a second submit while this one is pending.

        Args:
            method: HTTP method.
            path: API path.
            payload: Raw form values.
            success_message: Notice shown when the server accepts the form.
            form: Model validating and normalizing ``payload`` before sending.
            partial: Send only the fields present in ``payload`` (updates).

        Raises:
            SubmissionInProgress: If a submission is already outstanding.
        """
        async with self.guard.hold():
            return await self._send(method, path, payload, success_message, form, partial)

    async def create_client(self, payload: dict[str, Any]) -> SubmissionResult:
        return await self.submit(
            "POST",
            "/api/clients",
            payload,
            success_message="Client created",
            form=ClientCreateForm,
        )

    async def create_container(self, payload: dict[str, Any]) -> SubmissionResult:
        return await self.submit(
            "POST",
            "/api/containers",
            payload,
            success_message="Container created",
            form=ContainerCreateForm,
        )

    async def update_container(
        self, container_id: int, payload: dict[str, Any]
    ) -> SubmissionResult:
        return await self.submit(
            "PATCH",
            f"/api/containers/{container_id}",
            payload,
            success_message="Container updated",
            form=ContainerUpdateForm,
            partial=True,
        )

    async def add_inventory_item(
        self, container_id: int, payload: dict[str, Any]
    ) -> SubmissionResult:
        return await self.submit(
            "POST",
            f"/api/containers/{container_id}/inventory",
            payload,
            success_message="Item added",
            form=InventoryItemForm,
        )

    async def add_event(self, container_id: int, payload: dict[str, Any]) -> SubmissionResult:
        return await self.submit(
            "POST",
            f"/api/containers/{container_id}/events",
            payload,
            success_message="Event recorded",
            form=EventForm,
        )

    async def create_container_with_new_client(
        self,
        client_payload: dict[str, Any],
        container_payload: dict[str, Any],
    ) -> tuple[SubmissionResult, SubmissionResult | None]:
        """Create a client, then a container attached to it.

        The two writes are independent: if the container fails, the new
        client is kept and the caller can retry the container alone.

        Returns:
            Tuple of (client result, container result or None if the client failed).
        """
        async with self.guard.hold():
            client_result = await self._send(
                "POST", "/api/clients", client_payload, "Client created", ClientCreateForm
            )
            if not client_result.ok:
                return client_result, None

            container_result = await self._send(
                "POST",
                "/api/containers",
                {**container_payload, "client_id": client_result.data["id"]},
                "Container created",
                ContainerCreateForm,
            )
            if not container_result.ok:
                logger.info(
                    "client_kept_after_container_failure",
                    client_id=client_result.data["id"],
                )
                self.notices.info("The new client was saved; the container was not")
            return client_result, container_result

    async def _send(
        self,
        method: str,
        path: str,
        payload: dict[str, Any],
        success_message: str,
        form: type[BaseModel] | None = None,
        partial: bool = False,
    ) -> SubmissionResult:
        if form is not None:
            try:
                payload = form.model_validate(payload).model_dump(
                    mode="json", exclude_unset=partial
                )
            except ValidationError as exc:
                self.notices.error(INVALID_FORM_MESSAGE)
                return SubmissionResult(ok=False, field_errors=field_errors_from_validation(exc))

        try:
            data = await self.session.request(method, path, json=payload)
        except ApiError as exc:
            self.notices.error(exc.message, redirect_to=exc.redirect_to)
            return SubmissionResult(
                ok=False,
                field_errors=exc.field_errors,
                status_code=exc.status_code,
            )
        self.notices.success(success_message)
        return SubmissionResult(ok=True, data=data)
