"""Async client SDK for the yard API."""

from src.sdk.listing import ContainerListController, ListFilters, ListState
from src.sdk.notices import Notice, NoticeBoard, NoticeLevel
from src.sdk.session import ApiError, YardSession
from src.sdk.submission import (
    FormSubmitter,
    SubmissionGuard,
    SubmissionInProgress,
    SubmissionResult,
)

__all__ = [
    "ApiError",
    "ContainerListController",
    "FormSubmitter",
    "ListFilters",
    "ListState",
    "Notice",
    "NoticeBoard",
    "NoticeLevel",
    "SubmissionGuard",
    "SubmissionInProgress",
    "SubmissionResult",
    "YardSession",
]
