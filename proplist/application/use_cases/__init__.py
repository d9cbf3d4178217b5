"""Use cases: one class per operation, each with a Result-returning ``execute``."""

from proplist.application.use_cases.auth import GetAuthProfile
from proplist.application.use_cases.base import PublishRules, UseCase, UseCaseDeps
from proplist.application.use_cases.documents import (
    AttachDocument,
    DeleteDocument,
    ListPropertyDocuments,
    VerifyRpp,
)
from proplist.application.use_cases.lifecycle import (
    MarkSold,
    PauseProperty,
    PublishProperty,
    SchedulePublish,
)
from proplist.application.use_cases.media import (
    RemoveMedia,
    ReorderMedia,
    SetCoverMedia,
    UploadMedia,
)
from proplist.application.use_cases.properties import (
    CreateProperty,
    DeleteProperty,
    DuplicateProperty,
    GetProperty,
    ListProperties,
    UpdateProperty,
)
from proplist.application.use_cases.public import GetPublicProperty, ListPublishedProperties
from proplist.application.use_cases.readiness import GetPropertyReadiness

__all__ = [
    # Plumbing
    "UseCase",
    "UseCaseDeps",
    "PublishRules",
    # Auth
    "GetAuthProfile",
    # Properties
    "CreateProperty",
    "UpdateProperty",
    "GetProperty",
    "ListProperties",
    "DuplicateProperty",
    "DeleteProperty",
    # Lifecycle
    "PublishProperty",
    "PauseProperty",
    "SchedulePublish",
    "MarkSold",
    # Media
    "UploadMedia",
    "RemoveMedia",
    "SetCoverMedia",
    "ReorderMedia",
    # Documents
    "AttachDocument",
    "ListPropertyDocuments",
    "DeleteDocument",
    "VerifyRpp",
    # Readiness
    "GetPropertyReadiness",
    # Public
    "ListPublishedProperties",
    "GetPublicProperty",
]
