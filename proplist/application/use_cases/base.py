"""Shared plumbing for every use case.

A use case is a small class whose ``execute`` coroutine is wrapped by
:func:`use_case_boundary`.  The boundary:

1. Tags the execution with a short request id (``REQUEST_ID_CTX``) so every
   log line it produces, including those of tasks fanned out with
   ``asyncio.gather``, can be correlated.
2. Converts a :class:`~proplist.core.exceptions.DomainError` raised by an
   entity or policy into ``Err(error)`` and logs it at WARNING with
   ``event=USE_CASE_REJECTED``.

Anything else (a bug, a cancelled task) propagates unchanged.

Typical usage::

    class PauseProperty(UseCase):
        @use_case_boundary
        async def execute(self, raw) -> Result[PropertyDTO]:
            ...
"""

from __future__ import annotations

import asyncio
import functools
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

from proplist.application.dto import (
    PROPERTY_PATCH_FIELDS,
    AuthProfile,
    DocumentDTO,
    MediaDTO,
    PropertyDTO,
)
from proplist.application.mappers import property_from_domain, property_to_domain
from proplist.application.ports import AuthService, DocumentRepo, MediaStorage, PropertyRepo
from proplist.core import events
from proplist.core.clock import Clock
from proplist.core.exceptions import DomainError
from proplist.core.logging_config import REQUEST_ID_CTX
from proplist.core.result import Err, Ok, Result
from proplist.core.settings import Settings
from proplist.domain.enums import Currency, DocumentType, VerificationStatus
from proplist.domain.policies.completeness import MIN_PUBLISH_SCORE
from proplist.domain.policies.documents import rpp_status_from_docs
from proplist.domain.property import Property

__all__ = [
    "PublishRules",
    "UseCaseDeps",
    "UseCase",
    "use_case_boundary",
    "load_caller_and_property",
    "load_assets",
    "changed_columns",
    "score_with_assets",
    "refresh_derived_state",
]

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PublishRules:
    """Tunable business thresholds, normally taken from :class:`Settings`."""

    min_score: int = MIN_PUBLISH_SCORE
    block_if_rpp_rejected: bool = True
    home_currency: Currency = Currency.MXN

    @classmethod
    def from_settings(cls, settings: Settings) -> PublishRules:
        return cls(
            min_score=settings.min_publish_score,
            block_if_rpp_rejected=settings.block_if_rpp_rejected,
            home_currency=Currency(settings.home_currency),
        )


@dataclass(frozen=True)
class UseCaseDeps:
    """Ports and collaborators injected into every use case."""

    properties: PropertyRepo
    documents: DocumentRepo
    media: MediaStorage
    auth: AuthService
    clock: Clock
    rules: PublishRules = field(default_factory=PublishRules)


class UseCase:
    """Base class holding the injected dependencies."""

    def __init__(self, deps: UseCaseDeps) -> None:
        self._deps = deps

    @property
    def deps(self) -> UseCaseDeps:
        return self._deps


def use_case_boundary(
    func: Callable[P, Awaitable[Result[T]]],
) -> Callable[P, Awaitable[Result[T]]]:
    """Decorate an ``execute`` coroutine with request tagging and error funnelling."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
        owner = type(args[0]).__name__ if args else func.__qualname__
        token = None
        if REQUEST_ID_CTX.get() == "-":
            token = REQUEST_ID_CTX.set(uuid.uuid4().hex[:8])
        try:
            return await func(*args, **kwargs)
        except DomainError as exc:
            logger.warning(
                "%s rejected: [%s] %s",
                owner,
                exc.code,
                exc,
                extra={"event": events.USE_CASE_REJECTED, "error_code": str(exc.code)},
            )
            return Err(exc)
        finally:
            if token is not None:
                REQUEST_ID_CTX.reset(token)

    return wrapper


# ---------------------------------------------------------------------------
# Shared loaders
# ---------------------------------------------------------------------------


async def load_caller_and_property(
    deps: UseCaseDeps, property_id: str
) -> Result[tuple[AuthProfile, PropertyDTO]]:
    """Fetch the caller and the property concurrently.

    The two reads are independent; the auth error wins when both fail.
    """
    auth_result, prop_result = await asyncio.gather(
        deps.auth.get_current(), deps.properties.get_by_id(property_id)
    )
    if isinstance(auth_result, Err):
        return auth_result
    if isinstance(prop_result, Err):
        return prop_result
    return Ok((auth_result.value, prop_result.value))


async def load_assets(
    deps: UseCaseDeps, property_id: str
) -> Result[tuple[list[MediaDTO], list[DocumentDTO]]]:
    """Fetch media and documents of a property concurrently."""
    media_result, docs_result = await asyncio.gather(
        deps.media.list_media(property_id), deps.documents.list_by_property(property_id)
    )
    if isinstance(media_result, Err):
        return media_result
    if isinstance(docs_result, Err):
        return docs_result
    return Ok((media_result.value, docs_result.value))


def changed_columns(before: PropertyDTO, after: PropertyDTO) -> dict[str, Any]:
    """Patch holding only the persisted columns whose value differs."""
    return {
        name: getattr(after, name)
        for name in sorted(PROPERTY_PATCH_FIELDS)
        if getattr(after, name) != getattr(before, name)
    }


def score_with_assets(
    prop: Property, media: Sequence[MediaDTO], docs: Sequence[DocumentDTO]
) -> int:
    """Recompute and store the completeness score of *prop* from its asset lists."""
    return prop.compute_completeness(
        media_count=len(media),
        has_rpp_doc=any(d.doc_type is DocumentType.RPP_CERTIFICATE for d in docs),
        document_count=len(docs),
    )


async def refresh_derived_state(
    deps: UseCaseDeps, property_id: str, *, sync_rpp: bool = False
) -> Result[PropertyDTO]:
    """Re-derive the columns that depend on a property's media and documents.

    The completeness score is always recomputed.  With *sync_rpp* the RPP
    summary is re-derived from the RPP documents too; a property left without
    any falls back to ``pending``.  Nothing is written when neither value
    moved.

    Returns:
        The refreshed snapshot.
    """
    prop_result = await deps.properties.get_by_id(property_id)
    if isinstance(prop_result, Err):
        return prop_result
    assets = await load_assets(deps, property_id)
    if isinstance(assets, Err):
        return assets
    media, docs = assets.value

    before = prop_result.value
    prop = property_to_domain(before, deps.clock)
    if sync_rpp:
        summary = rpp_status_from_docs(docs) or VerificationStatus.PENDING
        if summary is not prop.rpp_verified:
            prop.set_rpp_status(summary)
    score_with_assets(prop, media, docs)
    after = property_from_domain(prop)

    patch = changed_columns(before, after)
    patch.pop("updated_at", None)
    if not patch:
        return prop_result
    patch["updated_at"] = after.updated_at
    updated = await deps.properties.update(property_id, patch)
    if isinstance(updated, Err):
        return updated
    logger.debug("Derived state of %s refreshed: %s", property_id, sorted(patch))
    return Ok(after)
