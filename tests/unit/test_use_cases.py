"""Unit tests for the use cases, wired over the in-memory adapters.

Covers:
- Property create / update / get / list / duplicate / delete.
- Lifecycle: publish gate, idempotent publish, schedule, pause, mark sold.
- Media: upload, cover selection, removal, explicit reorder.
- Documents: attach with legacy types, RPP verification summary, deletion.
- Live readiness and the anonymous public read side.
- Error funnelling: auth, validation and domain rejections come back as
  ``Err`` values, and domain rejections are logged with USE_CASE_REJECTED.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from proplist.application.container import Container, build_container
from proplist.application.dto import AuthProfile, PropertyDTO
from proplist.application.use_cases import PublishRules, UseCaseDeps
from proplist.core import events
from proplist.core.clock import FixedClock
from proplist.core.exceptions import (
    AuthError,
    ConflictError,
    InputValidationError,
    InvalidValueError,
    InvariantViolationError,
    KycRequiredError,
    NotFoundError,
    PublishBlockedError,
    RppRejectedError,
    StatusTransitionError,
)
from proplist.core.ids import new_id
from proplist.core.result import Err, Ok, unwrap
from proplist.domain.enums import (
    DocumentType,
    MediaType,
    PropertyStatus,
    ReadinessIssue,
    VerificationStatus,
)
from proplist.storage.memory import InMemoryAuthService, MemoryStore

logger = logging.getLogger(__name__)

# Must match the conftest profile and clock.
USER_ID = "11111111-1111-4111-8111-111111111111"
ORG_ID = "22222222-2222-4222-8222-222222222222"
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Factories / helpers
# ---------------------------------------------------------------------------


def _create_raw(**overrides: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "title": "Casa en Chapalita",
        "property_type": "house",
        "price": {"amount": 3_500_000},
        "address": {"city": "Guadalajara", "state": "Jalisco", "neighborhood": "Chapalita"},
        "description": "Dos plantas con jardín",
        "amenities": ["garden"],
        "bedrooms": 3,
    }
    raw.update(overrides)
    return raw


async def _create(app: Container, **overrides: Any) -> PropertyDTO:
    return unwrap(await app.create_property.execute(_create_raw(**overrides)))


async def _upload(
    app: Container, property_id: str, media_type: str = "image", file_name: str = "front.jpg"
) -> Any:
    return unwrap(
        await app.upload_media.execute(
            {
                "property_id": property_id,
                "file_name": file_name,
                "content_type": "image/jpeg",
                "data": b"\xff\xd8\xff",
                "media_type": media_type,
            }
        )
    )


async def _attach(app: Container, property_id: str, doc_type: str = "rpp_certificate") -> Any:
    return unwrap(
        await app.attach_document.execute(
            {"property_id": property_id, "doc_type": doc_type, "url": "https://files/doc.pdf"}
        )
    )


async def _publishable(app: Container, **overrides: Any) -> PropertyDTO:
    """A draft whose stored score (89) clears the default threshold."""
    dto = await _create(app, **overrides)
    await _upload(app, dto.id)
    return unwrap(await app.get_property.execute({"id": dto.id}))


def _err(result: Any, kind: type[Exception]) -> Any:
    assert isinstance(result, Err), f"expected Err({kind.__name__}), got {result!r}"
    assert isinstance(result.error, kind), f"expected {kind.__name__}, got {result.error!r}"
    return result.error


# ===========================================================================
# Create / update / get
# ===========================================================================


class TestCreateProperty:
    async def test_creates_scored_draft_owned_by_caller(
        self, app: Container, store: MemoryStore
    ) -> None:
        dto = await _create(app)
        assert dto.status is PropertyStatus.DRAFT
        assert (dto.org_id, dto.lister_user_id) == (ORG_ID, USER_ID)
        assert dto.price_currency == "MXN"
        assert dto.country == "MX"
        assert dto.completeness_score == 78
        assert dto.created_at == T0
        assert store.properties[dto.id] == dto

    async def test_caller_without_org_owns_listing(
        self, app: Container, auth: InMemoryAuthService
    ) -> None:
        auth.profile = AuthProfile(user_id=USER_ID, kyc_status=VerificationStatus.VERIFIED)
        dto = await _create(app)
        assert dto.org_id == USER_ID

    async def test_explicit_currency_and_location(self, app: Container) -> None:
        dto = await _create(
            app, price={"amount": 250_000, "currency": "usd"}, location={"lat": 20.67, "lng": -103.39}
        )
        assert dto.price_currency == "USD"
        assert dto.location is not None
        assert dto.location.lat == 20.67

    async def test_invalid_input_lists_issues(self, app: Container, store: MemoryStore) -> None:
        result = await app.create_property.execute(_create_raw(price={"amount": 0}, colour="red"))
        error = _err(result, InputValidationError)
        assert any(issue.startswith("price.amount") for issue in error.issues)
        assert any(issue.startswith("colour") for issue in error.issues)
        assert store.properties == {}

    async def test_signed_out_caller(
        self, app: Container, auth: InMemoryAuthService, store: MemoryStore
    ) -> None:
        auth.profile = None
        _err(await app.create_property.execute(_create_raw()), AuthError)
        assert store.properties == {}


class TestUpdateProperty:
    async def test_partial_update(self, app: Container) -> None:
        dto = await _create(app)
        updated = unwrap(
            await app.update_property.execute({"id": dto.id, "title": "  Casa remodelada ", "bedrooms": 4})
        )
        assert updated.title == "Casa remodelada"
        assert updated.bedrooms == 4
        assert updated.description == dto.description
        assert updated.price_amount == dto.price_amount

    async def test_clearing_optional_field_rescores(self, app: Container, store: MemoryStore) -> None:
        dto = await _create(app)
        updated = unwrap(await app.update_property.execute({"id": dto.id, "description": None}))
        assert updated.description is None
        assert updated.completeness_score == 67
        assert store.properties[dto.id].completeness_score == 67

    async def test_required_field_cannot_be_cleared(self, app: Container) -> None:
        dto = await _create(app)
        error = _err(
            await app.update_property.execute({"id": dto.id, "title": None}), InputValidationError
        )
        assert any("title cannot be cleared" in issue for issue in error.issues)

    async def test_unknown_property(self, app: Container) -> None:
        missing = new_id()
        error = _err(await app.update_property.execute({"id": missing, "bedrooms": 1}), NotFoundError)
        assert error.details == {"entity": "property", "id": missing}

    async def test_malformed_id(self, app: Container) -> None:
        _err(await app.update_property.execute({"id": "42"}), InputValidationError)

    async def test_address_change_keeps_location(self, app: Container) -> None:
        dto = await _create(app, location={"lat": 20.67, "lng": -103.39})
        updated = unwrap(
            await app.update_property.execute(
                {"id": dto.id, "address": {"city": "Zapopan", "state": "Jalisco"}}
            )
        )
        assert updated.city == "Zapopan"
        assert updated.neighborhood is None
        assert updated.location == dto.location


class TestGetAndList:
    async def test_get(self, app: Container) -> None:
        dto = await _create(app)
        assert unwrap(await app.get_property.execute({"id": dto.id})) == dto

    async def test_list_by_status(self, app: Container) -> None:
        draft = await _create(app, title="Borrador")
        ready = await _publishable(app, title="Publicada")
        unwrap(await app.publish_property.execute({"id": ready.id}))

        published = unwrap(await app.list_properties.execute({"status": "published"}))
        drafts = unwrap(await app.list_properties.execute({"status": "draft"}))
        everything = unwrap(await app.list_properties.execute({}))
        assert [p.id for p in published.items] == [ready.id]
        assert [p.id for p in drafts.items] == [draft.id]
        assert everything.total == 2

    async def test_sort_and_paginate(self, app: Container) -> None:
        for amount in (3_000_000, 1_000_000, 2_000_000):
            await _create(app, price={"amount": amount})
        page = unwrap(
            await app.list_properties.execute({"sort_by": "price_asc", "page": 2, "page_size": 2})
        )
        assert page.total == 3
        assert [p.price_amount for p in page.items] == [3_000_000]

    async def test_search_text(self, app: Container) -> None:
        await _create(app, title="Loft en Providencia")
        await _create(app, title="Casa en Tlaquepaque")
        page = unwrap(await app.list_properties.execute({"q": "loft"}))
        assert [p.title for p in page.items] == ["Loft en Providencia"]

    async def test_page_size_capped(self, app: Container) -> None:
        _err(await app.list_properties.execute({"page_size": 101}), InputValidationError)


# ===========================================================================
# Lifecycle
# ===========================================================================


class TestPublish:
    async def test_publish(self, app: Container, store: MemoryStore) -> None:
        dto = await _publishable(app)
        published = unwrap(await app.publish_property.execute({"id": dto.id}))
        assert published.status is PropertyStatus.PUBLISHED
        assert published.published_at == T0
        assert store.properties[dto.id].status is PropertyStatus.PUBLISHED

    async def test_blocked_below_threshold(self, app: Container, store: MemoryStore) -> None:
        dto = await _create(app, description=None, amenities=[])
        error = _err(await app.publish_property.execute({"id": dto.id}), PublishBlockedError)
        assert error.details == {"min": 80, "score": 56}
        assert store.properties[dto.id].status is PropertyStatus.DRAFT

    async def test_kyc_required(
        self, app: Container, auth: InMemoryAuthService, profile: AuthProfile
    ) -> None:
        dto = await _publishable(app)
        auth.profile = profile.model_copy(update={"kyc_status": VerificationStatus.PENDING})
        _err(await app.publish_property.execute({"id": dto.id}), KycRequiredError)

    async def test_custom_threshold(self, deps: UseCaseDeps) -> None:
        strict = build_container(dataclasses.replace(deps, rules=PublishRules(min_score=95)))
        dto = await _publishable(strict)
        error = _err(await strict.publish_property.execute({"id": dto.id}), PublishBlockedError)
        assert error.details == {"min": 95, "score": 89}

    async def test_republish_keeps_date(self, app: Container, clock: FixedClock) -> None:
        dto = await _publishable(app)
        first = unwrap(await app.publish_property.execute({"id": dto.id}))
        clock.advance(days=3)
        second = unwrap(await app.publish_property.execute({"id": dto.id}))
        assert second.published_at == first.published_at == T0

    async def test_scheduled_date_survives_publish(self, app: Container) -> None:
        dto = await _publishable(app)
        at = T0 + timedelta(days=7)
        scheduled = unwrap(await app.schedule_publish.execute({"id": dto.id, "at": at}))
        assert scheduled.status is PropertyStatus.DRAFT
        assert scheduled.published_at == at
        published = unwrap(await app.publish_property.execute({"id": dto.id}))
        assert published.published_at == at

    async def test_rejection_is_logged(
        self, app: Container, caplog: pytest.LogCaptureFixture
    ) -> None:
        dto = await _create(app, description=None)
        caplog.set_level(logging.WARNING)
        await app.publish_property.execute({"id": dto.id})
        rejected = [r for r in caplog.records if getattr(r, "event", None) == events.USE_CASE_REJECTED]
        assert len(rejected) == 1
        assert rejected[0].error_code == "PUBLISH_BLOCKED"
        assert "PublishProperty" in rejected[0].getMessage()


class TestPauseAndSold:
    async def test_pause_keeps_published_at(self, app: Container) -> None:
        dto = await _publishable(app)
        unwrap(await app.publish_property.execute({"id": dto.id}))
        paused = unwrap(await app.pause_property.execute({"id": dto.id}))
        assert paused.status is PropertyStatus.DRAFT
        assert paused.published_at == T0

    async def test_pause_draft_is_noop(self, app: Container) -> None:
        dto = await _create(app)
        assert unwrap(await app.pause_property.execute({"id": dto.id})) == dto

    async def test_mark_sold(self, app: Container, clock: FixedClock, store: MemoryStore) -> None:
        dto = await _publishable(app)
        unwrap(await app.publish_property.execute({"id": dto.id}))
        sold_at = clock.advance(days=30)
        sold = unwrap(await app.mark_sold.execute({"id": dto.id}))
        assert sold.status is PropertyStatus.SOLD
        assert sold.sold_at == sold_at
        assert store.properties[dto.id].sold_at == sold_at

    async def test_draft_cannot_be_sold(self, app: Container) -> None:
        dto = await _create(app)
        error = _err(await app.mark_sold.execute({"id": dto.id}), StatusTransitionError)
        assert error.details == {"from": "draft", "to": "sold"}

    async def test_sold_cannot_be_republished(self, app: Container) -> None:
        dto = await _publishable(app)
        unwrap(await app.publish_property.execute({"id": dto.id}))
        unwrap(await app.mark_sold.execute({"id": dto.id, "at": T0 + timedelta(days=1)}))
        _err(await app.publish_property.execute({"id": dto.id}), StatusTransitionError)
        _err(await app.mark_sold.execute({"id": dto.id}), StatusTransitionError)


class TestDuplicateAndDelete:
    async def test_duplicate_without_assets(self, app: Container, store: MemoryStore) -> None:
        source = await _publishable(app, internal_id="GDL-7")
        unwrap(await app.publish_property.execute({"id": source.id}))
        clone = unwrap(await app.duplicate_property.execute({"id": source.id}))
        assert clone.id != source.id
        assert clone.title == "Casa en Chapalita (copy)"
        assert clone.status is PropertyStatus.DRAFT
        assert clone.published_at is None
        assert clone.internal_id is None
        assert clone.completeness_score == 78
        assert store.media_of(clone.id) == []

    async def test_duplicate_with_media_shares_blobs(
        self, app: Container, store: MemoryStore
    ) -> None:
        source = await _publishable(app)
        clone = unwrap(await app.duplicate_property.execute({"id": source.id, "copy_media": True}))
        source_media, clone_media = store.media_of(source.id), store.media_of(clone.id)
        assert len(clone_media) == 1
        assert clone_media[0].id != source_media[0].id
        assert clone_media[0].storage_key == source_media[0].storage_key
        assert clone.completeness_score == 89

    async def test_duplicate_docs_controls_rpp(self, app: Container, store: MemoryStore) -> None:
        source = await _publishable(app)
        doc = await _attach(app, source.id)
        unwrap(
            await app.verify_rpp.execute(
                {"property_id": source.id, "document_id": doc.id, "status": "verified"}
            )
        )
        with_docs = unwrap(
            await app.duplicate_property.execute({"id": source.id, "copy_docs": True})
        )
        without_docs = unwrap(await app.duplicate_property.execute({"id": source.id}))
        assert with_docs.rpp_verified is VerificationStatus.VERIFIED
        assert with_docs.completeness_score == 89
        assert store.documents_of(with_docs.id)[0].verification is VerificationStatus.VERIFIED
        assert without_docs.rpp_verified is VerificationStatus.PENDING
        assert store.documents_of(without_docs.id) == []

    async def test_soft_delete(self, app: Container, store: MemoryStore) -> None:
        dto = await _create(app)
        assert isinstance(await app.delete_property.execute({"id": dto.id}), Ok)
        _err(await app.get_property.execute({"id": dto.id}), NotFoundError)
        assert store.properties[dto.id].deleted_at == T0

        archived = unwrap(await app.list_properties.execute({"status": "archived"}))
        everything = unwrap(await app.list_properties.execute({"status": "all"}))
        assert [p.id for p in archived.items] == [dto.id]
        assert everything.total == 0

    async def test_delete_twice(self, app: Container) -> None:
        dto = await _create(app)
        unwrap(await app.delete_property.execute({"id": dto.id}))
        _err(await app.delete_property.execute({"id": dto.id}), NotFoundError)


# ===========================================================================
# Media
# ===========================================================================


class TestMedia:
    async def test_first_image_becomes_cover(self, app: Container, store: MemoryStore) -> None:
        dto = await _create(app)
        asset = await _upload(app, dto.id)
        assert (asset.position, asset.is_cover) == (0, True)
        assert store.properties[dto.id].completeness_score == 89
        assert asset.storage_key in store.blobs

    async def test_image_preferred_over_earlier_video(
        self, app: Container, store: MemoryStore
    ) -> None:
        dto = await _create(app)
        video = await _upload(app, dto.id, "video", "tour.mp4")
        image = await _upload(app, dto.id, "image", "front.jpg")
        ordered = store.media_of(dto.id)
        assert [m.id for m in ordered] == [image.id, video.id]
        assert [m.position for m in ordered] == [0, 1]
        assert ordered[0].is_cover and not ordered[1].is_cover

    async def test_floorplan_stored_as_document(self, app: Container) -> None:
        dto = await _create(app)
        asset = await _upload(app, dto.id, "floorplan", "plan.pdf")
        assert asset.media_type is MediaType.DOCUMENT

    async def test_unsupported_media_type(self, app: Container) -> None:
        dto = await _create(app)
        result = await app.upload_media.execute(
            {
                "property_id": dto.id,
                "file_name": "song.mp3",
                "content_type": "audio/mpeg",
                "data": b"ID3",
                "media_type": "audio",
            }
        )
        _err(result, InputValidationError)

    async def test_upload_to_unknown_property(self, app: Container) -> None:
        result = await app.upload_media.execute(
            {
                "property_id": new_id(),
                "file_name": "a.jpg",
                "content_type": "image/jpeg",
                "data": b"x",
                "media_type": "image",
            }
        )
        _err(result, NotFoundError)

    async def test_remove_renormalizes_and_rescores(
        self, app: Container, store: MemoryStore
    ) -> None:
        dto = await _create(app)
        first = await _upload(app, dto.id, file_name="1.jpg")
        second = await _upload(app, dto.id, file_name="2.jpg")

        unwrap(await app.remove_media.execute({"property_id": dto.id, "media_id": first.id}))
        remaining = store.media_of(dto.id)
        assert [(m.id, m.position, m.is_cover) for m in remaining] == [(second.id, 0, True)]
        assert first.storage_key not in store.blobs

        unwrap(await app.remove_media.execute({"property_id": dto.id, "media_id": second.id}))
        assert store.properties[dto.id].completeness_score == 78

    async def test_remove_unknown_media(self, app: Container) -> None:
        dto = await _create(app)
        _err(
            await app.remove_media.execute({"property_id": dto.id, "media_id": new_id()}),
            NotFoundError,
        )

    async def test_set_cover(self, app: Container) -> None:
        dto = await _create(app)
        first = await _upload(app, dto.id, file_name="1.jpg")
        second = await _upload(app, dto.id, file_name="2.jpg")
        media = unwrap(await app.set_cover_media.execute({"property_id": dto.id, "media_id": second.id}))
        assert [m.id for m in media] == [second.id, first.id]
        assert media[0].is_cover and media[0].position == 0

    async def test_video_cannot_be_cover(self, app: Container) -> None:
        dto = await _create(app)
        await _upload(app, dto.id)
        video = await _upload(app, dto.id, "video", "tour.mp4")
        _err(
            await app.set_cover_media.execute({"property_id": dto.id, "media_id": video.id}),
            InvalidValueError,
        )

    async def test_reorder(self, app: Container) -> None:
        dto = await _create(app)
        ids = [(await _upload(app, dto.id, file_name=f"{i}.jpg")).id for i in range(3)]
        wanted = [ids[2], ids[0], ids[1]]
        media = unwrap(await app.reorder_media.execute({"property_id": dto.id, "ordered_ids": wanted}))
        assert [m.id for m in media] == wanted
        assert [m.position for m in media] == [0, 1, 2]
        assert [m.is_cover for m in media] == [True, False, False]

    async def test_reorder_keeps_image_cover(self, app: Container) -> None:
        dto = await _create(app)
        image = await _upload(app, dto.id, file_name="a.jpg")
        video = await _upload(app, dto.id, "video", "tour.mp4")
        media = unwrap(
            await app.reorder_media.execute(
                {"property_id": dto.id, "ordered_ids": [video.id, image.id]}
            )
        )
        assert [m.id for m in media] == [image.id, video.id]
        assert [m.is_cover for m in media] == [True, False]
        assert media[1].media_type is MediaType.VIDEO

    async def test_reorder_survives_next_upload(self, app: Container, store: MemoryStore) -> None:
        dto = await _create(app)
        first = await _upload(app, dto.id, file_name="a.jpg")
        video = await _upload(app, dto.id, "video", "tour.mp4")
        second = await _upload(app, dto.id, file_name="b.jpg")
        unwrap(
            await app.reorder_media.execute(
                {"property_id": dto.id, "ordered_ids": [video.id, second.id, first.id]}
            )
        )
        extra = await _upload(app, dto.id, file_name="c.jpg")
        stored = sorted(store.media_of(dto.id), key=lambda m: m.position)
        assert [m.id for m in stored] == [second.id, video.id, first.id, extra.id]
        assert [m.position for m in stored] == [0, 1, 2, 3]
        assert [m.is_cover for m in stored] == [True, False, False, False]

    async def test_reorder_without_images_keeps_first(self, app: Container) -> None:
        dto = await _create(app)
        tour = await _upload(app, dto.id, "video", "tour.mp4")
        drone = await _upload(app, dto.id, "video", "drone.mp4")
        media = unwrap(
            await app.reorder_media.execute(
                {"property_id": dto.id, "ordered_ids": [drone.id, tour.id]}
            )
        )
        assert [m.id for m in media] == [drone.id, tour.id]
        assert media[0].is_cover is True

    async def test_reorder_must_be_permutation(self, app: Container) -> None:
        dto = await _create(app)
        ids = [(await _upload(app, dto.id, file_name=f"{i}.jpg")).id for i in range(2)]
        error = _err(
            await app.reorder_media.execute({"property_id": dto.id, "ordered_ids": ids[:1]}),
            InputValidationError,
        )
        assert any("missing ids" in issue for issue in error.issues)
        _err(
            await app.reorder_media.execute({"property_id": dto.id, "ordered_ids": [ids[0], ids[0]]}),
            InputValidationError,
        )


# ===========================================================================
# Documents
# ===========================================================================


class TestDocuments:
    async def test_attach_legacy_type_and_rescore(
        self, app: Container, store: MemoryStore
    ) -> None:
        dto = await _create(app)
        doc = await _attach(app, dto.id, "predial")
        assert doc.doc_type is DocumentType.TAX_RECEIPT
        assert doc.verification is VerificationStatus.PENDING
        assert doc.org_id == ORG_ID
        assert store.properties[dto.id].completeness_score == 89

    async def test_attach_requires_locator(self, app: Container) -> None:
        dto = await _create(app)
        error = _err(
            await app.attach_document.execute({"property_id": dto.id, "doc_type": "deed"}),
            InputValidationError,
        )
        assert any("url or storage_key" in issue for issue in error.issues)

    async def test_attach_rejects_unknown_type(self, app: Container) -> None:
        dto = await _create(app)
        _err(
            await app.attach_document.execute(
                {"property_id": dto.id, "doc_type": "passport", "url": "https://f/p.pdf"}
            ),
            InputValidationError,
        )

    async def test_verify_updates_summary(self, app: Container, store: MemoryStore) -> None:
        dto = await _create(app)
        doc = await _attach(app, dto.id)
        verified = unwrap(
            await app.verify_rpp.execute(
                {"property_id": dto.id, "document_id": doc.id, "status": "verified"}
            )
        )
        assert verified.verification is VerificationStatus.VERIFIED
        assert store.properties[dto.id].rpp_verified is VerificationStatus.VERIFIED

    async def test_summary_precedence(self, app: Container, store: MemoryStore) -> None:
        dto = await _create(app)
        first = await _attach(app, dto.id)
        second = await _attach(app, dto.id)
        for doc, status in ((first, "rejected"), (second, "verified")):
            unwrap(
                await app.verify_rpp.execute(
                    {"property_id": dto.id, "document_id": doc.id, "status": status}
                )
            )
        assert store.properties[dto.id].rpp_verified is VerificationStatus.REJECTED

        unwrap(await app.delete_document.execute({"property_id": dto.id, "document_id": first.id}))
        assert store.properties[dto.id].rpp_verified is VerificationStatus.VERIFIED

    async def test_rejected_rpp_blocks_publish(self, app: Container, deps: UseCaseDeps) -> None:
        dto = await _publishable(app)
        doc = await _attach(app, dto.id)
        unwrap(
            await app.verify_rpp.execute(
                {"property_id": dto.id, "document_id": doc.id, "status": "rejected"}
            )
        )
        _err(await app.publish_property.execute({"id": dto.id}), RppRejectedError)

        lenient = build_container(
            dataclasses.replace(deps, rules=PublishRules(block_if_rpp_rejected=False))
        )
        published = unwrap(await lenient.publish_property.execute({"id": dto.id}))
        assert published.status is PropertyStatus.PUBLISHED

    async def test_verify_non_rpp_document(self, app: Container, store: MemoryStore) -> None:
        dto = await _create(app)
        doc = await _attach(app, dto.id, "deed")
        error = _err(
            await app.verify_rpp.execute(
                {"property_id": dto.id, "document_id": doc.id, "status": "verified"}
            ),
            InvariantViolationError,
        )
        assert error.details["doc_type"] == "deed"
        assert store.documents[doc.id].verification is VerificationStatus.PENDING
        assert store.documents[doc.id].updated_at == doc.updated_at

    async def test_verified_document_cannot_be_deleted(self, app: Container) -> None:
        dto = await _create(app)
        doc = await _attach(app, dto.id)
        unwrap(
            await app.verify_rpp.execute(
                {"property_id": dto.id, "document_id": doc.id, "status": "verified"}
            )
        )
        _err(
            await app.delete_document.execute({"property_id": dto.id, "document_id": doc.id}),
            ConflictError,
        )

    async def test_delete_last_rpp_resets_summary(
        self, app: Container, store: MemoryStore
    ) -> None:
        dto = await _create(app)
        doc = await _attach(app, dto.id)
        unwrap(
            await app.verify_rpp.execute(
                {"property_id": dto.id, "document_id": doc.id, "status": "rejected"}
            )
        )
        unwrap(await app.delete_document.execute({"property_id": dto.id, "document_id": doc.id}))
        stored = store.properties[dto.id]
        assert stored.rpp_verified is VerificationStatus.PENDING
        assert stored.completeness_score == 78
        assert unwrap(await app.list_property_documents.execute({"id": dto.id})) == []


# ===========================================================================
# Readiness
# ===========================================================================


class TestReadiness:
    async def test_ready_listing(self, app: Container) -> None:
        dto = await _publishable(app)
        await _attach(app, dto.id, "deed")
        readiness = unwrap(await app.get_property_readiness.execute({"id": dto.id}))
        assert readiness.score == 100
        assert readiness.can_publish is True
        assert readiness.issues == ()
        assert readiness.reasons is None

    async def test_computed_live_without_writing(self, app: Container, store: MemoryStore) -> None:
        dto = await _publishable(app)
        store.media.clear()
        readiness = unwrap(await app.get_property_readiness.execute({"id": dto.id}))
        assert readiness.score == 78
        assert ReadinessIssue.MEDIA_MIN_MISSING in readiness.issues
        assert ReadinessIssue.SCORE_BELOW_MIN in readiness.issues
        assert store.properties[dto.id].completeness_score == 89

    async def test_kyc_missing(
        self, app: Container, auth: InMemoryAuthService, profile: AuthProfile
    ) -> None:
        dto = await _publishable(app)
        auth.profile = profile.model_copy(update={"kyc_status": VerificationStatus.REJECTED})
        readiness = unwrap(await app.get_property_readiness.execute({"id": dto.id}))
        assert readiness.can_publish is False
        assert readiness.issues == (ReadinessIssue.KYC_MISSING,)
        assert readiness.reasons == ("KYC not verified",)


# ===========================================================================
# Public read side / auth
# ===========================================================================


class TestPublic:
    async def test_only_published_listed(self, app: Container, auth: InMemoryAuthService) -> None:
        await _create(app, title="Borrador")
        ready = await _publishable(app)
        unwrap(await app.publish_property.execute({"id": ready.id}))
        auth.profile = None

        page = unwrap(await app.list_published_properties.execute())
        assert [s.id for s in page.items] == [ready.id]
        summary = page.items[0]
        assert summary.neighborhood is None
        assert summary.cover_image_url is not None
        assert summary.cover_image_url.startswith("memory://")

    async def test_public_filters(self, app: Container) -> None:
        for amount in (1_500_000, 4_500_000):
            dto = await _publishable(app, price={"amount": amount})
            unwrap(await app.publish_property.execute({"id": dto.id}))
        page = unwrap(await app.list_published_properties.execute({"price_max": 2_000_000}))
        assert [s.price_amount for s in page.items] == [1_500_000]

    @pytest.mark.parametrize(
        "raw", [{"page_size": 61}, {"sort": "completeness_desc"}, {"price_min": 5, "price_max": 1}]
    )
    async def test_public_query_validation(self, app: Container, raw: dict[str, Any]) -> None:
        _err(await app.list_published_properties.execute(raw), InputValidationError)

    async def test_detail(self, app: Container) -> None:
        dto = await _publishable(
            app, address={"city": "Guadalajara", "state": "Jalisco", "address_line": "Calle 1"}
        )
        unwrap(await app.publish_property.execute({"id": dto.id}))
        detail = unwrap(await app.get_public_property.execute({"id": dto.id}))
        assert detail.address_line is None
        assert len(detail.media) == 1

    async def test_detail_of_draft_is_not_found(self, app: Container) -> None:
        dto = await _create(app)
        _err(await app.get_public_property.execute({"id": dto.id}), NotFoundError)


class TestAuthProfile:
    async def test_current_profile(self, app: Container, profile: AuthProfile) -> None:
        current = unwrap(await app.get_auth_profile.execute())
        assert current == profile
        assert current.kyc_verified is True
        assert current.scoped_org_id == ORG_ID

    async def test_signed_out(self, app: Container, auth: InMemoryAuthService) -> None:
        auth.profile = None
        _err(await app.get_auth_profile.execute(), AuthError)
        _err(await app.list_properties.execute(), AuthError)
