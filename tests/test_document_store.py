import pytest

from shared.clients.backend.BackendClientInterface import COLLECTION_DOCUMENTS
from shared.errors import BackendError, ConsistencyGapError, FormValidationError, NotFoundError, PermissionDeniedError
from shared.models.document import DocumentForm, DocumentType, DocumentUpdateForm
from shared.models.user import ProfileUpdateForm
from tests.helpers import ADMIN_KEY, signup_form


def _form(**overrides) -> DocumentForm:
    data = {"title": "Roadmap", "content": "# Q3\n- ship it", "category": "Business", "document_type": DocumentType.MARKDOWN}
    data.update(overrides)
    return DocumentForm(**data)


def _count(category_store, name: str) -> int:
    return category_store.get_category_by_name(name).count


@pytest.mark.asyncio
async def test_cache_is_empty_while_signed_out(document_store, backend):
    await backend.do_create(COLLECTION_DOCUMENTS, {"title": "hidden"})
    await document_store.load()
    assert document_store.documents == []
    assert not document_store.is_subscribed()


@pytest.mark.asyncio
async def test_create_writes_author_and_counts_category(document_store, category_store, admin):
    document_id = await document_store.create(_form(tags="plan, q3 ,"))
    document = document_store.get_document(document_id)
    assert document.author == "Ada"
    assert document.author_uid == admin.uid
    assert document.tags == ["plan", "q3"]
    assert document.document_type == DocumentType.MARKDOWN
    assert document.created_at is not None
    assert _count(category_store, "Business") == 1


@pytest.mark.asyncio
async def test_documents_are_newest_first(document_store, admin):
    first = await document_store.create(_form(title="first"))
    second = await document_store.create(_form(title="second"))
    assert [d.id for d in document_store.documents] == [second, first]


@pytest.mark.asyncio
async def test_viewer_mutations_make_no_backend_calls(document_store, backend, session, admin):
    document_id = await document_store.create(_form())
    await session.sign_up(signup_form("Vic", "vic@example.com"))
    backend.reset_calls()

    with pytest.raises(PermissionDeniedError):
        await document_store.create(_form())
    with pytest.raises(PermissionDeniedError):
        await document_store.update(document_id, DocumentUpdateForm(title="x"))
    with pytest.raises(PermissionDeniedError):
        await document_store.delete(document_id)
    assert backend.calls == []


@pytest.mark.asyncio
async def test_invalid_form_makes_no_backend_calls(document_store, backend, admin):
    backend.reset_calls()
    with pytest.raises(FormValidationError):
        await document_store.create(_form(title=" "))
    with pytest.raises(FormValidationError):
        await document_store.create(_form(is_locked=True))
    assert backend.calls == []


@pytest.mark.asyncio
async def test_create_in_unknown_category_is_rejected(document_store, backend, admin):
    backend.reset_calls()
    with pytest.raises(FormValidationError):
        await document_store.create(_form(category="NoSuchCategory"))
    assert backend.calls == []
    assert document_store.documents == []


@pytest.mark.asyncio
async def test_update_to_unknown_category_is_rejected(document_store, category_store, backend, admin):
    document_id = await document_store.create(_form())
    backend.reset_calls()
    with pytest.raises(FormValidationError):
        await document_store.update(document_id, DocumentUpdateForm(category="NoSuchCategory"))
    assert backend.calls == []
    assert document_store.get_document(document_id).category == "Business"
    assert _count(category_store, "Business") == 1


@pytest.mark.asyncio
async def test_locked_document_keeps_password(document_store, admin):
    document_id = await document_store.create(_form(is_locked=True, password="pw"))
    with pytest.raises(PermissionDeniedError):
        document_store.open_document(document_id)
    assert document_store.open_document(document_id, "pw").content == "# Q3\n- ship it"


@pytest.mark.asyncio
async def test_update_sends_partial_fields(document_store, backend, admin):
    document_id = await document_store.create(_form())
    await document_store.update(document_id, DocumentUpdateForm(title="Roadmap v2"))
    record = await backend.do_get(COLLECTION_DOCUMENTS, document_id)
    assert record["title"] == "Roadmap v2"
    assert record["content"] == "# Q3\n- ship it"
    assert record["updatedAt"] >= record["createdAt"]


@pytest.mark.asyncio
async def test_update_moves_counts_between_categories(document_store, category_store, admin):
    document_id = await document_store.create(_form(category="Design"))
    await document_store.update(document_id, DocumentUpdateForm(category="QA"))
    assert _count(category_store, "Design") == 0
    assert _count(category_store, "QA") == 1
    assert document_store.get_document(document_id).category == "QA"


@pytest.mark.asyncio
async def test_update_unknown_document(document_store, admin):
    with pytest.raises(NotFoundError):
        await document_store.update("missing", DocumentUpdateForm(title="x"))


@pytest.mark.asyncio
async def test_delete_decrements_count(document_store, category_store, admin):
    keep = await document_store.create(_form())
    drop = await document_store.create(_form())
    await document_store.delete(drop)
    assert [d.id for d in document_store.documents] == [keep]
    assert _count(category_store, "Business") == 1


@pytest.mark.asyncio
async def test_count_matches_creates_minus_deletes(document_store, category_store, admin):
    ids = [await document_store.create(_form(category="Operations")) for _ in range(3)]
    for document_id in ids[:2]:
        await document_store.delete(document_id)
    assert _count(category_store, "Operations") == 1


@pytest.mark.asyncio
async def test_delete_unknown_document_is_not_found(document_store, backend, admin):
    backend.reset_calls()
    with pytest.raises(NotFoundError):
        await document_store.delete("missing")
    assert backend.calls == []


@pytest.mark.asyncio
async def test_failed_count_step_reports_consistency_gap(document_store, backend, admin):
    backend.failures["update"] = RuntimeError("quota exceeded")
    with pytest.raises(ConsistencyGapError) as error:
        await document_store.create(_form())
    # the document write stands
    assert document_store.get_document(error.value.document_id).title == "Roadmap"
    assert document_store.error is not None


@pytest.mark.asyncio
async def test_failed_write_is_raised_and_recorded(document_store, backend, admin):
    backend.failures["create"] = RuntimeError("offline")
    with pytest.raises(BackendError) as error:
        await document_store.create(_form())
    assert not isinstance(error.value, ConsistencyGapError)
    assert document_store.error == "Could not save the document."

    del backend.failures["create"]
    await document_store.create(_form())
    assert document_store.error is None


@pytest.mark.asyncio
async def test_sign_out_clears_cache_and_unsubscribes(document_store, session, backend, admin):
    await document_store.create(_form())
    assert document_store.is_subscribed()
    await session.sign_out()
    assert document_store.documents == []
    assert not document_store.is_subscribed()


@pytest.mark.asyncio
async def test_sign_in_loads_and_subscribes(document_store, session, backend):
    await backend.do_create(COLLECTION_DOCUMENTS, {"title": "existing", "category": "QA"})
    await session.sign_up(signup_form("Ada", "ada@example.com", admin_key=ADMIN_KEY))
    assert [d.title for d in document_store.documents] == ["existing"]
    assert document_store.is_subscribed()


@pytest.mark.asyncio
async def test_profile_update_does_not_resubscribe(document_store, session, backend, admin):
    backend.reset_calls()
    await session.update_profile(ProfileUpdateForm(name="Ada L."))
    assert [call[0] for call in backend.calls] == ["update"]


@pytest.mark.asyncio
async def test_close_unbinds_from_session(document_store, session, admin):
    await document_store.close()
    assert not document_store.is_subscribed()
    await session.sign_out()
    await session.sign_in("ada@example.com", "secret1")
    assert not document_store.is_subscribed()
