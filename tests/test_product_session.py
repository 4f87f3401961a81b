# tests/test_product_session.py
import asyncio

from docstore.database import DocumentStore
from storefront.errors import NotAuthorized, UpstreamWriteFailure, ValidationError
from storefront.mirror import LocalMirror
from storefront.models import Product
from storefront.sessions import ProductEditSession, SessionState, new_product_id


def fill(session, name="Cream", category="Sunscreen", description="x", size="50ml"):
    session.set_field("name", name)
    session.set_field("category", category)
    session.set_field("description", description)
    session.set_field("size", size)


def test_save_writes_trimmed_and_filtered_product(admin):
    async def scenario():
        db = DocumentStore()
        await db.add("categories", {"name": "sunscreen"})
        mirror = LocalMirror(db)
        await mirror.start()
        session = ProductEditSession(db, admin, mirror)
        session.open()
        fill(session, name="  Cream  ", description=" Rich cream ")
        session.set_benefit(0, " Hydrates ")
        session.set_benefit(1, "   ")
        session.set_benefit(5, "Soothes")
        session.set_ingredient(2, "Vitamin C (500mg)")
        saved = await session.save()
        return session, saved, mirror.products

    session, saved, products = asyncio.run(scenario())
    assert session.state is SessionState.CLOSED
    matching = [p for p in products if p.id == saved.id]
    assert len(matching) == 1
    p = matching[0]
    assert p.name == "Cream"
    assert p.description == "Rich cream"
    assert p.benefits == ["Hydrates", "Soothes"]
    assert p.ingredients == ["Vitamin C (500mg)"]
    assert p == saved


def test_saving_identical_content_twice_is_idempotent(admin):
    async def scenario():
        db = DocumentStore()
        product = Product(id="p1", name="Cream", category="sunscreen", description="d", size="50ml")
        for _ in range(2):
            session = ProductEditSession(db, admin)
            session.open(product)
            await session.save()
        return await db.get_all("products")

    docs = asyncio.run(scenario())
    assert len(docs) == 1
    assert docs[0]["key"] == "p1"
    assert docs[0]["value"]["name"] == "Cream"


def test_missing_name_keeps_session_open_and_error_clears_per_field(admin, make_flaky):
    async def scenario():
        store = make_flaky()
        session = ProductEditSession(store, admin)
        session.open()
        fill(session, name="")
        first = await session.save()
        state_after_fail = session.state
        errors_after_fail = dict(session.errors)
        error = session.error
        session.set_field("name", "Cream")
        return session, first, state_after_fail, errors_after_fail, error, store.count("put")

    session, first, state, errors, error, puts = asyncio.run(scenario())
    assert first is None
    assert state is SessionState.EDITING
    assert errors == {"name": "errors.required"}
    assert isinstance(error, ValidationError) and error.fields == errors
    assert puts == 0
    assert session.errors == {}
    assert session.error is None
    assert session.draft["category"] == "Sunscreen"
    assert session.draft["description"] == "x"
    assert session.draft["size"] == "50ml"


def test_whitespace_only_fields_are_required(admin):
    async def scenario():
        session = ProductEditSession(DocumentStore(), admin)
        session.open()
        fill(session, category="  ", size="\t")
        await session.save()
        session.set_field("size", "  ")
        return session.errors

    assert asyncio.run(scenario()) == {"category": "errors.required", "size": "errors.required"}


def test_failed_save_preserves_draft_and_surfaces_retry_message(admin, make_flaky):
    async def scenario():
        store = make_flaky(failing={"put"})
        session = ProductEditSession(store, admin)
        session.open()
        fill(session)
        session.set_benefit(0, "Hydrates")
        saved = await session.save()
        return session, saved, store

    session, saved, store = asyncio.run(scenario())
    assert saved is None
    assert session.state is SessionState.EDITING
    assert isinstance(session.error, UpstreamWriteFailure)
    assert session.message == "Could not save your changes, please try again"
    assert session.draft["name"] == "Cream"
    assert session.draft["benefits"][0] == "Hydrates"
    assert store.count("put") == 1


def test_cancel_during_save_ignores_result(admin):
    async def scenario():
        gate = asyncio.Event()

        class SlowStore(DocumentStore):
            async def put(self, collection, key, value):
                await gate.wait()
                await super().put(collection, key, value)

        db = SlowStore()
        session = ProductEditSession(db, admin)
        session.open()
        fill(session)
        task = asyncio.ensure_future(session.save())
        await asyncio.sleep(0)
        saving = session.state
        session.cancel()
        gate.set()
        result = await task
        return saving, session.state, result, await db.get_all("products")

    saving, state, result, docs = asyncio.run(scenario())
    assert saving is SessionState.SAVING
    assert state is SessionState.CLOSED
    assert result is None
    # the write itself is not cancelled
    assert len(docs) == 1


def test_edit_session_does_not_touch_mirror_until_snapshot(admin):
    async def scenario():
        db = DocumentStore()
        await db.put("products", "p1", {"id": "p1", "name": "Cream", "category": "c",
                                        "description": "d", "size": "s", "benefits": ["a"]})
        await db.add("categories", {"name": "c"})
        mirror = LocalMirror(db)
        await mirror.start()
        session = ProductEditSession(db, admin, mirror)
        session.open(mirror.products[0])
        session.set_field("name", "Changed")
        session.set_benefit(0, "b")
        before_save = (mirror.products[0].name, mirror.products[0].benefits)
        await session.save()
        return before_save, mirror.products[0]

    before_save, after = asyncio.run(scenario())
    assert before_save == ("Cream", ["a"])
    assert after.name == "Changed"
    assert after.benefits == ["b"]


def test_open_pads_list_slots_and_generates_fresh_id(admin):
    session = ProductEditSession(DocumentStore(), admin)
    session.open()
    assert session.is_new
    assert len(session.draft["benefits"]) == 10
    assert len(session.draft["ingredients"]) == 10
    assert session.draft["id"]


def test_new_product_id_avoids_taken_ids():
    taken = {new_product_id() for _ in range(5)}
    assert new_product_id(taken) not in taken


def test_visitor_cannot_open_or_save(visitor):
    session = ProductEditSession(DocumentStore(), visitor)
    assert session.open() is False
    assert session.state is SessionState.CLOSED
    assert isinstance(session.error, NotAuthorized)


def test_mutations_ignored_when_closed(admin):
    session = ProductEditSession(DocumentStore(), admin)
    assert session.set_field("name", "x") is False
    assert asyncio.run(session.save()) is None


def test_unknown_category_keeps_session_open_with_category_error(admin, make_flaky):
    async def scenario():
        db = DocumentStore()
        await db.add("categories", {"name": "sunscreen"})
        store = make_flaky(db)
        mirror = LocalMirror(db)
        await mirror.start()
        session = ProductEditSession(store, admin, mirror)
        session.open()
        fill(session, category="Serum")
        rejected = await session.save()
        state, errors, puts = session.state, dict(session.errors), store.count("put")
        session.set_field("category", "Sunscreen")
        saved = await session.save()
        return rejected, state, errors, puts, saved, session.state

    rejected, state, errors, puts, saved, final = asyncio.run(scenario())
    assert rejected is None
    assert state is SessionState.EDITING
    assert errors == {"category": "errors.unknown_category"}
    assert puts == 0
    assert saved is not None and saved.category == "Sunscreen"
    assert final is SessionState.CLOSED


def test_category_removed_since_opening_blocks_save(admin):
    async def scenario():
        db = DocumentStore()
        key = await db.add("categories", {"name": "sunscreen"})
        mirror = LocalMirror(db)
        await mirror.start()
        session = ProductEditSession(db, admin, mirror)
        session.open()
        fill(session, category="sunscreen")
        await db.delete("categories", key)
        return await session.save(), session.errors, session.message

    saved, errors, message = asyncio.run(scenario())
    assert saved is None
    assert errors["category"] == "errors.unknown_category"
    assert message == "Please fix the highlighted fields"
