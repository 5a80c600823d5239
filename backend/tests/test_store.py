import pytest

from database.db import Document, collection_path

pytestmark = pytest.mark.anyio


def test_collection_path_joins_segments():
    assert collection_path("sessions", "Networks 731", "scans") == "sessions/Networks 731/scans"


@pytest.mark.parametrize("segment", ["", "a/b"])
def test_collection_path_rejects_bad_segments(segment):
    with pytest.raises(ValueError):
        collection_path("sessions", segment)


async def test_set_get_and_overwrite(store):
    assert await store.get("users", "u1") is None

    await store.set("users", "u1", {"name": "Ada", "role": "student"})
    assert await store.get("users", "u1") == {"name": "Ada", "role": "student"}

    await store.set("users", "u1", {"name": "Ada L."})
    assert await store.get("users", "u1") == {"name": "Ada L."}


async def test_list_is_ordered_by_id_and_scoped_to_collection(store):
    await store.set("sessions", "b", {"n": 2})
    await store.set("sessions", "a", {"n": 1})
    await store.set(collection_path("sessions", "a", "scans"), "u1", {"n": 3})

    assert await store.list("sessions") == [Document("a", {"n": 1}), Document("b", {"n": 2})]
    assert await store.list("missing") == []


async def test_delete_reports_whether_document_existed(store):
    await store.set("sessions", "a", {"n": 1})

    assert await store.delete("sessions", "a") is True
    assert await store.delete("sessions", "a") is False
    assert await store.get("sessions", "a") is None


async def test_document_ids_cannot_contain_separator(store):
    with pytest.raises(ValueError):
        await store.set("sessions", "a/b", {})
    with pytest.raises(ValueError):
        await store.get("sessions", "")


async def test_subscription_yields_snapshot_then_updates(store):
    await store.set("sessions/a/scans", "u1", {"name": "Ada"})

    subscription = await store.subscribe("sessions/a/scans")
    first = await subscription.__anext__()
    assert [doc.id for doc in first] == ["u1"]

    await store.set("sessions/a/scans", "u2", {"name": "Bo"})
    # writes to other collections are not published
    await store.set("sessions/b/scans", "u3", {"name": "Cy"})
    second = await subscription.__anext__()
    assert [doc.data["name"] for doc in second] == ["Ada", "Bo"]

    await store.delete("sessions/a/scans", "u1")
    third = await subscription.__anext__()
    assert [doc.id for doc in third] == ["u2"]

    subscription.cancel()
    assert subscription.closed
    with pytest.raises(StopAsyncIteration):
        await subscription.__anext__()


async def test_cancelled_subscription_receives_nothing_more(store):
    subscription = await store.subscribe("sessions")
    assert await subscription.__anext__() == []
    subscription.cancel()

    await store.set("sessions", "a", {"n": 1})
    collected = [snapshot async for snapshot in subscription]
    assert collected == []
