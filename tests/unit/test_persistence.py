# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from context.conversation import Turn
from orchestrator.enums.role import Role
from session.persistence import (
    ConversationNotFound,
    ConversationStore,
    InMemoryConversationStore,
)


def test_in_memory_store_satisfies_protocol() -> None:
    assert isinstance(InMemoryConversationStore(), ConversationStore)


@pytest.mark.asyncio
async def test_ids_are_monotonic_and_listing_is_newest_first() -> None:
    store = InMemoryConversationStore()

    first = await store.create_conversation("qwen3:8b")
    second = await store.create_conversation("llama3.1")

    assert (first, second) == (1, 2)
    assert [s.id for s in await store.list_conversations()] == [2, 1]
    assert (await store.list_conversations())[0].model == "llama3.1"


@pytest.mark.asyncio
async def test_saved_turns_are_copies() -> None:
    store = InMemoryConversationStore()
    conversation_id = await store.create_conversation("qwen3:8b")
    turn = Turn(role=Role.USER, content="hi")

    await store.save_turns(conversation_id, [turn])
    turn.content = "mutated"

    loaded = await store.load_conversation(conversation_id)
    assert [t.content for t in loaded] == ["hi"]

    loaded[0].content = "also mutated"
    assert (await store.load_conversation(conversation_id))[0].content == "hi"


@pytest.mark.asyncio
async def test_unknown_and_deleted_conversations() -> None:
    store = InMemoryConversationStore()
    conversation_id = await store.create_conversation("qwen3:8b")

    await store.delete_conversation(conversation_id)

    assert await store.list_conversations() == []
    with pytest.raises(ConversationNotFound):
        await store.load_conversation(conversation_id)
    with pytest.raises(ConversationNotFound):
        await store.save_turns(conversation_id, [])

    # Ids are never reused
    assert await store.create_conversation("qwen3:8b") == conversation_id + 1


@pytest.mark.asyncio
async def test_update_title_is_persisted() -> None:
    store = InMemoryConversationStore()
    conversation_id = await store.create_conversation("qwen3:8b")
    created = (await store.list_conversations())[0]

    await store.update_title(conversation_id, "Trip planning")
    await store.update_title(99, "ignored")

    [summary] = await store.list_conversations()
    assert summary.title == "Trip planning"
    assert summary.created_at == created.created_at
    assert summary.updated_at >= created.updated_at
