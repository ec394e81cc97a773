# pylint: disable=missing-module-docstring,missing-function-docstring

from context.catalog import ConversationSummary, TitleUpdated, apply_title_update


SUMMARIES = (
    ConversationSummary(id=1, model="qwen3:8b", created_at=1.0, updated_at=1.0),
    ConversationSummary(id=2, model="qwen3:8b", title="old", created_at=2.0, updated_at=2.0),
)


def test_title_patch_touches_only_matching_entry() -> None:
    patched = apply_title_update(SUMMARIES, TitleUpdated(2, "Trip planning"), now=10.0)

    assert patched[0] == SUMMARIES[0]
    assert patched[1].title == "Trip planning"
    assert patched[1].updated_at == 10.0
    assert patched[1].created_at == 2.0


def test_unknown_id_leaves_catalog_unchanged() -> None:
    assert apply_title_update(SUMMARIES, TitleUpdated(99, "x"), now=10.0) == SUMMARIES


def test_input_is_not_mutated() -> None:
    apply_title_update(SUMMARIES, TitleUpdated(1, "new"), now=10.0)
    assert SUMMARIES[0].title == ""
