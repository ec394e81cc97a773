# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from orchestrator.capabilities import ToolSupportPolicy, supports_tools


@pytest.mark.parametrize(
    "model",
    [
        "functionary-small-v3.2",
        "mistral:7b",
        "command-r",
        "nous-hermes2",
        "llama3.1:8b",
        "Meta-Llama-3.1-8B",
        "phi3",
        "granite3-dense",
        "qwen3:8b",
        "Qwen2.5:14B",
    ],
)
def test_tool_capable_models(model: str) -> None:
    assert supports_tools(model)


@pytest.mark.parametrize("model", ["llama2:7b", "gemma:2b", "qwen3:0.6b", "QWEN3:0.6B"])
def test_models_without_tool_calling(model: str) -> None:
    assert not supports_tools(model)


def test_policy_can_be_extended_without_touching_default() -> None:
    policy = ToolSupportPolicy().extended("Gemma")

    assert policy.supports_tools("gemma:2b")
    assert not supports_tools("gemma:2b")


def test_empty_policy_rejects_everything() -> None:
    policy = ToolSupportPolicy(patterns=(), exclusions=())
    assert not policy.supports_tools("functionary")
