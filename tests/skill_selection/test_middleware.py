import asyncio
from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from skill_context_engine.selection.session import SelectionSession
from skill_context_engine.skills.middleware import (
    SkillSelectionMiddleware,
    extract_task_text,
)
from skill_context_engine.store import SkillRecordStore


def _request(messages, system_prompt: str | None = "base prompt") -> MagicMock:
    request = MagicMock()
    request.state = {"messages": messages}
    request.system_prompt = system_prompt
    request.override.side_effect = lambda **kwargs: ("overridden", kwargs)
    return request


@pytest.fixture
def store() -> SkillRecordStore:
    return SkillRecordStore(
        [
            {
                "id": "vitest-testing",
                "description": "run unit tests with vitest",
                "body": "Use vitest run --coverage.",
            },
            {
                "id": "docker-builds",
                "description": "build container images",
                "body": "Use multi-stage builds.",
            },
        ]
    )


@pytest.fixture
def middleware(store: SkillRecordStore) -> SkillSelectionMiddleware:
    return SkillSelectionMiddleware(SelectionSession(store), budget=1000)


class TestExtractTaskText:
    def test_latest_human_message(self):
        messages = [
            SystemMessage(content="system"),
            HumanMessage(content="first question"),
            AIMessage(content="answer"),
            HumanMessage(content="write unit tests"),
            AIMessage(content="working on it"),
        ]

        assert extract_task_text(messages) == "write unit tests"

    def test_content_blocks(self):
        message = HumanMessage(
            content=[
                {"type": "text", "text": "run the"},
                {"type": "image_url", "image_url": {"url": "http://example.com/x.png"}},
                {"type": "text", "text": "unit tests"},
            ]
        )

        assert extract_task_text([message]) == "run the\nunit tests"

    def test_no_human_message(self):
        assert extract_task_text([AIMessage(content="hello")]) == ""


class TestSkillSelectionMiddleware:
    def test_injects_selected_skills(self, middleware: SkillSelectionMiddleware):
        request = _request([HumanMessage(content="please run the unit tests")])
        handler = MagicMock(return_value="response")

        result = middleware.wrap_model_call(request, handler)

        assert result == "response"
        _, kwargs = request.override.call_args
        system_prompt = kwargs["system_prompt"]
        assert system_prompt.startswith("base prompt")
        assert "### vitest-testing" in system_prompt
        assert "Use vitest run --coverage." in system_prompt
        assert "docker-builds" not in system_prompt
        handler.assert_called_once_with(("overridden", kwargs))

    def test_without_existing_system_prompt(self, middleware: SkillSelectionMiddleware):
        request = _request([HumanMessage(content="run unit tests")], system_prompt=None)

        middleware.wrap_model_call(request, MagicMock())

        _, kwargs = request.override.call_args
        assert "### vitest-testing" in kwargs["system_prompt"]

    def test_marks_truncated_entries(self, store: SkillRecordStore):
        store.load(
            [
                {
                    "id": "vitest-testing",
                    "description": "run unit tests with vitest",
                    "body": "x" * 500,
                }
            ]
        )
        middleware = SkillSelectionMiddleware(SelectionSession(store), budget=250)
        request = _request([HumanMessage(content="run unit tests")])

        middleware.wrap_model_call(request, MagicMock())

        _, kwargs = request.override.call_args
        assert "### vitest-testing (일부만 포함됨)" in kwargs["system_prompt"]

    def test_passthrough_when_nothing_applies(self, middleware: SkillSelectionMiddleware):
        request = _request([HumanMessage(content="plan a holiday trip")])
        handler = MagicMock(return_value="response")

        middleware.wrap_model_call(request, handler)

        request.override.assert_not_called()
        handler.assert_called_once_with(request)

    def test_passthrough_on_empty_store(self):
        middleware = SkillSelectionMiddleware(SelectionSession(SkillRecordStore()))
        request = _request([HumanMessage(content="run unit tests")])
        handler = MagicMock()

        middleware.wrap_model_call(request, handler)

        request.override.assert_not_called()
        handler.assert_called_once_with(request)

    def test_passthrough_without_task(self, middleware: SkillSelectionMiddleware):
        request = _request([])
        handler = MagicMock()

        middleware.wrap_model_call(request, handler)

        handler.assert_called_once_with(request)

    def test_host_capability_is_forwarded(self, store: SkillRecordStore):
        store.load(
            [
                {
                    "id": "vitest-testing",
                    "description": "run unit tests with vitest",
                    "body": "restricted",
                    "compatibility": "opus",
                }
            ]
        )
        middleware = SkillSelectionMiddleware(
            SelectionSession(store), host_capability="haiku"
        )
        request = _request([HumanMessage(content="run unit tests")])
        handler = MagicMock()

        middleware.wrap_model_call(request, handler)

        handler.assert_called_once_with(request)

    def test_async_variant(self, middleware: SkillSelectionMiddleware):
        request = _request([HumanMessage(content="run unit tests")])

        async def handler(req):
            return req

        result = asyncio.run(middleware.awrap_model_call(request, handler))

        assert result[0] == "overridden"
        assert "### vitest-testing" in result[1]["system_prompt"]
