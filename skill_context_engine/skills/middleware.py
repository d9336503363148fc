"""스킬 선택 결과를 시스템 프롬프트에 주입하는 미들웨어.

각 모델 호출마다 마지막 사용자 메시지를 작업 설명으로 보고
`SelectionSession`을 실행한 뒤, 예산 안에 담긴 스킬 본문을
시스템 프롬프트 뒤에 덧붙입니다. 엔진은 주입을 직접 하지 않으므로
이 미들웨어가 출력 경계의 호스트 역할을 합니다.
"""

import logging
from collections.abc import Awaitable, Callable

from langchain.agents.middleware.types import (
    AgentMiddleware,
    ModelRequest,
    ModelResponse,
)
from langchain_core.messages import BaseMessage, HumanMessage

from skill_context_engine.errors import EmptyStoreError
from skill_context_engine.selection.session import Selection, SelectionSession

logger = logging.getLogger(__name__)

SKILL_INJECTION_PROMPT = """

## 활성화된 스킬

현재 요청과 관련된 스킬 지침입니다. 아래 순서대로 우선 적용하세요.

{skills_section}
"""


def extract_task_text(messages: list[BaseMessage]) -> str:
    """가장 최근 사용자 메시지의 텍스트를 반환합니다."""
    for message in reversed(messages):
        if not isinstance(message, HumanMessage):
            continue
        content = message.content
        if isinstance(content, str):
            return content
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "\n".join(parts)
    return ""


class SkillSelectionMiddleware(AgentMiddleware):
    """요청마다 관련 스킬을 골라 예산 안에서 주입하는 미들웨어.

    Args:
        session: 스킬 선택 세션.
        budget: 주입할 스킬 본문의 최대 크기.
        host_capability: 현재 호스트 모델의 capability 티어.
    """

    def __init__(
        self,
        session: SelectionSession,
        *,
        budget: int = 8000,
        host_capability: str | None = None,
    ) -> None:
        self.session = session
        self.budget = budget
        self.host_capability = host_capability
        self.system_prompt_template = SKILL_INJECTION_PROMPT

    def _format_selection(self, selection: Selection) -> str:
        lines = []
        for entry in selection.entries:
            heading = f"### {entry.id}"
            if entry.truncated:
                heading += " (일부만 포함됨)"
            lines.append(heading)
            lines.append(entry.content)
            lines.append("")
        return "\n".join(lines).rstrip()

    def select_for(self, request: ModelRequest) -> Selection | None:
        task = extract_task_text(list(request.state.get("messages", [])))
        if not task.strip():
            return None
        try:
            return self.session.select(task, self.budget, self.host_capability)
        except EmptyStoreError:
            logger.debug("스킬 스토어가 비어 있어 주입을 건너뜀")
            return None

    def _inject(self, request: ModelRequest) -> ModelRequest:
        selection = self.select_for(request)
        if selection is None or selection.is_empty:
            return request

        for exclusion in selection.excluded:
            logger.debug(
                "스킬 제외: %s (%s) %s", exclusion.id, exclusion.reason.value, exclusion.detail
            )

        skills_section = self.system_prompt_template.format(
            skills_section=self._format_selection(selection)
        )
        if request.system_prompt:
            system_prompt = request.system_prompt + "\n\n" + skills_section
        else:
            system_prompt = skills_section
        return request.override(system_prompt=system_prompt)

    def wrap_model_call(
        self,
        request: ModelRequest,
        handler: Callable[[ModelRequest], ModelResponse],
    ) -> ModelResponse:
        return handler(self._inject(request))

    async def awrap_model_call(
        self,
        request: ModelRequest,
        handler: Callable[[ModelRequest], Awaitable[ModelResponse]],
    ) -> ModelResponse:
        return await handler(self._inject(request))
