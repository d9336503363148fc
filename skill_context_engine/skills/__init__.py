"""스킬 문서 소스와 호스트 통합.

- **load**: SKILL.md 디렉토리를 구조화 문서(`RawSkillDocument`)로 변환
- **middleware**: 선택 결과를 langchain 에이전트의 시스템 프롬프트에 주입
"""

from skill_context_engine.skills.load import (
    load_skill_documents,
    parse_skill_document,
)
from skill_context_engine.skills.middleware import (
    SkillSelectionMiddleware,
    extract_task_text,
)

__all__ = [
    "load_skill_documents",
    "parse_skill_document",
    "SkillSelectionMiddleware",
    "extract_task_text",
]
