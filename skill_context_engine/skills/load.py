"""SKILL.md 파일을 스킬 스토어용 구조화 문서로 변환하는 문서 소스.

YAML 프론트매터를 파싱해 `RawSkillDocument`를 만듭니다.
엔진 자체는 문서 문법을 모르므로, 이 모듈이 입력 경계의 외부 협력자 역할을 합니다.

## 디렉토리 구조

```
skills/
├── vitest-testing/
│   └── SKILL.md
└── prettier-formatting/
    └── SKILL.md
```

## 인식하는 프론트매터 키

- `name` (→ id), `description` (필수)
- `compatibility`, `priority`, `tags`, `companions` (선택)
- `metadata.priority`, `metadata.tags` (최상위 키가 없을 때 대체)
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from skill_context_engine.errors import MalformedRecordError
from skill_context_engine.records import RawSkillDocument, SkillRecord

logger = logging.getLogger(__name__)

MAX_SKILL_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_SKILL_NAME_LENGTH = 64
MAX_SKILL_DESCRIPTION_LENGTH = 1024

SKILL_FILE_NAME = "SKILL.md"

_FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n?(.*)\Z", re.DOTALL)
_SKILL_NAME_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


def _is_safe_path(path: Path, base_dir: Path) -> bool:
    """경로가 base_dir 내에 안전하게 포함되어 있는지 확인합니다."""
    try:
        path.resolve().relative_to(base_dir.resolve())
        return True
    except (ValueError, OSError, RuntimeError):
        return False


def _validate_skill_name(name: str, directory_name: str) -> tuple[bool, str]:
    if not name:
        return False, "이름은 필수입니다"
    if len(name) > MAX_SKILL_NAME_LENGTH:
        return False, f"이름이 {MAX_SKILL_NAME_LENGTH}자를 초과합니다"
    if not _SKILL_NAME_PATTERN.match(name):
        return False, "이름은 소문자 영숫자와 단일 하이픈만 사용해야 합니다"
    if name != directory_name:
        return (
            False,
            f"이름 '{name}'은 디렉토리 이름 '{directory_name}'과 일치해야 합니다",
        )
    return True, ""


def _split_frontmatter(content: str) -> tuple[dict[str, Any], str] | None:
    match = _FRONTMATTER_PATTERN.match(content)
    if not match:
        return None
    frontmatter = yaml.safe_load(match.group(1))
    if not isinstance(frontmatter, dict):
        return None
    return frontmatter, match.group(2).strip()


def _lookup(frontmatter: dict[str, Any], key: str) -> Any:
    """최상위 키를 먼저 보고, 없으면 `metadata` 하위 키를 봅니다."""
    value = frontmatter.get(key)
    if value is not None:
        return value
    metadata = frontmatter.get("metadata")
    if isinstance(metadata, dict):
        return metadata.get(key)
    return None


def parse_skill_document(skill_md_path: Path, source: str) -> RawSkillDocument | None:
    """SKILL.md 하나를 구조화 문서로 파싱합니다.

    파일이 너무 크거나, 프론트매터가 없거나, name/description/본문이
    비어 있거나, priority/tags 같은 선택 필드가 레코드 검증을 통과하지
    못하면 경고를 남기고 None을 반환합니다.
    """
    try:
        file_size = skill_md_path.stat().st_size
        if file_size > MAX_SKILL_FILE_SIZE:
            logger.warning(
                "%s 건너뜀: 파일이 너무 큼 (%d 바이트)", skill_md_path, file_size
            )
            return None

        content = skill_md_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("%s 읽기 오류: %s", skill_md_path, e)
        return None

    try:
        parsed = _split_frontmatter(content)
    except yaml.YAMLError as e:
        logger.warning("%s의 YAML이 유효하지 않음: %s", skill_md_path, e)
        return None

    if parsed is None:
        logger.warning("%s 건너뜀: 유효한 YAML 프론트매터를 찾을 수 없음", skill_md_path)
        return None

    frontmatter, body = parsed
    name = frontmatter.get("name")
    description = frontmatter.get("description")

    if not name or not description:
        logger.warning("%s 건너뜀: 필수 'name' 또는 'description' 누락", skill_md_path)
        return None

    if not body:
        logger.warning("%s 건너뜀: 본문이 비어 있음", skill_md_path)
        return None

    is_valid, error = _validate_skill_name(str(name), skill_md_path.parent.name)
    if not is_valid:
        logger.warning("'%s' 스킬 (%s) 이름 규칙 위반: %s", name, skill_md_path, error)

    description_str = str(description).strip()
    if len(description_str) > MAX_SKILL_DESCRIPTION_LENGTH:
        logger.warning(
            "%s의 설명이 %d자를 초과하여 잘림",
            skill_md_path,
            MAX_SKILL_DESCRIPTION_LENGTH,
        )
        description_str = description_str[:MAX_SKILL_DESCRIPTION_LENGTH]

    document = RawSkillDocument(
        id=str(name),
        description=description_str,
        body=body,
        source=source,
        path=str(skill_md_path),
    )
    for key in ("compatibility", "priority", "tags", "companions"):
        value = _lookup(frontmatter, key)
        if value is not None:
            document[key] = value  # type: ignore[literal-required]

    try:
        SkillRecord.from_document(document)
    except MalformedRecordError as e:
        logger.warning("%s 건너뜀: %s", skill_md_path, e)
        return None
    return document


def _documents_from_dir(skills_dir: Path, source: str) -> list[RawSkillDocument]:
    skills_dir = skills_dir.expanduser()
    if not skills_dir.is_dir():
        return []

    documents: list[RawSkillDocument] = []
    for skill_dir in sorted(skills_dir.iterdir()):
        if not skill_dir.is_dir() or not _is_safe_path(skill_dir, skills_dir):
            continue

        skill_md_path = skill_dir / SKILL_FILE_NAME
        if not skill_md_path.exists() or not _is_safe_path(skill_md_path, skills_dir):
            continue

        document = parse_skill_document(skill_md_path, source=source)
        if document:
            documents.append(document)

    return documents


def load_skill_documents(
    *,
    user_skills_dir: Path | str | None = None,
    project_skills_dir: Path | str | None = None,
) -> list[RawSkillDocument]:
    """사용자 및/또는 프로젝트 디렉토리에서 스킬 문서를 읽습니다.

    프로젝트 스킬이 같은 이름의 사용자 스킬을 오버라이드하므로
    반환 목록에는 중복 id가 없습니다.

    Returns:
        id 오름차순으로 정렬된 문서 목록.
    """
    documents: dict[str, RawSkillDocument] = {}

    if user_skills_dir:
        for document in _documents_from_dir(Path(user_skills_dir), source="user"):
            documents[document["id"]] = document

    if project_skills_dir:
        for document in _documents_from_dir(Path(project_skills_dir), source="project"):
            if document["id"] in documents:
                logger.debug("프로젝트 스킬 '%s'이 사용자 스킬을 오버라이드", document["id"])
            documents[document["id"]] = document

    return [documents[key] for key in sorted(documents)]
