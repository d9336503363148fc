"""스킬 선택 설정.

세션 생성 시점에 소비되는 설정입니다. 영속 상태나 파일 형식은 없으며,
모든 설정은 프로세스 내에서 전달됩니다. 환경 변수 오버라이드가 필요하면
`SelectionConfig.from_env()`를 사용합니다 (`.env` 파일도 읽음).
"""

import os
from dataclasses import dataclass, fields
from typing import Literal

from dotenv import load_dotenv

ENV_PREFIX = "SKILL_ENGINE_"

SizeUnit = Literal["chars", "tokens"]


@dataclass(frozen=True)
class SelectionConfig:
    """Skill Selection 설정."""

    min_score: float = 0.05
    """이 점수 미만의 레코드는 순위 매기기 전에 제외."""

    mutual_exclusion_overlap: float = 0.6
    """두 후보의 태그 겹침 비율이 이 값 이상이면 하위 후보를 제외."""

    priority_preempt: int = 100
    """이 우선순위 이상인 후보는 점수와 무관하게 맨 앞으로 이동."""

    min_fragment_size: int = 200
    """잘린 포함을 허용하는 최소 조각 크기 (size_unit 기준)."""

    tag_boost: float = 0.1
    """태그가 작업 토큰과 겹칠 때 더하는 보너스."""

    size_unit: SizeUnit = "chars"
    """본문 크기 단위. 'chars' 또는 'tokens' (추정)."""

    chars_per_token: int = 4
    """토큰당 문자 수 근사값. size_unit='tokens'일 때만 사용."""

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_score <= 1.0:
            raise ValueError(f"min_score는 0과 1 사이여야 함: {self.min_score}")
        if not 0.0 < self.mutual_exclusion_overlap <= 1.0:
            raise ValueError(
                "mutual_exclusion_overlap은 0 초과 1 이하여야 함: "
                f"{self.mutual_exclusion_overlap}"
            )
        if self.min_fragment_size < 0:
            raise ValueError(
                f"min_fragment_size는 음수일 수 없음: {self.min_fragment_size}"
            )
        if not 0.0 <= self.tag_boost <= 1.0:
            raise ValueError(f"tag_boost는 0과 1 사이여야 함: {self.tag_boost}")
        if self.size_unit not in ("chars", "tokens"):
            raise ValueError(f"알 수 없는 size_unit: {self.size_unit!r}")
        if self.chars_per_token <= 0:
            raise ValueError(
                f"chars_per_token은 양수여야 함: {self.chars_per_token}"
            )

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides) -> "SelectionConfig":
        """환경 변수에서 설정을 읽습니다.

        `SKILL_ENGINE_MIN_SCORE`, `SKILL_ENGINE_PRIORITY_PREEMPT`처럼
        필드 이름을 대문자로 바꾼 변수를 인식합니다. 명시적 overrides가 우선합니다.

        Args:
            prefix: 환경 변수 접두사.
            **overrides: 환경 변수보다 우선하는 값.

        Returns:
            검증된 SelectionConfig.
        """
        load_dotenv()

        values: dict = {}
        for config_field in fields(cls):
            raw = os.environ.get(f"{prefix}{config_field.name.upper()}")
            if raw is None or not raw.strip():
                continue
            default = config_field.default
            if isinstance(default, int):
                values[config_field.name] = int(raw)
            elif isinstance(default, float):
                values[config_field.name] = float(raw)
            else:
                values[config_field.name] = raw.strip()

        values.update(overrides)
        return cls(**values)
