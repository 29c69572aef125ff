"""
Generation settings applied to outgoing requests
"""
from dataclasses import dataclass, replace

MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


@dataclass(frozen=True)
class ChatSettings:
    """Settings read at send time; replacing them never touches sent turns"""

    system_instruction: str = "You are a helpful and knowledgeable AI assistant."
    temperature: float = 0.7

    def __post_init__(self):
        if not MIN_TEMPERATURE <= self.temperature <= MAX_TEMPERATURE:
            raise ValueError(
                f"temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}, "
                f"got {self.temperature}"
            )

    def with_changes(self, **changes) -> 'ChatSettings':
        """Return a copy with the given fields replaced"""
        return replace(self, **changes)
