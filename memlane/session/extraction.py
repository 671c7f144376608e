"""Proposal extraction from conversation transcripts.

Extractors are interchangeable: session processing only sees the
Extractor interface, and create_extractor() picks the implementation
named in configuration.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from memlane.config.models.extraction import ExtractionConfig
from memlane.review.models import IdentityProposal, MemoryProposal
from memlane.session.models import ExtractionResult, TranscriptLine

NAME_PHRASE = "my name is"
NAME_TRAILING_PUNCTUATION = ".,!?"


class Extractor(ABC):
    """Turns a transcript into identity and memory proposals."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name as used in configuration."""
        pass

    @abstractmethod
    def extract(self, messages: Sequence[TranscriptLine]) -> ExtractionResult:
        """Extract proposals from the transcript."""
        pass


class RuleBasedExtractor(Extractor):
    """Keyword heuristics over user lines.

    - Lines shorter than min_statement_length (after trimming) are ignored.
    - A line that does not end with "?" becomes a memory proposal.
    - A line containing "my name is" (any case) proposes the lowercased text
      after it as the user's name, even when nothing follows the phrase.
    """

    def __init__(
        self,
        min_statement_length: int = 10,
        memory_importance: float = 0.5,
        name_confidence: float = 0.8,
    ) -> None:
        self._min_length = min_statement_length
        self._importance = memory_importance
        self._name_confidence = name_confidence

    @property
    def name(self) -> str:
        return "rule_based"

    def extract(self, messages: Sequence[TranscriptLine]) -> ExtractionResult:
        result = ExtractionResult()

        for message in messages:
            if message.role != "user":
                continue

            content = message.content.strip()
            if len(content) < self._min_length:
                continue

            if not content.endswith("?"):
                result.memory_proposals.append(
                    MemoryProposal(
                        content=content,
                        importance=self._importance,
                        source="conversation",
                    )
                )

            name = self._extract_name(content)
            if name is not None:
                result.identity_proposals.append(
                    IdentityProposal(
                        key="name",
                        value=name,
                        confidence=self._name_confidence,
                    )
                )

        return result

    @staticmethod
    def _extract_name(content: str) -> str | None:
        lowered = content.lower()
        start = lowered.find(NAME_PHRASE)
        if start < 0:
            return None
        return lowered[start + len(NAME_PHRASE):].strip().rstrip(NAME_TRAILING_PUNCTUATION)


def create_extractor(config: ExtractionConfig | None = None) -> Extractor:
    """Create the extractor named by config.strategy.

    Raises:
        ValueError: If the strategy is not recognized
    """
    config = config or ExtractionConfig()

    if config.strategy == "rule_based":
        return RuleBasedExtractor(
            min_statement_length=config.min_statement_length,
            memory_importance=config.memory_importance,
            name_confidence=config.name_confidence,
        )

    raise ValueError(f"Unknown extraction strategy: {config.strategy}")
