"""Statistics gathered while building a tree."""

from dataclasses import dataclass


@dataclass
class ParseStatistics:
    """Counters for a single parse call."""

    events_processed: int = 0
    elements_created: int = 0
    max_depth: int = 0
    characters_processed: int = 0
    processing_time_ms: float = 0.0

    @property
    def events_per_second(self) -> float:
        """Calculate lexer events consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.events_processed * 1000.0) / self.processing_time_ms

    def to_dict(self) -> dict:
        """Convert statistics to a plain dictionary."""
        return {
            "events_processed": self.events_processed,
            "elements_created": self.elements_created,
            "max_depth": self.max_depth,
            "characters_processed": self.characters_processed,
            "processing_time_ms": round(self.processing_time_ms, 3),
        }
