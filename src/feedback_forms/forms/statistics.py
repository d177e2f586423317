from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .schema import FormField


class PopularOption(BaseModel):
    option: str
    count: int


class FieldStatistics(BaseModel):
    field_label: str
    field_type: str
    total_answers: int = 0
    response_rate: float = 0.0
    # RATING
    average: Optional[float] = None
    min: Optional[int] = None
    max: Optional[int] = None
    distribution: Optional[Dict[str, int]] = None
    # RADIO / CHECKBOX
    option_counts: Optional[Dict[str, int]] = None
    most_popular: Optional[PopularOption] = None
    # TEXT / TEXTAREA
    average_word_count: Optional[int] = None
    total_words: Optional[int] = None
    sample_responses: Optional[List[str]] = None
    # SELECT
    sample_answers: Optional[List[str]] = None


class FormStatistics(BaseModel):
    total_responses: int
    total_attendees: Optional[int] = None
    response_rate: Optional[float] = None
    field_stats: Dict[str, FieldStatistics] = Field(default_factory=dict)


def _answered(value: Any) -> bool:
    return value is not None and value != "" and value != []


def _field_statistics(field: FormField, answers: List[Any], submissions: int) -> FieldStatistics:
    stats = FieldStatistics(
        field_label=field.label or field.id,
        field_type=field.type,
        total_answers=len(answers),
        response_rate=(len(answers) / submissions) * 100 if submissions else 0.0,
    )
    if not answers:
        return stats

    if field.type == "RATING":
        ratings = [a for a in answers if isinstance(a, int) and not isinstance(a, bool)]
        if ratings:
            stats.average = sum(ratings) / len(ratings)
            stats.min = min(ratings)
            stats.max = max(ratings)
            stats.distribution = {str(k): v for k, v in sorted(Counter(ratings).items())}
    elif field.type in ("RADIO", "CHECKBOX"):
        counts: Counter[str] = Counter()
        for answer in answers:
            if isinstance(answer, list):
                counts.update(a for a in answer if isinstance(a, str))
            elif isinstance(answer, str):
                counts[answer] += 1
        stats.option_counts = dict(counts)
        if counts:
            # first option reaching the top count wins ties
            best = max(counts.items(), key=lambda item: item[1])
            stats.most_popular = PopularOption(option=best[0], count=best[1])
    elif field.type in ("TEXT", "TEXTAREA"):
        texts = [a for a in answers if isinstance(a, str) and a.strip()]
        if texts:
            words = [len(t.split()) for t in texts]
            stats.total_words = sum(words)
            stats.average_word_count = round(stats.total_words / len(texts))
            stats.sample_responses = texts[:3]
    elif field.type == "SELECT":
        unique: List[str] = []
        for answer in answers:
            if isinstance(answer, str) and answer not in unique:
                unique.append(answer)
        stats.sample_answers = unique[:5]
    return stats


def compute_statistics(
    fields: Sequence[FormField],
    submissions: Sequence[Mapping[str, Any]],
    total_attendees: Optional[int] = None,
) -> FormStatistics:
    """Aggregate stored submissions per field of the form."""
    total = len(submissions)
    result = FormStatistics(total_responses=total, total_attendees=total_attendees)
    if total_attendees is not None:
        rate = (total / total_attendees) * 100 if total_attendees > 0 else 0.0
        result.response_rate = round(rate, 2)

    for field in fields:
        answers = [s.get(field.id) for s in submissions]
        answers = [a for a in answers if _answered(a)]
        result.field_stats[field.id] = _field_statistics(field, answers, total)
    return result
