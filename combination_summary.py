"""Post-generation summary: per-stream counts and sample combinations."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field


@dataclass
class StreamCount:
    stream_id: int
    name: str
    count: int


@dataclass
class SampleCombination:
    stream_name: str
    subject_names: tuple[str, str, str]


@dataclass
class GenerationSummary:
    streams: list[StreamCount] = field(default_factory=list)
    samples: list[SampleCombination] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(s.count for s in self.streams)

    def to_dict(self) -> dict:
        return {
            "streams": [
                {"streamId": s.stream_id, "name": s.name, "count": s.count}
                for s in self.streams
            ],
            "total": self.total,
            "samples": [
                {"stream": s.stream_name, "subjects": list(s.subject_names)}
                for s in self.samples
            ],
        }


def build_summary(
    db,
    common_stream_id: int = 7,
    sample_size: int = 5,
    stream_ids: Collection[int] | None = None,
) -> GenerationSummary:
    """Count stored combinations for every active stream except Common.

    With ``stream_ids`` only those streams are reported, so a run can list
    exactly the streams it generated.
    """
    count_rows = db.execute(
        "SELECT s.id, s.name, COUNT(vc.id) AS c "
        "FROM streams s LEFT JOIN valid_combinations vc ON vc.stream_id = s.id "
        "WHERE s.is_active = 1 AND s.id != ? AND s.name != 'Common' "
        "GROUP BY s.id, s.name ORDER BY s.id",
        (common_stream_id,),
    ).fetchall()

    sample_rows = db.execute(
        "SELECT st.name AS stream_name, a.name AS n1, b.name AS n2, c.name AS n3 "
        "FROM valid_combinations vc "
        "JOIN streams st ON st.id = vc.stream_id "
        "JOIN subjects a ON a.id = vc.subject1 "
        "JOIN subjects b ON b.id = vc.subject2 "
        "JOIN subjects c ON c.id = vc.subject3 "
        "ORDER BY vc.id LIMIT ?",
        (sample_size,),
    ).fetchall()

    return GenerationSummary(
        streams=[
            StreamCount(r["id"], r["name"], r["c"])
            for r in count_rows
            if stream_ids is None or r["id"] in stream_ids
        ],
        samples=[
            SampleCombination(r["stream_name"], (r["n1"], r["n2"], r["n3"]))
            for r in sample_rows
        ],
    )


def format_summary(summary: GenerationSummary) -> str:
    lines = ["", "SUMMARY OF GENERATED COMBINATIONS", "=" * 50]
    for s in summary.streams:
        lines.append(f"{s.name:<30} : {s.count:>4} combinations")
    lines.append("-" * 50)
    lines.append(f"{'TOTAL':<30} : {summary.total:>4} combinations")
    lines.append("=" * 50)

    if summary.samples:
        lines.append("")
        lines.append("Sample combinations:")
        for i, sample in enumerate(summary.samples, start=1):
            lines.append(f"{i}. {sample.stream_name}:")
            lines.append("   " + " + ".join(sample.subject_names))
    return "\n".join(lines)
