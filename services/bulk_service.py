"""
Bulk Service: CSV Import/Export Pipeline

Moves example corpora and creator rosters in and out as CSV:
- Export of the current filtered view (every page of it)
- Row-validated import; valid rows commit, invalid rows are reported
- Grouping of response rows into one example per (fan_message, category)
- Monotonic progress reporting ending at 100 after the last commit

Design Pattern: Pipeline over the Example Service
"""

import csv
import io
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from loguru import logger

from config.constants import (
    CREATOR_ROSTER_CSV,
    RANKING_SCALE,
    RESPONSE_EXAMPLE_CSV,
    STYLE_EXAMPLE_CSV,
    CsvSchema,
)
from config.settings import CorpusSettings, get_settings
from core.enums import ExampleCategory, ExampleKind
from core.exceptions import CreatorNotFoundError, CreatorStyleException, ValidationError
from core.models import (
    CandidateResponseCreate,
    Creator,
    ImportReport,
    ResponseExampleCreate,
    StyleExampleCreate,
    coerce_model,
)
from infrastructure.monitoring import MetricsCollector
from services.creator_service import CreatorService
from services.example_service import ExampleService
from services.stats_service import StatsService

ProgressCallback = Callable[[int], None]
CsvContent = Union[bytes, str]


class ProgressTracker:
    """
    Percentage reporter for a fixed amount of work.

    Values never decrease and 100 is reserved for ``finish``.
    """

    def __init__(self, callback: Optional[ProgressCallback], total_units: int):
        self.callback = callback
        self.total_units = max(total_units, 1)
        self.done = 0
        self.last: Optional[int] = None

    def _emit(self, value: int) -> None:
        if self.callback is None:
            return
        if self.last is not None and value <= self.last:
            return
        self.last = value
        self.callback(value)

    def start(self) -> None:
        self._emit(0)

    def advance(self, units: int = 1) -> None:
        self.done += units
        self._emit(min(99, self.done * 100 // self.total_units))

    def finish(self) -> None:
        self._emit(100)


@dataclass
class _ResponseGroup:
    fan_message: str
    category: Optional[ExampleCategory]
    rows: List[int] = field(default_factory=list)
    responses: List[CandidateResponseCreate] = field(default_factory=list)


def _reason(error: CreatorStyleException) -> str:
    if isinstance(error, ValidationError) and error.field_errors:
        return "; ".join(f"{name}: {message}" for name, message in error.field_errors.items())
    return error.message


def _parse_ranking(raw: str) -> Optional[int]:
    text = raw.strip()
    if not text:
        return None
    try:
        value = int(text)
    except ValueError as e:
        raise ValidationError.for_field(
            "ranking", f"ranking must be an integer between {RANKING_SCALE.MIN} and {RANKING_SCALE.MAX}"
        ) from e
    if not RANKING_SCALE.MIN <= value <= RANKING_SCALE.MAX:
        raise ValidationError.for_field(
            "ranking", f"ranking must be between {RANKING_SCALE.MIN} and {RANKING_SCALE.MAX}"
        )
    return value


class BulkService:
    """CSV import and export for both corpora and the creator roster."""

    def __init__(
        self,
        example_service: ExampleService,
        creator_service: CreatorService,
        stats_service: StatsService,
        metrics_collector: Optional[MetricsCollector] = None,
        corpus_settings: Optional[CorpusSettings] = None,
    ):
        self.example_service = example_service
        self.creator_service = creator_service
        self.stats_service = stats_service
        self.metrics = metrics_collector
        self.corpus_settings = corpus_settings or get_settings().corpus

    # =========================================================================
    # EXPORT
    # =========================================================================

    @staticmethod
    def _write_csv(headers: Tuple[str, ...], rows: List[List[object]]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(headers)
        writer.writerows(rows)
        return buffer.getvalue()

    async def export_style_examples(
        self, creator_id: int, *, search: Optional[str] = None, category: Optional[str] = None
    ) -> str:
        """Filtered style examples as ``fan_message,creator_response,category`` CSV."""
        examples = await self.example_service.list_all_style_examples(
            creator_id, search=search, category=category
        )
        rows = [
            [e.fan_message, e.creator_response, e.category.value if e.category else ""]
            for e in examples
        ]
        return self._write_csv(STYLE_EXAMPLE_CSV.headers, rows)

    async def export_response_examples(
        self, creator_id: int, *, search: Optional[str] = None, category: Optional[str] = None
    ) -> str:
        """Filtered response examples, one CSV row per candidate."""
        examples = await self.example_service.list_all_response_examples(
            creator_id, search=search, category=category
        )
        rows = []
        for example in examples:
            category_value = example.category.value if example.category else ""
            for candidate in sorted(example.responses, key=lambda r: r.position):
                rows.append(
                    [
                        example.fan_message,
                        category_value,
                        candidate.response_text,
                        "" if candidate.ranking is None else candidate.ranking,
                    ]
                )
        return self._write_csv(RESPONSE_EXAMPLE_CSV.headers, rows)

    async def export_creators(
        self, *, search: Optional[str] = None, status: Optional[str] = "all"
    ) -> str:
        """Creator roster with example counts, one row per creator."""
        creators = await self.creator_service.list_all(search=search, status=status)
        known: Dict[int, Creator] = {c.id: c for c in creators}
        stats = await self.stats_service.get_bulk_stats(list(known), known)

        rows = []
        for creator in creators:
            snapshot = stats[creator.id]
            rows.append(
                [
                    creator.id,
                    creator.name,
                    creator.description or "",
                    "Active" if creator.is_active else "Inactive",
                    snapshot.style_examples_count,
                    snapshot.response_examples_count,
                    snapshot.total_examples,
                    "Yes" if snapshot.has_style_config else "No",
                    creator.created_at.isoformat(),
                    creator.updated_at.isoformat(),
                ]
            )
        return self._write_csv(CREATOR_ROSTER_CSV.headers, rows)

    # =========================================================================
    # IMPORT
    # =========================================================================

    def _read_rows(self, content: CsvContent, schema: CsvSchema) -> List[Tuple[int, Dict[str, str]]]:
        """
        Decode and parse a CSV payload into (1-based data row, values) pairs.

        Raises:
            ValidationError: Oversized file, undecodable bytes or missing headers
        """
        size = len(content.encode("utf-8") if isinstance(content, str) else content)
        if size > self.corpus_settings.max_import_bytes:
            raise ValidationError.for_field(
                "file", f"file exceeds {self.corpus_settings.max_import_bytes} bytes"
            )

        if isinstance(content, bytes):
            try:
                text = content.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise ValidationError.for_field("file", "file must be UTF-8 encoded") from e
        else:
            text = content.lstrip("\ufeff")

        reader = csv.DictReader(io.StringIO(text))
        headers = [name.strip() for name in (reader.fieldnames or [])]
        missing = [name for name in schema.required_headers if name not in headers]
        if missing:
            raise ValidationError.for_field(
                "file", f"missing required columns: {', '.join(missing)}"
            )
        reader.fieldnames = headers

        rows = []
        for raw in reader:
            # data row numbering follows the file, blank lines included
            embedded = sum(v.count("\n") for v in raw.values() if isinstance(v, str))
            index = reader.line_num - 1 - embedded
            rows.append(
                (index, {name: (raw.get(name) or "") for name in schema.headers})
            )
        return rows

    def _record_import(self, report: ImportReport) -> None:
        if self.metrics:
            self.metrics.record_import_rows(
                report.kind.value, report.imported_rows, report.failed_rows
            )
        logger.info(
            f"Imported {report.imported_rows}/{report.total_rows} {report.kind.value} rows "
            f"({report.failed_rows} failed)"
        )

    async def import_style_examples(
        self,
        creator_id: int,
        content: CsvContent,
        progress: Optional[ProgressCallback] = None,
    ) -> ImportReport:
        """
        Import style examples row by row.

        Returns:
            Report listing every rejected row; callers decide whether that is an error

        Raises:
            ValidationError: The file as a whole is unusable
            CreatorNotFoundError: If the creator does not exist
        """
        rows = self._read_rows(content, STYLE_EXAMPLE_CSV)
        await self.creator_service.get_creator(creator_id)

        report = ImportReport(kind=ExampleKind.STYLE, total_rows=len(rows))
        tracker = ProgressTracker(progress, len(rows))
        tracker.start()

        for index, values in rows:
            try:
                payload = coerce_model(StyleExampleCreate, values)
                await self.example_service.create_style_example(creator_id, payload)
            except CreatorNotFoundError:
                raise
            except CreatorStyleException as e:
                report.add_failure(index, _reason(e))
            else:
                report.imported_rows += 1
                report.created_examples += 1
            tracker.advance()

        tracker.finish()
        self._record_import(report)
        return report

    async def import_response_examples(
        self,
        creator_id: int,
        content: CsvContent,
        progress: Optional[ProgressCallback] = None,
    ) -> ImportReport:
        """
        Import response examples, grouping rows by (fan_message, category).

        Each group commits as one example; if that commit fails every row
        of the group is reported.

        Raises:
            ValidationError: The file as a whole is unusable
            CreatorNotFoundError: If the creator does not exist
        """
        rows = self._read_rows(content, RESPONSE_EXAMPLE_CSV)
        await self.creator_service.get_creator(creator_id)

        report = ImportReport(kind=ExampleKind.RESPONSE, total_rows=len(rows))
        groups: Dict[Tuple[str, Optional[ExampleCategory]], _ResponseGroup] = {}

        for index, values in rows:
            try:
                fan_message = values["fan_message"]
                if not fan_message.strip():
                    raise ValidationError.for_field("fan_message", "fan_message cannot be empty")
                try:
                    category = ExampleCategory.parse(values["category"])
                except ValueError as e:
                    raise ValidationError.for_field("category", str(e)) from e
                candidate = coerce_model(
                    CandidateResponseCreate,
                    {
                        "response_text": values["response_text"],
                        "ranking": _parse_ranking(values["ranking"]),
                    },
                )
            except ValidationError as e:
                report.add_failure(index, _reason(e))
                continue

            group = groups.setdefault(
                (fan_message, category), _ResponseGroup(fan_message, category)
            )
            group.rows.append(index)
            group.responses.append(candidate)

        tracker = ProgressTracker(progress, len(rows))
        tracker.start()
        tracker.advance(report.failed_rows)

        for group in groups.values():
            try:
                await self.example_service.create_response_example(
                    creator_id,
                    ResponseExampleCreate(
                        fan_message=group.fan_message,
                        category=group.category,
                        responses=group.responses,
                    ),
                )
            except CreatorNotFoundError:
                raise
            except CreatorStyleException as e:
                for index in group.rows:
                    report.add_failure(index, _reason(e))
            else:
                report.imported_rows += len(group.rows)
                report.created_examples += 1
            tracker.advance(len(group.rows))

        report.failures.sort(key=lambda failure: failure.row)
        tracker.finish()
        self._record_import(report)
        return report


__all__ = ["ProgressTracker", "BulkService"]
