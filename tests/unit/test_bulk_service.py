"""
Unit tests for the CSV import/export pipeline.
"""

import csv
import io

import pytest

from config.settings import CorpusSettings
from core.exceptions import CreatorNotFoundError, ValidationError
from services.bulk_service import BulkService, ProgressTracker


def _rows(text: str):
    return list(csv.reader(io.StringIO(text)))


class TestProgressTracker:
    def test_monotonic_and_ends_at_100(self):
        seen = []
        tracker = ProgressTracker(seen.append, total_units=3)
        tracker.start()
        for _ in range(3):
            tracker.advance()
        tracker.finish()
        assert seen == [0, 33, 66, 99, 100]

    def test_empty_work_still_completes(self):
        seen = []
        tracker = ProgressTracker(seen.append, total_units=0)
        tracker.start()
        tracker.finish()
        assert seen == [0, 100]


class TestStyleImport:
    @pytest.mark.asyncio
    async def test_valid_rows_commit_and_malformed_rows_are_reported(
        self, bulk_service, example_service, alex, metrics
    ):
        lines = ["fan_message,creator_response,category"]
        lines += [f"message {i},reply {i},Greeting" for i in range(10)]
        lines.insert(6, ",reply without message,Question")
        progress = []

        report = await bulk_service.import_style_examples(
            alex.id, "\n".join(lines), progress=progress.append
        )

        assert (report.total_rows, report.imported_rows, report.failed_rows) == (11, 10, 1)
        assert report.failures[0].row == 6
        assert "fan_message" in report.failures[0].reason
        assert progress == sorted(progress)
        assert progress[-1] == 100 and progress.count(100) == 1

        page = await example_service.list_style_examples(alex.id, limit=100)
        assert page.total == 10
        assert metrics.sample("import_rows_total", {"kind": "style", "outcome": "imported"}) == 10
        assert metrics.sample("import_rows_total", {"kind": "style", "outcome": "failed"}) == 1

    @pytest.mark.asyncio
    async def test_bom_and_case_insensitive_category(self, bulk_service, example_service, alex):
        content = "\ufefffan_message,creator_response,category\nhi,hey,greeting\n".encode("utf-8")
        report = await bulk_service.import_style_examples(alex.id, content)
        assert report.failed_rows == 0
        page = await example_service.list_style_examples(alex.id)
        assert page.items[0].category.value == "Greeting"

    @pytest.mark.asyncio
    async def test_unknown_category_rejects_row(self, bulk_service, alex):
        content = "fan_message,creator_response,category\nhi,hey,Spam\nyo,sup,\n"
        report = await bulk_service.import_style_examples(alex.id, content)
        assert report.imported_rows == 1
        assert [f.row for f in report.failures] == [1]

    @pytest.mark.asyncio
    async def test_missing_header_rejects_file(self, bulk_service, alex):
        with pytest.raises(ValidationError) as exc_info:
            await bulk_service.import_style_examples(alex.id, "fan_message,category\nhi,Other\n")
        assert "creator_response" in exc_info.value.field_errors["file"]

    @pytest.mark.asyncio
    async def test_failure_rows_follow_file_lines(self, bulk_service, alex):
        content = (
            "fan_message,creator_response,category\n"
            "hi,hey,\n"
            "\n"
            '"two\nlines",sup,\n'
            "yo,sup,Spam\n"
        )
        report = await bulk_service.import_style_examples(alex.id, content)
        assert report.imported_rows == 2
        assert [f.row for f in report.failures] == [5]

    @pytest.mark.asyncio
    async def test_extra_columns_ignored(self, bulk_service, alex):
        content = "notes,fan_message,creator_response,category\nx,hi,hey,\n"
        report = await bulk_service.import_style_examples(alex.id, content)
        assert report.imported_rows == 1

    @pytest.mark.asyncio
    async def test_oversized_file_rejected(
        self, example_service, creator_service, stats_service, alex
    ):
        service = BulkService(
            example_service,
            creator_service,
            stats_service,
            corpus_settings=CorpusSettings(max_import_bytes=1024),
        )
        content = "fan_message,creator_response,category\n" + "a,b,\n" * 400
        with pytest.raises(ValidationError) as exc_info:
            await service.import_style_examples(alex.id, content)
        assert "file" in exc_info.value.field_errors

    @pytest.mark.asyncio
    async def test_missing_creator(self, bulk_service):
        with pytest.raises(CreatorNotFoundError):
            await bulk_service.import_style_examples(
                99, "fan_message,creator_response,category\nhi,hey,\n"
            )


class TestResponseImport:
    @pytest.mark.asyncio
    async def test_rows_grouped_by_message_and_category(self, bulk_service, example_service, alex):
        content = "\n".join(
            [
                "fan_message,category,response_text,ranking",
                "what's up?,Casual,not much,5",
                "what's up?,Casual,chilling,",
                "what's up?,Question,same text other category,2",
                "what's up?,Casual,bad ranking,9",
                "what's up?,Casual,third,1",
            ]
        )
        report = await bulk_service.import_response_examples(alex.id, content)

        assert report.created_examples == 2
        assert report.imported_rows == 4
        assert [f.row for f in report.failures] == [4]

        examples = await example_service.list_all_response_examples(alex.id, category="Casual")
        assert len(examples) == 1
        casual = examples[0]
        assert [(r.response_text, r.ranking) for r in casual.responses] == [
            ("not much", 5),
            ("chilling", None),
            ("third", 1),
        ]

    @pytest.mark.asyncio
    async def test_progress_reaches_100_once_after_commits(self, bulk_service, alex):
        content = "fan_message,category,response_text,ranking\n" + "\n".join(
            f"msg {i},,reply,3" for i in range(4)
        )
        progress = []
        await bulk_service.import_response_examples(alex.id, content, progress=progress.append)
        assert progress[0] == 0
        assert progress == sorted(progress)
        assert progress[-1] == 100
        assert progress.count(100) == 1


class TestExport:
    @pytest.mark.asyncio
    async def test_style_export_quotes_and_blanks(self, bulk_service, example_service, alex):
        await example_service.create_style_example(
            alex.id,
            {"fan_message": 'she said "hi", then left', "creator_response": "line1\nline2"},
        )
        text = await bulk_service.export_style_examples(alex.id)
        assert text.splitlines()[0] == "fan_message,creator_response,category"
        assert '"she said ""hi"", then left"' in text
        assert _rows(text)[1] == ['she said "hi", then left', "line1\nline2", ""]

    @pytest.mark.asyncio
    async def test_response_export_one_row_per_candidate(
        self, bulk_service, example_service, alex, response_example_factory
    ):
        await example_service.create_response_example(
            alex.id, response_example_factory.payload(category=None, rankings=[2, None])
        )
        rows = _rows(await bulk_service.export_response_examples(alex.id))
        assert rows[0] == ["fan_message", "category", "response_text", "ranking"]
        assert rows[1:] == [
            ["what are you up to tonight?", "", "candidate 0", "2"],
            ["what are you up to tonight?", "", "candidate 1", ""],
        ]

    @pytest.mark.asyncio
    async def test_export_then_import_reproduces_tuples(
        self, bulk_service, example_service, creator_service, alex, response_example_factory
    ):
        await example_service.create_response_example(
            alex.id, response_example_factory.payload(rankings=[5, None, 0])
        )
        await example_service.create_response_example(
            alex.id,
            response_example_factory.payload(
                fan_message="hello, you", category=None, rankings=[3]
            ),
        )
        exported = await bulk_service.export_response_examples(alex.id)

        twin = await creator_service.create_creator(name="Twin")
        report = await bulk_service.import_response_examples(twin.id, exported)
        assert report.failed_rows == 0

        def tuples(examples):
            return sorted(
                (e.fan_message, r.response_text, str(e.category or ""), r.ranking is None, r.ranking or 0)
                for e in examples
                for r in e.responses
            )

        original = await example_service.list_all_response_examples(alex.id)
        copied = await example_service.list_all_response_examples(twin.id)
        assert tuples(copied) == tuples(original)

    @pytest.mark.asyncio
    async def test_export_follows_filter_across_pages(
        self, bulk_service, example_service, alex, style_example_factory
    ):
        for i in range(15):
            await example_service.create_style_example(
                alex.id,
                style_example_factory.payload(
                    fan_message=f"msg {i}", category="Greeting" if i % 3 else "Other"
                ),
            )
        rows = _rows(await bulk_service.export_style_examples(alex.id, category="Greeting"))
        assert len(rows) - 1 == 10

    @pytest.mark.asyncio
    async def test_creator_roster(
        self, bulk_service, example_service, style_profile_service, alex, style_example_factory
    ):
        await example_service.create_style_example(alex.id, style_example_factory.payload())
        await style_profile_service.get_or_create(alex.id)

        rows = _rows(await bulk_service.export_creators())
        assert rows[0] == [
            "ID",
            "Name",
            "Description",
            "Status",
            "Style Examples",
            "Response Examples",
            "Total Examples",
            "Has Config",
            "Created",
            "Updated",
        ]
        assert rows[1][:8] == [str(alex.id), "Alex", "Fitness coach", "Active", "1", "0", "1", "Yes"]
        assert rows[1][8] == alex.created_at.isoformat()
