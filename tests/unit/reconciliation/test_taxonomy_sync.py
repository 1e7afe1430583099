"""Tests for the taxonomy mirror sync."""

import pytest

from tradelog.core.enums import TagKind
from tradelog.core.errors import MirrorTransientError, SheetsApiError, SpreadsheetNotFoundError
from tradelog.journal.taxonomy import TagTaxonomy
from tradelog.reconciliation.taxonomy_sync import TAXONOMY_HEADER, TaxonomyMirrorSync, taxonomy_rows

from factories import SPREADSHEET_ID as SID


@pytest.fixture
def sync(sheet_book):
    return TaxonomyMirrorSync(sheet_book, SID)


@pytest.fixture
def taxonomy():
    return TagTaxonomy({
        TagKind.REGIONS: ["A", "B"],
        TagKind.STRUCTURES: ["S1"],
        TagKind.TRIGGERS: [],
    })


async def _seed(book, rows):
    book.create_spreadsheet(SID, ["Config"])
    await book.update_values(SID, "Config!A1", rows)


class TestTaxonomyRows:
    def test_rows_are_padded(self, taxonomy):
        assert taxonomy_rows(taxonomy) == [
            TAXONOMY_HEADER,
            ["A", "S1", ""],
            ["B", "", ""],
        ]

    def test_empty_taxonomy(self):
        assert taxonomy_rows(TagTaxonomy({})) == [TAXONOMY_HEADER]


class TestFetchAndMerge:
    @pytest.mark.asyncio
    async def test_missing_tab_is_created_and_filled(self, sync, sheet_book, taxonomy):
        changed = await sync.fetch_and_merge(taxonomy)

        assert changed is False
        assert sheet_book.grid(SID, "Config") == [
            ["Regiões", "Estruturas", "Gatilhos"],
            ["A", "S1"],
            ["B"],
        ]

    @pytest.mark.asyncio
    async def test_remote_values_merged_and_rewritten(self, sync, sheet_book, taxonomy):
        await _seed(sheet_book, [TAXONOMY_HEADER, ["C", "", "T1"], ["A", "S0", ""]])

        changed = await sync.fetch_and_merge(taxonomy)

        assert changed is True
        assert taxonomy.values(TagKind.REGIONS) == ["A", "B", "C"]
        assert taxonomy.values(TagKind.STRUCTURES) == ["S0", "S1"]
        assert taxonomy.values(TagKind.TRIGGERS) == ["T1"]
        assert sheet_book.grid(SID, "Config") == [
            TAXONOMY_HEADER,
            ["A", "S0", "T1"],
            ["B", "S1"],
            ["C"],
        ]
        methods = [m for m, _ in sheet_book.calls]
        assert methods.index("clear_values") < methods.index("update_values", 1)

    @pytest.mark.asyncio
    async def test_remote_subset_is_noop(self, sync, sheet_book, taxonomy):
        await _seed(sheet_book, [TAXONOMY_HEADER, ["B", "S1", ""]])
        sheet_book.calls.clear()

        assert await sync.fetch_and_merge(taxonomy) is False
        assert sheet_book.call_count("update_values") == 0
        assert sheet_book.call_count("clear_values") == 0

    @pytest.mark.asyncio
    async def test_merge_is_order_independent(self, sheet_book):
        local = TagTaxonomy({TagKind.REGIONS: ["A", "B"]})
        await _seed(sheet_book, [TAXONOMY_HEADER, ["C"], ["B"]])
        await TaxonomyMirrorSync(sheet_book, SID).fetch_and_merge(local)
        assert local.values(TagKind.REGIONS) == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_missing_spreadsheet(self, sheet_book, taxonomy):
        sync = TaxonomyMirrorSync(sheet_book, "nope")
        with pytest.raises(SpreadsheetNotFoundError):
            await sync.fetch_and_merge(taxonomy)

    @pytest.mark.asyncio
    async def test_write_failure(self, sync, sheet_book, taxonomy):
        await _seed(sheet_book, [TAXONOMY_HEADER, ["Z"]])
        sheet_book.fail_next("update_values", SheetsApiError("quota", status=429))
        with pytest.raises(MirrorTransientError) as exc_info:
            await sync.fetch_and_merge(taxonomy)
        assert exc_info.value.operation == "write taxonomy sheet"

    @pytest.mark.asyncio
    async def test_cleared_sheet_is_rewritten_on_retry(self, sync, sheet_book, taxonomy):
        await _seed(sheet_book, [TAXONOMY_HEADER, ["Z"]])
        sheet_book.fail_next("update_values", SheetsApiError("quota", status=429))
        with pytest.raises(MirrorTransientError):
            await sync.fetch_and_merge(taxonomy)
        assert sheet_book.grid(SID, "Config") == []

        assert await sync.fetch_and_merge(taxonomy) is False

        assert sheet_book.grid(SID, "Config") == [TAXONOMY_HEADER, ["A", "S1"], ["B"], ["Z"]]

    @pytest.mark.asyncio
    async def test_headerless_sheet_is_rewritten(self, sync, sheet_book, taxonomy):
        await _seed(sheet_book, [["wrong", "labels"], ["A"]])

        assert await sync.fetch_and_merge(taxonomy) is False

        assert sheet_book.grid(SID, "Config")[0] == TAXONOMY_HEADER
        assert sheet_book.call_count("clear_values") == 1


class TestSingleValueOps:
    @pytest.mark.asyncio
    async def test_append_tag_adds_one_row(self, sync, sheet_book):
        await _seed(sheet_book, [TAXONOMY_HEADER, ["A", "S1", ""], ["B", "", ""]])

        await sync.append_tag(TagKind.TRIGGERS, "T9")

        assert sheet_book.grid(SID, "Config")[3] == ["", "", "T9"]

    @pytest.mark.asyncio
    async def test_remove_tag_clears_only_that_cell(self, sync, sheet_book):
        await _seed(sheet_book, [TAXONOMY_HEADER, ["A", "S1", "T1"], ["B", "S2", ""]])

        assert await sync.remove_tag(TagKind.STRUCTURES, "S2") is True

        assert sheet_book.grid(SID, "Config") == [TAXONOMY_HEADER, ["A", "S1", "T1"], ["B"]]
        assert ("clear_values", "Config!B3") in sheet_book.calls

    @pytest.mark.asyncio
    async def test_remove_missing_tag(self, sync, sheet_book):
        await _seed(sheet_book, [TAXONOMY_HEADER, ["A"]])
        assert await sync.remove_tag(TagKind.REGIONS, "Z") is False
        assert sheet_book.call_count("clear_values") == 0

    @pytest.mark.asyncio
    async def test_header_cell_never_matched(self, sync, sheet_book):
        await _seed(sheet_book, [TAXONOMY_HEADER])
        assert await sync.remove_tag(TagKind.REGIONS, "Regiões") is False
