"""Tests for the update, fix_columns and import_html jobs."""

from pathlib import Path
from unittest.mock import patch

import pytest

from ygodb.config import Settings, settings
from ygodb.dataset.schema import CARD_SCHEMA, FAQ_ID_SCHEMA, FAQ_SCHEMA, SUPPLEMENT_SCHEMA
from ygodb.dataset.store import MissingDatasetError, load_dataset, write_records
from ygodb.jobs import fix_columns, import_html, update
from ygodb.jobs.update import RunOptions, run_update
from ygodb.models import CardSupplement, FaqEntry, MonsterCard, SpellCard
from ygodb.scrapers.yugioh_db import FetchError, SessionError
from ygodb.services.pacing import RequestPacer

EMPTY_PAGE = "<html><body></body></html>"


class FakeClient:
    """Serves fixture pages in place of the card database."""

    def __init__(
        self,
        card_pages: list[str] | None = None,
        faq_pages: list[str] | None = None,
        faq_detail: str = EMPTY_PAGE,
        card_detail: str = EMPTY_PAGE,
        session_error: bool = False,
    ) -> None:
        self.config = Settings(results_per_page=100)
        self.pacer = RequestPacer(0)
        self.card_pages = card_pages or []
        self.faq_pages = faq_pages or []
        self.faq_detail = faq_detail
        self.card_detail = card_detail
        self.session_error = session_error
        self.calls: list[tuple[str, object]] = []

    def establish_session(self) -> int:
        if self.session_error:
            raise SessionError("No session cookies received")
        return 1

    def close(self) -> None:
        pass

    @staticmethod
    def _page(pages: list[str], page: int) -> str:
        return pages[page - 1] if page <= len(pages) else EMPTY_PAGE

    def fetch_card_list_page(self, page: int) -> str:
        self.calls.append(("cards", page))
        return self._page(self.card_pages, page)

    def fetch_faq_list_page(self, page: int) -> str:
        self.calls.append(("faq_list", page))
        return self._page(self.faq_pages, page)

    def fetch_faq_detail(self, faq_id: str) -> str:
        self.calls.append(("faq", faq_id))
        if faq_id == "broken":
            raise FetchError("boom")
        return self.faq_detail

    def fetch_card_detail(self, card_id: str) -> str:
        self.calls.append(("detail", card_id))
        return self.card_detail

    def fetched(self, kind: str) -> list[object]:
        return [value for call_kind, value in self.calls if call_kind == kind]


@pytest.fixture(autouse=True)
def checkpoint_dir(tmp_path: Path):
    with patch.object(settings, "checkpoint_dir", tmp_path / ".temp"):
        yield tmp_path / ".temp"


class TestUpdateCards:
    def test_incremental_into_empty_dataset(self, tmp_path: Path, card_list_html: str) -> None:
        """Every parsed card is written, newest id first."""
        client = FakeClient(card_pages=[card_list_html])

        [summary] = run_update("cards", RunOptions(), tmp_path, client=client)

        dataset = load_dataset(tmp_path / "cards-all.tsv", CARD_SCHEMA)
        assert dataset.ids == ["12950", "10000", "9999", "5500", "4861", "4007"]
        assert summary.new == 6
        assert summary.pages == 1

    def test_incremental_stops_at_known_card(
        self, tmp_path: Path, card_list_html: str, link_card: MonsterCard
    ) -> None:
        """The first known id ends the crawl."""
        write_records(tmp_path / "cards-all.tsv", CARD_SCHEMA, [link_card])
        client = FakeClient(card_pages=[card_list_html])

        [summary] = run_update("cards", RunOptions(), tmp_path, client=client)

        dataset = load_dataset(tmp_path / "cards-all.tsv", CARD_SCHEMA)
        assert dataset.ids == ["12950", "9999", "4007"]
        assert summary.stopped_at == "12950"
        assert summary.new == 2

    def test_top_n(self, tmp_path: Path, card_list_html: str) -> None:
        client = FakeClient(card_pages=[card_list_html])

        run_update("cards", RunOptions(top=2), tmp_path, client=client)

        dataset = load_dataset(tmp_path / "cards-all.tsv", CARD_SCHEMA)
        assert dataset.ids == ["9999", "4007"]

    def test_range_refreshes_known_cards(
        self, tmp_path: Path, card_list_html: str, spell_card: SpellCard
    ) -> None:
        """Non-incremental strategies overwrite known cards."""
        stale = SpellCard(name="旧サイクロン", card_id="5500", ciid="1")
        write_records(tmp_path / "cards-all.tsv", CARD_SCHEMA, [stale])
        client = FakeClient(card_pages=[card_list_html])

        [summary] = run_update("cards", RunOptions(range=(3, 2)), tmp_path, client=client)

        dataset = load_dataset(tmp_path / "cards-all.tsv", CARD_SCHEMA)
        assert dataset.ids == ["10000", "5500"]
        assert dataset.record("5500").name == "サイクロン"
        assert summary.new == 1
        assert summary.updated == 1

    def test_unparseable_rows_counted_as_skipped(
        self, tmp_path: Path, card_list_html: str
    ) -> None:
        """Rows the parser cannot read show up in the run summary."""
        client = FakeClient(card_pages=[card_list_html])

        [summary] = run_update("cards", RunOptions(), tmp_path, client=client)

        assert summary.skipped == 2

    def test_full_page_with_unparseable_rows_keeps_paging(
        self, tmp_path: Path, card_list_html: str
    ) -> None:
        """A page is full by its row count, not by how many rows parsed."""
        client = FakeClient(card_pages=[card_list_html])
        client.config = Settings(results_per_page=8)

        [summary] = run_update("cards", RunOptions(force_all=True), tmp_path, client=client)

        assert client.fetched("cards") == [1, 2]
        assert summary.pages == 2
        assert summary.skipped == 2

    def test_ids_not_supported(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="not supported"):
            run_update("cards", RunOptions(ids=("1",)), tmp_path, client=FakeClient())


class TestUpdateDetails:
    def test_requires_cards_dataset(self, tmp_path: Path) -> None:
        """Supplements are crawled from the cards dataset."""
        with pytest.raises(MissingDatasetError):
            run_update("detail", RunOptions(), tmp_path, client=FakeClient())

    def test_incremental_fetches_missing_cards_only(
        self,
        tmp_path: Path,
        card_detail_html: str,
        monster_card: MonsterCard,
        spell_card: SpellCard,
    ) -> None:
        """Cards that already have an entry are not refetched."""
        write_records(tmp_path / "cards-all.tsv", CARD_SCHEMA, [spell_card, monster_card])
        write_records(
            tmp_path / "details-all.tsv",
            SUPPLEMENT_SCHEMA,
            [CardSupplement(card_id="4007", card_name="青眼の白龍")],
        )
        client = FakeClient(card_detail=card_detail_html)

        [summary] = run_update("detail", RunOptions(), tmp_path, client=client)

        assert client.fetched("detail") == ["5500"]
        dataset = load_dataset(tmp_path / "details-all.tsv", SUPPLEMENT_SCHEMA)
        assert dataset.ids == ["5500", "4007"]
        assert dataset.record("5500").supplement_date == "2023/04/01"
        assert summary.new == 1

    def test_force_all_writes_checkpoints(
        self,
        tmp_path: Path,
        checkpoint_dir: Path,
        card_detail_html: str,
        monster_card: MonsterCard,
        spell_card: SpellCard,
    ) -> None:
        """A full crawl refetches every card and checkpoints progress."""
        write_records(tmp_path / "cards-all.tsv", CARD_SCHEMA, [spell_card, monster_card])
        client = FakeClient(card_detail=card_detail_html)

        with patch.object(settings, "checkpoint_interval", 1):
            run_update("detail", RunOptions(force_all=True), tmp_path, client=client)

        assert client.fetched("detail") == ["5500", "4007"]
        assert (checkpoint_dir / "details" / "details-temp-2.tsv").exists()


class TestUpdateFaq:
    def test_incremental_adds_new_entries(
        self, tmp_path: Path, faq_list_html: str, faq_detail_html: str
    ) -> None:
        """New FAQ ids are prepended, unchanged ones kept."""
        existing = FaqEntry(faq_id="115", question="stored", updated_at="2024/01/15")
        write_records(tmp_path / "faq-all.tsv", FAQ_SCHEMA, [existing])
        client = FakeClient(faq_pages=[faq_list_html], faq_detail=faq_detail_html)

        [summary] = run_update("faq", RunOptions(), tmp_path, client=client)

        dataset = load_dataset(tmp_path / "faq-all.tsv", FAQ_SCHEMA)
        assert dataset.ids == ["21034", "21030", "115"]
        assert dataset.record("115").question == "stored"
        assert summary.new == 2
        assert summary.unchanged == 1

    def test_incremental_replaces_updated_entry(
        self, tmp_path: Path, faq_list_html: str, faq_detail_html: str
    ) -> None:
        """A later update date replaces the stored entry."""
        existing = FaqEntry(faq_id="115", question="stored", updated_at="2020/01/01")
        write_records(tmp_path / "faq-all.tsv", FAQ_SCHEMA, [existing])
        client = FakeClient(faq_pages=[faq_list_html], faq_detail=faq_detail_html)

        [summary] = run_update("faq", RunOptions(), tmp_path, client=client)

        dataset = load_dataset(tmp_path / "faq-all.tsv", FAQ_SCHEMA)
        assert dataset.record("115").updated_at == "2024/01/15"
        assert summary.updated == 1

    def test_top_keeps_unchanged_entries(
        self, tmp_path: Path, faq_list_html: str, faq_detail_html: str
    ) -> None:
        """--top applies only new entries and entries with a later update date."""
        existing = FaqEntry(faq_id="115", question="stored", updated_at="2024/01/15")
        write_records(tmp_path / "faq-all.tsv", FAQ_SCHEMA, [existing])
        client = FakeClient(faq_pages=[faq_list_html], faq_detail=faq_detail_html)

        [summary] = run_update("faq", RunOptions(top=3), tmp_path, client=client)

        dataset = load_dataset(tmp_path / "faq-all.tsv", FAQ_SCHEMA)
        assert client.fetched("faq") == ["21034", "21030", "115"]
        assert dataset.ids == ["21034", "21030", "115"]
        assert dataset.record("115").question == "stored"
        assert summary.new == 2
        assert summary.unchanged == 1
        assert summary.skipped == 1

    def test_range_replaces_updated_entry(
        self, tmp_path: Path, faq_list_html: str, faq_detail_html: str
    ) -> None:
        existing = FaqEntry(faq_id="115", question="stored", updated_at="2020/01/01")
        write_records(tmp_path / "faq-all.tsv", FAQ_SCHEMA, [existing])
        client = FakeClient(faq_pages=[faq_list_html], faq_detail=faq_detail_html)

        [summary] = run_update("faq", RunOptions(range=(2, 1)), tmp_path, client=client)

        dataset = load_dataset(tmp_path / "faq-all.tsv", FAQ_SCHEMA)
        assert dataset.record("115").updated_at == "2024/01/15"
        assert summary.updated == 1

    def test_targeted_refetch_backs_up(
        self, tmp_path: Path, faq_detail_html: str, faq_entry: FaqEntry
    ) -> None:
        """--ids refetches the given ids after backing up the file."""
        path = write_records(tmp_path / "faq-all.tsv", FAQ_SCHEMA, [faq_entry])
        original = path.read_text(encoding="utf-8")
        client = FakeClient(faq_detail=faq_detail_html)

        [summary] = run_update(
            "faq", RunOptions(ids=("115", "broken")), tmp_path, client=client
        )

        assert (tmp_path / "faq-all.tsv.backup").read_text(encoding="utf-8") == original
        assert load_dataset(path, FAQ_SCHEMA).record("115").updated_at == "2024/01/15"
        assert summary.errors == 1
        assert summary.updated == 1

    def test_force_all_requires_id_list(self, tmp_path: Path) -> None:
        with pytest.raises(MissingDatasetError):
            run_update("faq", RunOptions(force_all=True), tmp_path, client=FakeClient())

    def test_force_all_uses_id_list(self, tmp_path: Path, faq_detail_html: str) -> None:
        """Every id of the FAQ id list is fetched with the full-crawl delay."""
        write_records(tmp_path / "faqid-all.tsv", FAQ_ID_SCHEMA, ["3", "2", "1"])
        client = FakeClient(faq_detail=faq_detail_html)

        run_update("faq", RunOptions(force_all=True), tmp_path, client=client)

        assert client.fetched("faq") == ["3", "2", "1"]
        assert client.pacer.delay_max == settings.faq_full_delay_max
        assert load_dataset(tmp_path / "faq-all.tsv", FAQ_SCHEMA).ids == ["3", "2", "1"]


class TestUpdateFaqIds:
    def test_writes_id_list(self, tmp_path: Path, faq_list_html: str) -> None:
        client = FakeClient(faq_pages=[faq_list_html])

        [summary] = run_update("faqids", RunOptions(), tmp_path, client=client)

        dataset = load_dataset(tmp_path / "faqid-all.tsv", FAQ_ID_SCHEMA)
        assert dataset.ids == ["21034", "21030", "115"]
        assert summary.fetched == 3


class TestRunAll:
    def test_runs_in_sequence(
        self,
        tmp_path: Path,
        card_list_html: str,
        faq_list_html: str,
        faq_detail_html: str,
        card_detail_html: str,
    ) -> None:
        """cards, detail and faq run in order with one session."""
        client = FakeClient(
            card_pages=[card_list_html],
            faq_pages=[faq_list_html],
            faq_detail=faq_detail_html,
            card_detail=card_detail_html,
        )

        summaries = run_update("all", RunOptions(), tmp_path, client=client)

        assert [summary.dataset for summary in summaries] == ["cards", "details", "faq"]
        assert len(client.fetched("detail")) == 6
        assert (tmp_path / "faq-all.tsv").exists()


class TestMain:
    def test_success(self, tmp_path: Path, faq_list_html: str) -> None:
        client = FakeClient(faq_pages=[faq_list_html])

        with patch("ygodb.jobs.update.YugiohDbClient", return_value=client):
            code = update.main(["faqids", "--data-dir", str(tmp_path)])

        assert code == 0

    def test_session_error_exits_1(self, tmp_path: Path) -> None:
        with patch("ygodb.jobs.update.YugiohDbClient", return_value=FakeClient(session_error=True)):
            assert update.main(["cards", "--data-dir", str(tmp_path)]) == 1

    def test_missing_prerequisite_exits_1(self, tmp_path: Path) -> None:
        with patch("ygodb.jobs.update.YugiohDbClient", return_value=FakeClient()):
            assert update.main(["detail", "--data-dir", str(tmp_path)]) == 1

    def test_ids_with_cards_exits_1(self, tmp_path: Path) -> None:
        with patch("ygodb.jobs.update.YugiohDbClient", return_value=FakeClient()):
            assert update.main(["cards", "--ids", "1,2", "--data-dir", str(tmp_path)]) == 1

    def test_missing_ids_file_exits_1(self, tmp_path: Path) -> None:
        missing = tmp_path / "ids.txt"

        assert update.main(["faq", "--ids-file", str(missing), "--data-dir", str(tmp_path)]) == 1

    def test_ids_file(self, tmp_path: Path, faq_detail_html: str) -> None:
        """Ids are read one per line, comments ignored."""
        ids_file = tmp_path / "ids.txt"
        ids_file.write_text("# broken entries\n115\n\n116\n", encoding="utf-8")
        client = FakeClient(faq_detail=faq_detail_html)

        with patch("ygodb.jobs.update.YugiohDbClient", return_value=client):
            code = update.main(["faq", "--ids-file", str(ids_file), "--data-dir", str(tmp_path)])

        assert code == 0
        assert client.fetched("faq") == ["115", "116"]

    def test_strategies_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            update.main(["faq", "--top", "5", "--force-all"])


class TestFixColumns:
    def test_pads_cards_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cards-all.tsv"
        path.write_text(CARD_SCHEMA.header + "\nspell\tX\t\t\t1", encoding="utf-8")

        code = fix_columns.main(["cards", "--data-dir", str(tmp_path)])

        assert code == 0
        assert len(path.read_text(encoding="utf-8").split("\n")[1].split("\t")) == 23
        assert (tmp_path / "cards-all.tsv.backup").exists()

    def test_missing_file_exits_1(self, tmp_path: Path) -> None:
        assert fix_columns.main(["faq", "--data-dir", str(tmp_path)]) == 1


class TestImportHtml:
    def test_imports_saved_pages(self, tmp_path: Path, card_list_html: str) -> None:
        page = tmp_path / "page1.html"
        page.write_text(card_list_html, encoding="utf-8")

        count = import_html.run_import([page], tmp_path)

        assert count == 6
        assert len(load_dataset(tmp_path / "cards-all.tsv", CARD_SCHEMA)) == 6

    def test_missing_page_exits_1(self, tmp_path: Path) -> None:
        code = import_html.main([str(tmp_path / "missing.html"), "--data-dir", str(tmp_path)])

        assert code == 1
