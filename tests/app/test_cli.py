from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest

from rorlink.adapters.key_value import InMemoryKeyValueStore
from rorlink.adapters.sqlalchemy import SqlAlchemyKeyValueStore
from rorlink.domain.errors import IdentifierError
from rorlink.domain.model import ClassifiedId, OpaqueIdentifier
from rorlink.domain.progress import ProgressTracker
from rorlink.domain.workflow import LinkWorkflow, WorkflowState
from rorlink.ui import cli
from tests.support.fakes import (
    FakeCatalog,
    FakeRegistry,
    existing_ror_id,
    make_candidate,
    make_record,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

AU = "Aarhus University"
STRONG = make_candidate("https://ror.org/01aj84f44", name=AU, score=0.95, recommended=True)
WEAK = make_candidate("https://ror.org/02weak0000", name="Aarhus School", score=0.4)


class ScriptedPrompt:
    def __init__(self, *answers: str) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    async def __call__(self, text: str) -> str:
        self.prompts.append(text)
        return self.answers.pop(0)


def _workflow(catalog: FakeCatalog) -> LinkWorkflow:
    return LinkWorkflow(
        catalog=catalog,
        registry=FakeRegistry(results={AU: [WEAK, STRONG]}),
        progress=ProgressTracker(InMemoryKeyValueStore()),
    )


def test_session_selects_links_and_shows_progress(capsys: pytest.CaptureFixture[str]) -> None:
    catalog = FakeCatalog(draws=[make_record()])
    workflow = _workflow(catalog)
    prompt = ScriptedPrompt("2", "l", "y", "h", "p", "q")

    asyncio.run(cli.run_session(workflow, prompt=prompt))

    out = capsys.readouterr().out
    assert "> 1. Aarhus University [recommended]" in out
    assert "Selected Aarhus School (https://ror.org/02weak0000)" in out
    assert f"Linked ROR to “{AU}”. +1 pts" in out
    assert "Error: No eligible external organizations found right now." in out
    assert "ROR: https://ror.org/02weak0000 · Score: 0.400 · Match: PHRASE" in out
    assert "Level: Unstructured Newbie · 1 pts (0%)" in out
    assert prompt.prompts.count("Confirm & link? [y/N] ") == 1
    assert catalog.updates[0].identifiers[-1].id == WEAK.id  # type: ignore[union-attr]


def test_session_link_can_be_cancelled(capsys: pytest.CaptureFixture[str]) -> None:
    catalog = FakeCatalog(draws=[make_record()])
    workflow = _workflow(catalog)

    asyncio.run(cli.run_session(workflow, prompt=ScriptedPrompt("l", "n", "q")))

    assert "Cancelled." in capsys.readouterr().out
    assert catalog.updates == []
    assert workflow.state is WorkflowState.SELECTED


def test_session_reports_bad_input(capsys: pytest.CaptureFixture[str]) -> None:
    workflow = _workflow(FakeCatalog(draws=[make_record()]))

    asyncio.run(cli.run_session(workflow, prompt=ScriptedPrompt("9", "dance", "q")))

    out = capsys.readouterr().out
    assert "Error: No candidate at position 8" in out
    assert out.count(cli.HELP_TEXT) == 2


def test_session_survives_an_empty_catalog(capsys: pytest.CaptureFixture[str]) -> None:
    workflow = _workflow(FakeCatalog())

    asyncio.run(cli.run_session(workflow, prompt=ScriptedPrompt("l", "n", "q")))

    out = capsys.readouterr().out
    assert "Error: No eligible external organizations found right now." in out
    assert "Select a candidate first." in out
    assert workflow.state is WorkflowState.IDLE


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.87654, "0.877"), ("0.5", "0.500"), (float("nan"), "—"), (None, "—"), ("x", "—")],
)
def test_fmt_score(value: object, expected: str) -> None:
    assert cli.fmt_score(value) == expected


def _seeded_uri(tmp_path: Path, links: int) -> str:
    uri = f"sqlite:///{tmp_path / 'progress.db'}"
    store = SqlAlchemyKeyValueStore(database_uri=uri)
    tracker = ProgressTracker(store)
    for index in range(links):
        tracker.record_link(
            record_id=f"org-{index}",
            display_name=f"Organisation {index}",
            registry_id=f"https://ror.org/0{index:07d}",
            score=0.9,
        )
    store.dispose()
    return uri


def test_main_progress(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    uri = _seeded_uri(tmp_path, links=3)

    cli.main(["--database-uri", uri, "progress"])

    out = capsys.readouterr().out
    assert "Level: Unstructured Newbie · 30 pts (3%) · next: Metadata Apprentice at 250" in out


def test_main_history_limit(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    uri = _seeded_uri(tmp_path, links=3)

    cli.main(["--database-uri", uri, "history", "--limit", "1"])

    out = capsys.readouterr().out
    assert "Organisation 2" in out
    assert "Organisation 1" not in out
    assert "… 2 more" in out


def test_main_clear_history(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    uri = _seeded_uri(tmp_path, links=2)

    cli.main(["--database-uri", uri, "clear-history", "--yes"])
    cli.main(["--database-uri", uri, "history"])

    out = capsys.readouterr().out
    assert "History cleared." in out
    assert "No links yet." in out


def test_main_match_runs_a_session(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    catalog = FakeCatalog(draws=[make_record()])
    original_run_session = cli.run_session

    @asynccontextmanager
    async def fake_open_workflow(*, store: object) -> AsyncIterator[LinkWorkflow]:
        assert isinstance(store, SqlAlchemyKeyValueStore)
        yield _workflow(catalog)

    async def scripted_session(workflow: LinkWorkflow) -> None:
        await original_run_session(workflow, prompt=ScriptedPrompt("l", "y", "q"))

    monkeypatch.setattr(cli, "open_workflow", fake_open_workflow)
    monkeypatch.setattr(cli, "run_session", scripted_session)

    cli.main(["--database-uri", f"sqlite:///{tmp_path / 'progress.db'}"])

    assert len(catalog.updates) == 1
    assert "+10 pts" in capsys.readouterr().out


def test_main_exits_with_code_two_on_missing_configuration(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.delenv("PURE_BASE_URL", raising=False)
    monkeypatch.delenv("PURE_API_KEY", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--database-uri", f"sqlite:///{tmp_path / 'progress.db'}", "match"])

    assert excinfo.value.code == 2


def test_record_identifiers_are_listed(capsys: pytest.CaptureFixture[str]) -> None:
    identifiers = (
        ClassifiedId(id="60010292", type_uri="/sources/scopus", type_term={"en_GB": "Scopus"}),
        OpaqueIdentifier(payload={"typeDiscriminator": "PrimaryId", "value": "legacy-7"}),
        existing_ror_id("https://ror.org/04m5j1k67"),
    )
    workflow = _workflow(FakeCatalog(draws=[make_record(identifiers=identifiers)]))

    asyncio.run(cli.run_session(workflow, prompt=ScriptedPrompt("q")))

    out = capsys.readouterr().out
    assert "  Identifiers:" in out
    assert "    Scopus: 60010292\n" in out
    assert "    PrimaryId: legacy-7\n" in out
    assert "    ROR ID: https://ror.org/04m5j1k67 [ROR]" in out


def test_closed_stdin_quits_the_session(monkeypatch: pytest.MonkeyPatch) -> None:
    def closed_stdin(_text: str) -> str:
        raise EOFError

    monkeypatch.setattr("builtins.input", closed_stdin)

    assert asyncio.run(cli._default_prompt("> ")) == "q"


def test_write_refused_by_identifier_rules_is_reported(
    capsys: pytest.CaptureFixture[str],
) -> None:
    catalog = FakeCatalog(
        draws=[make_record()],
        update_error=IdentifierError("Record already carries a registry identifier"),
    )
    workflow = _workflow(catalog)

    asyncio.run(cli.run_session(workflow, prompt=ScriptedPrompt("l", "y", "q")))

    out = capsys.readouterr().out
    assert "Failed to write to Pure: Record already carries a registry identifier" in out
    assert workflow.state is WorkflowState.CONFIRMING


class DisposeRecordingStore(SqlAlchemyKeyValueStore):
    disposed = 0

    def dispose(self) -> None:
        DisposeRecordingStore.disposed += 1
        super().dispose()


def test_main_disposes_the_progress_store(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.setattr(DisposeRecordingStore, "disposed", 0)
    monkeypatch.setattr(cli, "open_progress_store", DisposeRecordingStore)
    uri = f"sqlite:///{tmp_path / 'progress.db'}"

    cli.main(["--database-uri", uri, "progress"])

    assert DisposeRecordingStore.disposed == 1


def test_main_disposes_the_progress_store_on_failure(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    def broken_tracker(_store: object) -> ProgressTracker:
        raise RuntimeError("boom")

    monkeypatch.setattr(DisposeRecordingStore, "disposed", 0)
    monkeypatch.setattr(cli, "open_progress_store", DisposeRecordingStore)
    monkeypatch.setattr(cli, "build_progress_tracker", broken_tracker)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--database-uri", f"sqlite:///{tmp_path / 'progress.db'}", "progress"])

    assert excinfo.value.code == 1
    assert DisposeRecordingStore.disposed == 1
