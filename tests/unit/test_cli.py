"""Unit tests for the dumploader CLI -- dumploader.cli.load_dump."""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiosqlite
import pytest
import structlog

from dumploader.cli.load_dump import _build_parser, _collect_jobs, main
from dumploader.models.dump import EntityKind
from dumploader.utils.logging import configure_logging


def _count(db_path: Path, table: str) -> int:
    async def _run() -> int:
        async with aiosqlite.connect(str(db_path)) as db:
            async with db.execute(f"SELECT COUNT(*) FROM {table}") as cursor:
                (count,) = await cursor.fetchone()
                return count

    return asyncio.run(_run())


@pytest.fixture
def base_args(tmp_path: Path, db_path: Path) -> list[str]:
    return ["--db", str(db_path), "--config", str(tmp_path / "no-config.yaml")]


# ======================================================================
# Argument parsing
# ======================================================================


class TestParser:
    def test_kind_options_are_repeatable(self) -> None:
        args = _build_parser().parse_args(
            ["--labels", "a.xml", "--artists", "b.xml.gz", "--labels", "c.xml"]
        )

        jobs = _collect_jobs(args)

        # Jobs follow kind order, then command-line order within a kind.
        assert [(j.kind, j.location) for j in jobs] == [
            (EntityKind.ARTISTS, "b.xml.gz"),
            (EntityKind.LABELS, "a.xml"),
            (EntityKind.LABELS, "c.xml"),
        ]

    def test_defaults(self) -> None:
        args = _build_parser().parse_args(["--masters", "m.xml"])

        assert args.batch_size is None
        assert args.concurrency is None
        assert args.no_create_schema is False
        assert args.json_logs is False


# ======================================================================
# main()
# ======================================================================


class TestMain:
    def test_no_dumps_is_a_usage_error(self, base_args: list[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(base_args)

        assert exc_info.value.code == 2

    @pytest.mark.parametrize("option", ["--batch-size", "--concurrency"])
    def test_values_below_one_are_rejected(self, base_args: list[str], option: str) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([*base_args, "--labels", "x.xml", option, "0"])

        assert exc_info.value.code == 2

    def test_loads_dumps_and_returns_zero(
        self,
        base_args: list[str],
        db_path: Path,
        write_dump,
        labels_xml: bytes,
        masters_xml: bytes,
    ) -> None:
        labels = write_dump("labels.xml.gz", labels_xml)
        masters = write_dump("masters.xml", masters_xml)

        code = main([*base_args, "--labels", labels, "--masters", masters, "--batch-size", "2"])

        assert code == 0
        assert _count(db_path, "labels") == 1
        assert _count(db_path, "label_sublabels") == 2
        assert _count(db_path, "masters") == 2

    def test_failed_dump_returns_one_and_others_still_load(
        self,
        base_args: list[str],
        db_path: Path,
        write_dump,
        labels_xml: bytes,
        tmp_path: Path,
    ) -> None:
        labels = write_dump("labels.xml", labels_xml)
        missing = str(tmp_path / "missing_artists.xml")

        code = main([*base_args, "--artists", missing, "--labels", labels])

        assert code == 1
        assert _count(db_path, "labels") == 1

    def test_concurrent_loads(
        self,
        base_args: list[str],
        db_path: Path,
        write_dump,
        artists_xml: bytes,
        labels_xml: bytes,
    ) -> None:
        artists = write_dump("artists.xml", artists_xml)
        labels = write_dump("labels.xml", labels_xml)

        code = main([*base_args, "--artists", artists, "--labels", labels, "--concurrency", "2"])

        assert code == 0
        assert _count(db_path, "artists") == 2
        assert _count(db_path, "labels") == 1

    def test_unopenable_database_returns_two(self, tmp_path: Path, write_dump, labels_xml: bytes) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        labels = write_dump("labels.xml", labels_xml)

        code = main(
            [
                "--db", str(blocker / "dumps.db"),
                "--config", str(tmp_path / "no-config.yaml"),
                "--labels", labels,
            ]
        )

        assert code == 2

    def test_bad_environment_setting_returns_two(
        self, base_args: list[str], monkeypatch: pytest.MonkeyPatch, write_dump, labels_xml: bytes
    ) -> None:
        monkeypatch.setenv("BATCH_CAPACITY", "lots")
        labels = write_dump("labels.xml", labels_xml)

        assert main([*base_args, "--labels", labels]) == 2

    def test_malformed_config_file_returns_two(
        self, db_path: Path, tmp_path: Path, write_dump, labels_xml: bytes
    ) -> None:
        config = tmp_path / "broken.yaml"
        config.write_text("load: [\n")
        labels = write_dump("labels.xml", labels_xml)

        assert main(["--db", str(db_path), "--config", str(config), "--labels", labels]) == 2

    def test_configured_environment_selects_json_logs(
        self, db_path: Path, tmp_path: Path, write_dump, labels_xml: bytes
    ) -> None:
        config = tmp_path / "prod.yaml"
        config.write_text("app:\n  env: production\n")
        labels = write_dump("labels.xml", labels_xml)

        try:
            code = main(["--db", str(db_path), "--config", str(config), "--labels", labels])
            renderer = structlog.get_config()["processors"][-1]
        finally:
            configure_logging()

        assert code == 0
        assert isinstance(renderer, structlog.processors.JSONRenderer)
