from pathlib import Path

import pymupdf
from click.testing import CliRunner

from pdf_sanitizer.main import cli


class TestCli:
    def test_writes_clean_copy_next_to_input(self, tmp_path: Path, three_page_pdf_bytes: bytes) -> None:
        source = tmp_path / "statement.pdf"
        source.write_bytes(three_page_pdf_bytes)

        result = CliRunner().invoke(cli, [str(source), "--scale", "0.5"])

        assert result.exit_code == 0, result.output
        target = tmp_path / "statement_clean.pdf"
        assert target.exists()
        assert "[3/3] Processing page 3 of 3..." in result.output
        with pymupdf.open(target) as doc:
            assert doc.page_count == 3
            assert doc[0].get_text().strip() == ""

    def test_explicit_output_and_engine(self, tmp_path: Path, sample_pdf_bytes: bytes) -> None:
        source = tmp_path / "in.pdf"
        source.write_bytes(sample_pdf_bytes)
        target = tmp_path / "out" / "clean.pdf"
        target.parent.mkdir()

        result = CliRunner().invoke(
            cli, [str(source), "-o", str(target), "--engine", "pdfplumber", "--scale", "0.5"]
        )

        assert result.exit_code == 0, result.output
        assert target.read_bytes().startswith(b"%PDF")

    def test_page_cap_leaves_file_unchanged(self, tmp_path: Path, three_page_pdf_bytes: bytes) -> None:
        source = tmp_path / "long.pdf"
        source.write_bytes(three_page_pdf_bytes)

        result = CliRunner().invoke(cli, [str(source), "--max-pages", "2"])

        assert result.exit_code == 0
        assert "Left unchanged" in result.output
        assert not (tmp_path / "long_clean.pdf").exists()

    def test_non_pdf_left_unchanged(self, tmp_path: Path) -> None:
        source = tmp_path / "notes.txt"
        source.write_text("hello")

        result = CliRunner().invoke(cli, [str(source)])

        assert result.exit_code == 0
        assert "Left unchanged" in result.output

    def test_invalid_quality_is_usage_error(self, tmp_path: Path, sample_pdf_bytes: bytes) -> None:
        source = tmp_path / "in.pdf"
        source.write_bytes(sample_pdf_bytes)

        result = CliRunner().invoke(cli, [str(source), "--quality", "2"])

        assert result.exit_code == 2

    def test_unknown_engine_is_usage_error(self, tmp_path: Path, sample_pdf_bytes: bytes) -> None:
        source = tmp_path / "in.pdf"
        source.write_bytes(sample_pdf_bytes)

        result = CliRunner().invoke(cli, [str(source), "--engine", "ghostscript"])

        assert result.exit_code == 2
        assert "Unknown PDF engine" in result.output

    def test_missing_input(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, [str(tmp_path / "absent.pdf")])
        assert result.exit_code == 2
