import io
import json

import pytest
from click.testing import CliRunner

from cli import cli, file_writer
from filecompress.export import ExportArtifact

from conftest import make_image_bytes, make_pdf_bytes


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def files(tmp_path):
    image = tmp_path / "photo.png"
    image.write_bytes(make_image_bytes(size=(300, 200), fmt="PNG"))
    document = tmp_path / "report.pdf"
    document.write_bytes(make_pdf_bytes(pages=2))
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"not a pdf")
    return {"image": image, "document": document, "broken": broken}


def test_image_command_writes_output(runner, files, tmp_path):
    output = tmp_path / "out.jpg"

    result = runner.invoke(cli, ["image", str(files["image"]), "-o", str(output), "-m", "100", "-j"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["processed"]
    assert data["output_path"] == str(output)
    assert output.exists()


def test_pdf_command_table_output(runner, files, tmp_path):
    output = tmp_path / "small.pdf"

    result = runner.invoke(cli, ["pdf", str(files["document"]), "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert "Saved to" in result.output
    assert output.read_bytes().startswith(b"%PDF")


def test_pdf_command_reports_invalid_file(runner, files):
    result = runner.invoke(cli, ["pdf", str(files["broken"])])

    assert result.exit_code == 1
    assert "valid PDF" in result.output


def test_image_command_rejects_pdf(runner, files):
    result = runner.invoke(cli, ["image", str(files["document"]), "-j"])

    assert result.exit_code == 1
    assert json.loads(result.output)["accepted"] is False


def test_image_command_rejects_bad_quality(runner, files):
    result = runner.invoke(cli, ["image", str(files["image"]), "--quality", "2"])

    assert result.exit_code == 2


def test_batch_skips_mismatched_files(runner, files, tmp_path):
    out_dir = tmp_path / "out"

    result = runner.invoke(cli, [
        "batch", str(files["document"]), str(files["image"]), str(files["broken"]),
        "--mode", "document", "-d", str(out_dir),
    ])

    assert result.exit_code == 0, result.output
    assert "Success: 1" in result.output
    assert "Skipped: 1" in result.output
    assert "Failed: 1" in result.output
    assert len(list(out_dir.iterdir())) == 1


def test_batch_writes_one_file_per_input(runner, tmp_path):
    out_dir = tmp_path / "out"
    inputs = []
    for number in range(6):
        path = tmp_path / f"part{number}.pdf"
        path.write_bytes(make_pdf_bytes(text=f"Part {number}"))
        inputs.append(str(path))

    result = runner.invoke(cli, ["batch", *inputs, "--mode", "document", "-d", str(out_dir), "-j"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["success"] == 6
    written = sorted(out_dir.iterdir())
    assert len(written) == 6
    assert sorted(entry["output_path"] for entry in data["results"]) == sorted(str(p) for p in written)
    assert all(p.name.startswith("optimized_") for p in written)
    assert {p.stem.rsplit("_", 1)[-1] for p in written} == {f"part{n}" for n in range(6)}


def test_generated_names_never_overwrite_existing_files(tmp_path):
    written = []
    save_as = file_writer(None, str(tmp_path), written)

    for payload in (b"%PDF-first", b"%PDF-second"):
        save_as(ExportArtifact("optimized_1700000000000_report.pdf", "application/pdf", io.BytesIO(payload)))

    assert [p.name for p in written] == [
        "optimized_1700000000000_report.pdf",
        "optimized_1700000000000_report_1.pdf",
    ]
    assert written[0].read_bytes() == b"%PDF-first"
    assert written[1].read_bytes() == b"%PDF-second"


def test_explicit_output_path_is_overwritten(tmp_path):
    output = tmp_path / "small.pdf"
    output.write_bytes(b"old")
    written = []

    file_writer(str(output), None, written)(ExportArtifact("optimized_1.pdf", "application/pdf", io.BytesIO(b"new")))

    assert written == [output]
    assert output.read_bytes() == b"new"


def test_verbose_flag_precedes_the_command(runner, files, tmp_path):
    output = tmp_path / "small.pdf"

    result = runner.invoke(cli, ["-v", "pdf", str(files["document"]), "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert output.exists()
