"""
Tests for the CUPS print dispatcher and the dry-run dispatcher.

``subprocess.run`` is replaced with a fake spooler; no printer is needed.
"""

import subprocess
from pathlib import Path

import pytest
from pydantic import ValidationError

from printhero.printing import dispatcher as dispatcher_module
from printhero.printing.dispatcher import DryRunPrintDispatcher, SystemPrintDispatcher
from printhero.printing.models import Orientation, PrinterSettings


class FakeSpooler:
    """Records commands and answers lp/lpstat like CUPS would."""

    def __init__(self, default="office_laser", printers=("office_laser", "label"), lp_returncode=0):
        self.default = default
        self.printers = printers
        self.lp_returncode = lp_returncode
        self.commands = []
        self.raise_on_lp = None

    def __call__(self, cmd, capture_output=False, text=False, timeout=None):
        self.commands.append(list(cmd))
        program, args = cmd[0], cmd[1:]

        if program == "lpstat" and args == ["-d"]:
            if self.default:
                return subprocess.CompletedProcess(cmd, 0, f"system default destination: {self.default}\n", "")
            return subprocess.CompletedProcess(cmd, 0, "no system default destination\n", "")
        if program == "lpstat" and args == ["-e"]:
            return subprocess.CompletedProcess(cmd, 0, "\n".join(self.printers) + "\n", "")
        if program == "lp":
            if self.raise_on_lp is not None:
                raise self.raise_on_lp
            if self.lp_returncode:
                return subprocess.CompletedProcess(cmd, self.lp_returncode, "", "lp: printer not found\n")
            return subprocess.CompletedProcess(cmd, 0, "request id is office_laser-12 (1 file(s))\n", "")
        raise AssertionError(f"unexpected command {cmd}")

    @property
    def lp_calls(self):
        return [c for c in self.commands if c[0] == "lp"]


@pytest.fixture
def spooler(monkeypatch):
    fake = FakeSpooler()
    monkeypatch.setattr(dispatcher_module.subprocess, "run", fake)
    return fake


@pytest.fixture
def pdf(tmp_path):
    path = tmp_path / "invoice.pdf"
    path.write_bytes(b"%PDF-1.4")
    return path


class TestSystemPrintDispatcher:

    def test_prints_on_configured_printer(self, spooler, pdf):
        dispatcher = SystemPrintDispatcher(PrinterSettings(printer_name="label"))

        assert dispatcher.print_file(pdf) is True
        assert spooler.lp_calls == [
            ["lp", "-d", "label", "-t", "invoice.pdf", "-o", "media=A4", str(pdf)]
        ]

    def test_falls_back_to_system_default(self, spooler, pdf):
        assert SystemPrintDispatcher().print_file(pdf) is True
        assert spooler.lp_calls[0][2] == "office_laser"

    def test_no_printer_at_all_fails(self, spooler, pdf):
        spooler.default = None

        assert SystemPrintDispatcher().print_file(pdf) is False
        assert spooler.lp_calls == []

    def test_landscape_and_paper_size_options(self, spooler, tmp_path):
        image = tmp_path / "label.png"
        image.write_bytes(b"\x89PNG")
        dispatcher = SystemPrintDispatcher(
            PrinterSettings(printer_name="label", paper_size="Letter", orientation="Landscape")
        )

        dispatcher.print_file(image)

        cmd = spooler.lp_calls[0]
        assert "media=Letter" in cmd
        assert "landscape" in cmd
        assert "fit-to-page" in cmd

    def test_unsupported_extension_fails_without_submitting(self, spooler, tmp_path):
        archive = tmp_path / "bundle.zip"
        archive.write_bytes(b"PK")

        assert SystemPrintDispatcher(PrinterSettings(printer_name="x")).print_file(archive) is False
        assert spooler.lp_calls == []

    def test_missing_file_fails(self, spooler, tmp_path):
        dispatcher = SystemPrintDispatcher(PrinterSettings(printer_name="x"))
        assert dispatcher.print_file(tmp_path / "gone.pdf") is False

    def test_spooler_error_fails(self, spooler, pdf):
        spooler.lp_returncode = 1
        assert SystemPrintDispatcher(PrinterSettings(printer_name="x")).print_file(pdf) is False

    def test_missing_lp_binary_fails(self, spooler, pdf):
        spooler.raise_on_lp = FileNotFoundError("lp")
        assert SystemPrintDispatcher(PrinterSettings(printer_name="x")).print_file(pdf) is False

    def test_timeout_fails(self, spooler, pdf):
        spooler.raise_on_lp = subprocess.TimeoutExpired("lp", 1)
        assert SystemPrintDispatcher(PrinterSettings(printer_name="x")).print_file(pdf) is False

    def test_list_printers(self, spooler):
        assert SystemPrintDispatcher().list_printers() == ["office_laser", "label"]

    def test_test_print_submits_and_cleans_up(self, spooler):
        assert SystemPrintDispatcher().test_print() is True

        submitted = Path(spooler.lp_calls[0][-1])
        assert submitted.suffix == ".txt"
        assert not submitted.exists()


class TestPrinterSettingsUpdates:

    def test_update_replaces_whole_snapshot(self):
        dispatcher = DryRunPrintDispatcher()
        before = dispatcher.settings

        after = dispatcher.set_printer_settings("office", "Letter", "LANDSCAPE")

        assert dispatcher.settings is after
        assert before.printer_name is None
        assert after.orientation == Orientation.LANDSCAPE

    def test_invalid_orientation_is_rejected(self):
        dispatcher = DryRunPrintDispatcher()

        with pytest.raises(ValidationError):
            dispatcher.set_printer_settings("office", "A4", "diagonal")

        assert dispatcher.settings == PrinterSettings()

    def test_blank_printer_name_means_default(self):
        assert PrinterSettings(printer_name="  ").printer_name is None


class TestDryRunPrintDispatcher:

    def test_records_existing_files(self, pdf):
        dispatcher = DryRunPrintDispatcher()

        assert dispatcher.print_file(pdf) is True
        assert dispatcher.printed == [str(pdf)]

    def test_missing_file_fails(self, tmp_path):
        assert DryRunPrintDispatcher().print_file(tmp_path / "gone.pdf") is False
