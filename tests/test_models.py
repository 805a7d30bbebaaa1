"""
Tests for monitored folder validation.
"""

import pytest
from pydantic import ValidationError

from printhero.watchfolders.models import MonitoredFolder, PostPrintAction


class TestMonitoredFolder:

    def test_relative_folder_path_is_rejected(self):
        with pytest.raises(ValidationError):
            MonitoredFolder(folder_path="hot")

    def test_relative_custom_move_folder_is_rejected(self, hot_folder):
        with pytest.raises(ValidationError):
            MonitoredFolder(
                folder_path=str(hot_folder),
                post_print_action=PostPrintAction.MOVE_TO_CUSTOM_FOLDER,
                custom_move_folder="archive",
            )

    def test_absolute_custom_move_folder_is_kept(self, tmp_path, hot_folder):
        folder = MonitoredFolder(
            folder_path=str(hot_folder),
            post_print_action=PostPrintAction.MOVE_TO_CUSTOM_FOLDER,
            custom_move_folder=str(tmp_path / "archive"),
        )

        assert folder.custom_move_folder == str(tmp_path / "archive")
        assert folder.effective_post_print_action() == PostPrintAction.MOVE_TO_CUSTOM_FOLDER

    def test_blank_custom_move_folder_degrades_to_keep(self, hot_folder):
        folder = MonitoredFolder(
            folder_path=str(hot_folder),
            post_print_action=PostPrintAction.MOVE_TO_CUSTOM_FOLDER,
            custom_move_folder="  ",
        )

        assert folder.custom_move_folder is None
        assert folder.effective_post_print_action() == PostPrintAction.KEEP_FILE
