"""Unit tests for RenameExecutor."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from batchmv.errors import ExecutionError
from batchmv.models.rename import ExecutionPlan, Phase, RenameStep
from batchmv.processors.executor import RenameExecutor
from batchmv.tests import fixtures


@pytest.fixture
def executor(quiet_console):
    return RenameExecutor(console=quiet_console)


def swap_plan(directory: Path) -> ExecutionPlan:
    return ExecutionPlan(
        directory=directory,
        steps=[
            RenameStep(actual_source="ep1.mkv", actual_target=".batchmv-tmp-0001.mkv", phase=Phase.STAGE_OUT),
            RenameStep(actual_source="ep2.mkv", actual_target=".batchmv-tmp-0002.mkv", phase=Phase.STAGE_OUT),
            RenameStep(actual_source=".batchmv-tmp-0001.mkv", actual_target="ep2.mkv", phase=Phase.RENAME),
            RenameStep(actual_source=".batchmv-tmp-0002.mkv", actual_target="ep1.mkv", phase=Phase.RENAME),
        ],
    )


class TestRenameExecutor:
    """Tests for RenameExecutor class."""

    def test_execute_swap(self, executor, tmp_path):
        """Test that a swap plan exchanges file contents and leaves no temporary names."""
        fixtures.make_files(tmp_path, ["ep1.mkv", "ep2.mkv"])

        summary = executor.execute(swap_plan(tmp_path))

        assert fixtures.contents(tmp_path) == {"ep1.mkv": "ep2.mkv", "ep2.mkv": "ep1.mkv"}
        assert summary.planned == 4
        assert summary.executed == 4
        assert summary.failed == 0
        assert summary.violation is None
        assert not summary.preview

    def test_preview_does_not_touch_files(self, executor, tmp_path):
        """Test that previewing reports the plan without moving anything."""
        fixtures.make_files(tmp_path, ["ep1.mkv", "ep2.mkv"])

        summary = executor.preview(swap_plan(tmp_path))

        assert fixtures.contents(tmp_path) == {"ep1.mkv": "ep1.mkv", "ep2.mkv": "ep2.mkv"}
        assert summary.preview
        assert summary.planned == 4
        assert summary.executed == 0

    def test_failure_halts_without_rollback(self, executor, tmp_path):
        """Test that a failing move stops execution and reports completed and remaining steps."""
        fixtures.make_files(tmp_path, ["ep1.mkv", "ep2.mkv"])
        plan = swap_plan(tmp_path)
        calls = []

        def flaky_rename(self, target):
            calls.append(self.name)
            if len(calls) == 2:
                raise PermissionError(13, "Permission denied")
            os.rename(self, target)

        with patch.object(Path, "rename", autospec=True, side_effect=flaky_rename):
            with pytest.raises(ExecutionError) as exc_info:
                executor.execute(plan)

        error = exc_info.value
        assert error.completed == plan.steps[:1]
        assert error.remaining == plan.steps[1:]
        assert error.failed_step == plan.steps[1]
        assert isinstance(error.error, PermissionError)
        assert error.__cause__ is error.error
        assert error.summary.executed == 1
        assert error.summary.failed == 1
        assert tmp_path / "ep2.mkv" in error.paths
        # The completed stage-out move is not undone
        assert fixtures.listing(tmp_path) == {".batchmv-tmp-0001.mkv", "ep2.mkv"}

    def test_refuses_to_overwrite(self, executor, tmp_path):
        """Test that a destination appearing behind the plan's back is never clobbered."""
        fixtures.make_files(tmp_path, ["a.txt", "b.txt"])
        plan = ExecutionPlan(
            directory=tmp_path,
            steps=[RenameStep(actual_source="a.txt", actual_target="b.txt", phase=Phase.RENAME)],
        )

        with pytest.raises(ExecutionError) as exc_info:
            executor.execute(plan)

        assert isinstance(exc_info.value.error, FileExistsError)
        assert fixtures.contents(tmp_path) == {"a.txt": "a.txt", "b.txt": "b.txt"}

    def test_missing_source(self, executor, tmp_path):
        """Test that a source deleted behind the plan's back stops the batch."""
        plan = ExecutionPlan(
            directory=tmp_path,
            steps=[RenameStep(actual_source="gone.txt", actual_target="b.txt", phase=Phase.RENAME)],
        )

        with pytest.raises(ExecutionError) as exc_info:
            executor.execute(plan)

        assert isinstance(exc_info.value.error, FileNotFoundError)
        assert exc_info.value.completed == []

    def test_reports_stranded_temporary_names(self, executor, tmp_path):
        """Test that leftover temporary names are reported and left in place."""
        fixtures.make_files(tmp_path, ["a.txt", ".batchmv-tmp-0009.txt"])
        plan = ExecutionPlan(
            directory=tmp_path,
            steps=[RenameStep(actual_source="a.txt", actual_target="b.txt", phase=Phase.RENAME)],
        )

        summary = executor.execute(plan)

        assert summary.executed == 1
        assert summary.stranded == [".batchmv-tmp-0009.txt"]
        assert summary.violation.directory == tmp_path
        assert (tmp_path / ".batchmv-tmp-0009.txt").exists()

    def test_custom_prefix_scan(self, quiet_console, tmp_path):
        """Test that the post-run scan uses the configured prefix."""
        fixtures.make_files(tmp_path, ["a.txt", ".batchmv-tmp-0009.txt"])
        executor = RenameExecutor(temp_prefix="~swap.", console=quiet_console)
        plan = ExecutionPlan(
            directory=tmp_path,
            steps=[RenameStep(actual_source="a.txt", actual_target="b.txt", phase=Phase.RENAME)],
        )

        summary = executor.execute(plan)

        assert summary.violation is None

    def test_empty_plan(self, executor, tmp_path):
        """Test executing a plan with nothing to do."""
        summary = executor.execute(ExecutionPlan(directory=tmp_path))

        assert summary.planned == 0
        assert summary.executed == 0
