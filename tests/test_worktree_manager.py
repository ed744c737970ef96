"""Tests for WorktreeManager against real repositories"""
import os
import shutil
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from worktree_keeper.core.worktree_manager import WorktreeManager
from worktree_keeper.exceptions import (
    NoRepositoryError,
    ScanFailedError,
    UnknownWorktreeError,
    WorktreeAlreadyExistsError,
)


def _sibling(repo, name):
    return f"{repo.working_dir}-{name}"


class TestWorktreeManagerInit:
    """Test WorktreeManager initialization."""

    def test_init_with_dict_config(self, git_repo, mock_config):
        manager = WorktreeManager(git_repo.working_dir, mock_config)
        assert manager.repo_root == os.path.realpath(git_repo.working_dir)
        assert manager.config.debounce_ms == 50

    def test_init_from_subdirectory(self, git_repo):
        sub = Path(git_repo.working_dir) / "docs"
        sub.mkdir()
        manager = WorktreeManager(str(sub))
        assert manager.repo_root == os.path.realpath(git_repo.working_dir)

    def test_init_outside_repository(self, temp_dir):
        plain = temp_dir / "plain"
        plain.mkdir()
        with pytest.raises(NoRepositoryError):
            WorktreeManager(str(plain))


class TestWorktreeLifecycle:
    """Test create, list and delete on a real repository."""

    def test_list_single_main_worktree(self, git_repo):
        entries = WorktreeManager(git_repo.working_dir).list_worktrees()
        assert len(entries) == 1
        assert entries[0].is_main
        assert entries[0].branch == "main"
        assert entries[0].head_commit == git_repo.head.commit.hexsha

    def test_create_new_worktree(self, git_repo):
        """Test creating a worktree on a new branch next to the repository."""
        manager = WorktreeManager(git_repo.working_dir)

        outcome = manager.create_worktree("feature", "feature")

        assert outcome.was_created is True
        assert outcome.resolved_path == _sibling(git_repo, "feature")
        assert os.path.isfile(os.path.join(outcome.resolved_path, "README.md"))

        entries = manager.list_worktrees()
        assert len(entries) == 2
        assert sum(1 for e in entries if e.is_main) == 1
        linked = [e for e in entries if not e.is_main][0]
        assert linked.branch == "feature"

    def test_create_is_idempotent(self, git_repo):
        """Test that creating the same worktree twice reuses it."""
        manager = WorktreeManager(git_repo.working_dir)
        first = manager.create_worktree("twice", "twice")
        second = manager.create_worktree("twice", "twice")

        assert first.was_created is True
        assert second.was_created is False
        assert second.resolved_path == first.resolved_path
        assert len(manager.list_worktrees()) == 2

    def test_stray_directory_is_an_error(self, git_repo):
        """Test that an unregistered non-empty folder at the target is not reused."""
        stray = Path(_sibling(git_repo, "stray"))
        stray.mkdir()
        (stray / "file.txt").write_text("not a worktree")
        manager = WorktreeManager(git_repo.working_dir)

        with pytest.raises(WorktreeAlreadyExistsError):
            manager.create_worktree("stray", "stray")

        assert (stray / "file.txt").read_text() == "not a worktree"

    def test_attach_existing_branch(self, git_repo):
        git_repo.git.branch("existing")
        manager = WorktreeManager(git_repo.working_dir)

        outcome = manager.create_worktree("existing", "existing", create_new_branch=False)

        linked = manager.worktree_service.find_worktree(outcome.resolved_path)
        assert linked is not None
        assert linked.branch == "existing"

    def test_delete_worktree_and_branch(self, git_repo):
        manager = WorktreeManager(git_repo.working_dir)
        outcome = manager.create_worktree("gone", "gone")

        deleted = manager.delete_worktree(outcome.resolved_path, "gone")

        assert deleted.branch_deleted is True
        assert not os.path.exists(outcome.resolved_path)
        assert "gone" not in [head.name for head in git_repo.heads]
        assert len(manager.list_worktrees()) == 1

    def test_delete_with_dirty_worktree_forces(self, git_repo):
        """Test that uncommitted changes do not block removal by default."""
        manager = WorktreeManager(git_repo.working_dir)
        outcome = manager.create_worktree("dirty", "dirty")
        Path(outcome.resolved_path, "README.md").write_text("changed\n")

        manager.delete_worktree(outcome.resolved_path)

        assert not os.path.exists(outcome.resolved_path)

    def test_branch_delete_failure_is_best_effort(self, git_repo):
        manager = WorktreeManager(git_repo.working_dir)
        outcome = manager.create_worktree("keep", "keep")

        deleted = manager.delete_worktree(outcome.resolved_path, "no-such-branch")

        assert not os.path.exists(outcome.resolved_path)
        assert deleted.branch_deleted is False
        assert deleted.branch_error

    def test_orphaned_worktree_and_prune(self, git_repo):
        """Test that a worktree whose folder vanished is flagged and prunable."""
        manager = WorktreeManager(git_repo.working_dir)
        outcome = manager.create_worktree("orphan", "orphan")
        shutil.rmtree(outcome.resolved_path)

        orphaned = [e for e in manager.list_worktrees() if e.is_orphaned]
        assert [e.path for e in orphaned] == [outcome.resolved_path]

        manager.prune_worktrees()
        assert len(manager.list_worktrees()) == 1

    def test_unexpected_error_is_wrapped(self, git_repo):
        manager = WorktreeManager(git_repo.working_dir)
        with patch.object(manager.worktree_service, "list_worktrees", side_effect=RuntimeError("boom")):
            with pytest.raises(UnknownWorktreeError) as exc_info:
                manager.list_worktrees()
        assert exc_info.value.operation == "list worktrees"


class TestIgnoredFilePatterns:
    """Test the configured exclude and preselect patterns."""

    def test_patterns_applied_to_scan(self, git_repo_with_ignored):
        config = {"exclude_patterns": ["*.log"], "default_selected_patterns": [".env"]}
        manager = WorktreeManager(git_repo_with_ignored.working_dir, config)

        entries = {e.relative_path: e for e in manager.scan_ignored()}

        assert set(entries) == {".env", "build"}
        assert entries[".env"].selected is True
        assert entries["build"].selected is False


class TestCreateWithIgnoredFiles:
    """Test the combined create-and-copy workflow."""

    def test_selected_entries_are_copied(self, git_repo_with_ignored):
        manager = WorktreeManager(git_repo_with_ignored.working_dir)

        def select(entries):
            return [e.with_selected(e.relative_path in (".env", "build")) for e in entries]

        outcome = manager.create_with_ignored_files("copy", "copy", select=select)

        dest = Path(outcome.create.resolved_path)
        assert outcome.create.was_created is True
        assert outcome.ignored_found == 3
        assert outcome.copy.succeeded == (".env", "build")
        assert outcome.copy.failed == ()
        assert (dest / ".env").read_text() == "SECRET=1\n"
        assert (dest / "build" / "sub" / "deep.txt").read_text() == "deep\n"
        assert not (dest / "app.log").exists()

    def test_empty_scan_skips_selection_and_copy(self, git_repo):
        """Test that with nothing ignored the copy engine is never invoked."""
        manager = WorktreeManager(git_repo.working_dir)
        manager.file_operations.copy_items = Mock()
        select = Mock()

        outcome = manager.create_with_ignored_files("clean", "clean", select=select)

        assert outcome.create.was_created is True
        assert outcome.ignored_found == 0
        assert outcome.had_ignored_files is False
        assert outcome.copy is None
        select.assert_not_called()
        manager.file_operations.copy_items.assert_not_called()

    def test_cancelled_selection_still_creates(self, git_repo_with_ignored):
        manager = WorktreeManager(git_repo_with_ignored.working_dir)

        outcome = manager.create_with_ignored_files("nosel", "nosel", select=lambda entries: None)

        assert outcome.selection_cancelled is True
        assert outcome.copy is None
        assert os.path.isdir(outcome.create.resolved_path)
        assert not os.path.exists(os.path.join(outcome.create.resolved_path, ".env"))

    def test_nothing_selected_skips_copy(self, git_repo_with_ignored):
        manager = WorktreeManager(git_repo_with_ignored.working_dir)

        outcome = manager.create_with_ignored_files("none", "none", select=lambda entries: entries)

        assert outcome.selection_cancelled is False
        assert outcome.copy is None

    def test_scan_failure_creates_nothing(self, git_repo):
        manager = WorktreeManager(git_repo.working_dir)
        error = ScanFailedError(manager.repo_root)

        with patch.object(manager.ignored_files_service, "scan", side_effect=error):
            with pytest.raises(ScanFailedError):
                manager.create_with_ignored_files("never", "never")

        assert not os.path.exists(_sibling(git_repo, "never"))
        assert len(manager.list_worktrees()) == 1

    def test_reused_worktree_still_receives_copy(self, git_repo_with_ignored):
        """Test that copying happens for a reused worktree too."""
        manager = WorktreeManager(git_repo_with_ignored.working_dir)
        manager.create_worktree("again", "again")

        outcome = manager.create_with_ignored_files(
            "again", "again", select=lambda entries: [e.with_selected() for e in entries]
        )

        assert outcome.create.was_created is False
        assert outcome.copy.success_count == 3
        assert os.path.isfile(os.path.join(outcome.create.resolved_path, "app.log"))
