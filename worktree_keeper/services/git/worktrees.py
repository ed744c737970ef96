"""Worktree operations service for git-worktree-keeper."""

import os
from typing import List, Optional

from worktree_keeper.constants import MIN_GIT_VERSION_WORKTREE_LIST
from worktree_keeper.exceptions import (
    GitCommandFailedError,
    WorktreeAlreadyExistsError,
    command_failed,
)
from worktree_keeper.logging_config import get_logger
from worktree_keeper.models.worktree import CreateOutcome, DeleteOutcome, WorktreeEntry
from worktree_keeper.services.git.gateway import GitCommandGateway
from worktree_keeper.services.git.planner import compute_target_path
from worktree_keeper.services.git.registry import canonical_path, parse_worktree_porcelain

logger = get_logger(__name__)


class WorktreeService:
    """Service for listing, creating and removing git worktrees."""

    def __init__(self, gateway: GitCommandGateway):
        """Initialize the worktree service.

        Args:
            gateway: Gateway bound to the repository root
        """
        self.gateway = gateway
        self.repo_root = gateway.repo_root

    def list_worktrees(self) -> List[WorktreeEntry]:
        """Get a fresh listing of all registered worktrees.

        Raises:
            GitCommandFailedError: If `git worktree list` fails
        """
        self.gateway.ensure_version(MIN_GIT_VERSION_WORKTREE_LIST, "Worktree listing")
        result = self.gateway.worktree_list().raise_for_status("git worktree list")
        return parse_worktree_porcelain(result.stdout_lines)

    def find_worktree(self, path: str) -> Optional[WorktreeEntry]:
        """Return the registered worktree at ``path``, if any."""
        target = canonical_path(path)
        for entry in self.list_worktrees():
            if canonical_path(entry.path) == target:
                return entry
        return None

    def is_registered(self, path: str) -> bool:
        return self.find_worktree(path) is not None

    def planned_path(self, worktree_name: str) -> str:
        return compute_target_path(self.repo_root, worktree_name)

    def create_worktree(
        self,
        worktree_name: str,
        branch: Optional[str] = None,
        create_new_branch: Optional[bool] = True,
    ) -> CreateOutcome:
        """Create a worktree next to the repository root.

        An existing worktree at the planned path is reused instead of failing,
        but only if the registry lists it; a stray directory is an error.

        Args:
            worktree_name: Suffix for the worktree directory name
            branch: Branch to create or check out
            create_new_branch: Create ``branch`` (-b) instead of attaching it;
                None attaches ``branch`` when it already exists and creates it otherwise

        Returns:
            CreateOutcome with was_created False when a registered worktree was reused

        Raises:
            WorktreeAlreadyExistsError: If git reports a collision that the registry can't explain
            GitCommandFailedError: If `git worktree add` fails for any other reason
        """
        path = self.planned_path(worktree_name)

        if os.path.exists(path) and self.is_registered(path):
            logger.info(f"Worktree already registered at {path}, reusing it")
            return CreateOutcome(resolved_path=path, was_created=False)

        if create_new_branch is None:
            create_new_branch = not (branch and self.branch_exists(branch))
            if not create_new_branch:
                logger.debug(f"Branch {branch} exists, attaching it")

        result = self.gateway.worktree_add(path, branch, create_branch=create_new_branch)
        if result.success:
            logger.info(f"Created worktree at {path}" + (f" on branch {branch}" if branch else ""))
            return CreateOutcome(resolved_path=path, was_created=True)

        error = command_failed("git worktree add", result.command, result.exit_code, result.stderr_text)
        if isinstance(error, WorktreeAlreadyExistsError):
            # A previous attempt may have succeeded; confirm against the registry once
            logger.debug(f"git reported an existing worktree or branch: {error.stderr}")
            if self.is_registered(path):
                logger.info(f"Worktree at {path} was already registered, reusing it")
                return CreateOutcome(resolved_path=path, was_created=False)

        logger.error(f"Failed to create worktree at {path}: {error}")
        raise error

    def delete_worktree(
        self,
        path: str,
        branch: Optional[str] = None,
        force: bool = True,
    ) -> DeleteOutcome:
        """Remove a worktree and optionally delete its branch.

        Branch deletion is best-effort: a failure is logged and reported in
        the outcome but does not fail the removal.

        Raises:
            GitCommandFailedError: If `git worktree remove` fails
        """
        try:
            self.gateway.worktree_remove(path, force=force).raise_for_status("git worktree remove")
        except GitCommandFailedError as e:
            logger.error(f"Failed to remove worktree at {path}: {e}")
            raise
        logger.info(f"Removed worktree at {path}")

        if not branch:
            return DeleteOutcome(worktree_path=path)

        result = self.gateway.branch_delete(branch)
        if result.success:
            logger.info(f"Deleted branch {branch}")
            return DeleteOutcome(worktree_path=path, branch_deleted=True)

        error_msg = f"git branch -D failed (exit {result.exit_code}): {result.stderr_text}"
        logger.warning(f"Removed worktree at {path} but could not delete branch {branch}: {error_msg}")
        return DeleteOutcome(worktree_path=path, branch_deleted=False, branch_error=error_msg)

    def branch_exists(self, name: str) -> bool:
        """Check whether a local branch called ``name`` exists."""
        result = self.gateway.branch_list(name).raise_for_status("git branch --list")
        return any(line.strip().lstrip("*+ ").strip() == name for line in result.stdout_lines)

    def prune_worktrees(self) -> None:
        """Prune metadata of worktrees whose directories are gone."""
        self.gateway.worktree_prune().raise_for_status("git worktree prune")
        logger.info("Pruned orphaned worktree metadata")
