"""Tests for the checkout resolver."""
from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import call, patch

import pytest

from engine.checkout import (
    FETCH_HEAD,
    CheckoutError,
    CheckoutStrategy,
    checkout,
    checkout_strategies,
)
from engine.git import GitCommandError
from models.working_tree import WorkingTree, WorkingTreeState


@pytest.fixture
def tree(tmp_path: Path) -> WorkingTree:
    """Create a fetched working tree with a few directories."""
    root = tmp_path / "context"
    (root / "tools" / "build").mkdir(parents=True)
    (root / "README.md").write_text("readme")
    return WorkingTree(root=root, state=WorkingTreeState.FETCHED)


def test_checkout_strategies_order() -> None:
    """Test that the named ref is tried before the fetched marker."""
    assert checkout_strategies("v1.0") == [
        CheckoutStrategy(target="v1.0"),
        CheckoutStrategy(target=FETCH_HEAD, detached=True),
    ]


def test_checkout_named_ref(tree: WorkingTree) -> None:
    """Test that a branch checkout needs no fallback."""
    with patch("engine.checkout.git_within_dir", return_value="Switched to branch 'main'") as mock_git:
        path = checkout(tree, "main", "")

    mock_git.assert_called_once_with(tree.root, "checkout", "main", git_binary="git")
    assert path == str(tree.root.resolve())
    assert tree.checked_out == "main"
    assert tree.state == WorkingTreeState.CHECKED_OUT


def test_checkout_falls_back_to_fetch_head(tree: WorkingTree) -> None:
    """Test that a ref without a local name uses the fetched commit."""
    with patch(
        "engine.checkout.git_within_dir",
        side_effect=[GitCommandError(["checkout", "v1.0"], "error: pathspec 'v1.0'", 1), ""],
    ) as mock_git:
        path = checkout(tree, "v1.0", "")

    assert mock_git.call_args_list == [
        call(tree.root, "checkout", "v1.0", git_binary="git"),
        call(tree.root, "checkout", FETCH_HEAD, git_binary="git"),
    ]
    assert path == str(tree.root.resolve())
    assert tree.checked_out == FETCH_HEAD


def test_checkout_both_attempts_fail(tree: WorkingTree) -> None:
    """Test that the named ref's failure is reported when both attempts fail."""
    with patch(
        "engine.checkout.git_within_dir",
        side_effect=[
            GitCommandError(["checkout", "v1.0"], "error: pathspec 'v1.0' did not match", 1),
            GitCommandError(["checkout", FETCH_HEAD], "error: FETCH_HEAD unknown", 1),
        ],
    ):
        with pytest.raises(CheckoutError) as exc_info:
            checkout(tree, "v1.0", "tools")

    assert exc_info.value.message == "error checking out v1.0"
    assert exc_info.value.output == "error: pathspec 'v1.0' did not match"
    assert tree.state == WorkingTreeState.FETCHED
    assert tree.checked_out is None


def test_checkout_narrows_to_subdir(tree: WorkingTree) -> None:
    """Test that the context path is the resolved subdirectory."""
    with patch("engine.checkout.git_within_dir", return_value=""):
        path = checkout(tree, "main", "tools/build")

    assert path == str((tree.root / "tools" / "build").resolve())
    assert path.endswith(os.path.join("tools", "build"))
    assert tree.state == WorkingTreeState.NARROWED
    assert tree.context_path == Path(path)


def test_checkout_subdir_symlink_outside_root(tree: WorkingTree, tmp_path: Path) -> None:
    """Test that a symlinked subdir cannot point outside the root."""
    outside = tmp_path / "outside"
    outside.mkdir()
    os.symlink(outside, tree.root / "escape")

    with patch("engine.checkout.git_within_dir", return_value=""):
        with pytest.raises(CheckoutError) as exc_info:
            checkout(tree, "main", "escape")

    assert "not within git root" in str(exc_info.value)
    assert tree.context_path is None


def test_checkout_subdir_parent_traversal(tree: WorkingTree) -> None:
    """Test that ``..`` in the subdir is rejected."""
    with patch("engine.checkout.git_within_dir", return_value=""):
        with pytest.raises(CheckoutError, match="not within git root"):
            checkout(tree, "main", "../..")


def test_checkout_subdir_symlink_inside_root(tree: WorkingTree) -> None:
    """Test that links within the root are followed."""
    os.symlink(tree.root / "tools" / "build", tree.root / "build")

    with patch("engine.checkout.git_within_dir", return_value=""):
        path = checkout(tree, "main", "build")

    assert path == str((tree.root / "tools" / "build").resolve())


def test_checkout_subdir_missing(tree: WorkingTree) -> None:
    """Test that a subdir that does not exist is an error."""
    with patch("engine.checkout.git_within_dir", return_value=""):
        with pytest.raises(CheckoutError, match="cannot stat"):
            checkout(tree, "main", "does/not/exist")


def test_checkout_subdir_not_a_directory(tree: WorkingTree) -> None:
    """Test that a file cannot be used as a context."""
    with patch("engine.checkout.git_within_dir", return_value=""):
        with pytest.raises(CheckoutError, match="not a directory"):
            checkout(tree, "main", "README.md")


def test_checkout_rejects_option_like_ref(tree: WorkingTree) -> None:
    """Test that git is never asked to check out a ref starting with a dash."""
    with patch("engine.checkout.git_within_dir") as mock_git:
        with pytest.raises(CheckoutError, match="must not start with '-'"):
            checkout(tree, "--orphan=evil", "")

    mock_git.assert_not_called()
    assert tree.state == WorkingTreeState.FETCHED


def test_checkout_root_through_symlink(tree: WorkingTree, tmp_path: Path) -> None:
    """Test that root and subdir contexts share the same resolved prefix."""
    link = tmp_path / "link-to-context"
    os.symlink(tree.root, link)
    linked = WorkingTree(root=link, state=WorkingTreeState.FETCHED)
    linked_again = WorkingTree(root=link, state=WorkingTreeState.FETCHED)

    with patch("engine.checkout.git_within_dir", return_value=""):
        root_path = checkout(linked, "main", "")
        sub_path = checkout(linked_again, "main", "tools/build")

    assert root_path == str(tree.root.resolve())
    assert sub_path.startswith(root_path + os.sep)
