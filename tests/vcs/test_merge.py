"""Tests for strict and forced merges."""

import pytest

from store.types import DatabaseError
from vcs.errors import NotFoundError, StorageError
from vcs.locks import RepositoryLocks
from vcs.merge import FastForward, MergeConflict, MergeEngine, MergeSuccess, UpToDate
from vcs.records import create_branch, create_repository


def commit_count(adapter) -> int:
    return adapter.fetchscalar("SELECT COUNT(*) AS n FROM git_commit")


@pytest.fixture
def feature_branch(adapter, graph, owner_id, repository_id, main_branch):
    """A feature branch forked from main after one commit on main."""
    graph.create_commit(main_branch, owner_id, "init", "A")
    return create_branch(adapter, repository_id, "feature", source_branch_id=main_branch)


class TestStrictMerge:
    """Tests for MergeEngine.perform_strict_merge."""

    def test_equal_content_creates_merge_commit(
        self, adapter, graph, engine, owner_id, main_branch, feature_branch
    ):
        head_1 = graph.create_commit(main_branch, owner_id, "main edit", "same")
        head_2 = graph.create_commit(feature_branch, owner_id, "feature edit", "same")
        before = commit_count(adapter)

        outcome = engine.perform_strict_merge(main_branch, feature_branch)

        assert isinstance(outcome, MergeSuccess)
        assert outcome.succeeded
        assert commit_count(adapter) == before + 1
        merge = graph.get_commit(outcome.commit_id)
        assert merge.parent_ids == (head_1, head_2)
        assert graph.get_snapshot(merge.id).content == "same"
        assert graph.get_branch(main_branch).head_commit_id == merge.id
        assert graph.get_branch(feature_branch).head_commit_id == merge.id

    def test_different_content_conflicts(
        self, adapter, graph, engine, owner_id, main_branch, feature_branch
    ):
        head_1 = graph.create_commit(main_branch, owner_id, "main edit", "C")
        head_2 = graph.create_commit(feature_branch, owner_id, "feature edit", "B")
        before = commit_count(adapter)

        outcome = engine.perform_strict_merge(main_branch, feature_branch)

        assert outcome == MergeConflict(main_branch, "C", feature_branch, "B")
        assert not outcome.succeeded
        assert commit_count(adapter) == before
        assert graph.get_branch(main_branch).head_commit_id == head_1
        assert graph.get_branch(feature_branch).head_commit_id == head_2

    def test_conflict_keeps_contents_verbatim(
        self, graph, engine, owner_id, main_branch, feature_branch
    ):
        graph.create_commit(main_branch, owner_id, "main edit", "line 1\nline 2\n")
        graph.create_commit(feature_branch, owner_id, "feature edit", "line 1\r\nline 2")

        outcome = engine.perform_strict_merge(main_branch, feature_branch)

        assert outcome.content_1 == "line 1\nline 2\n"
        assert outcome.content_2 == "line 1\r\nline 2"

    def test_branch_without_head(self, adapter, graph, engine, owner_id, repository_id, main_branch):
        graph.create_commit(main_branch, owner_id, "init", "A")
        empty = create_branch(adapter, repository_id, "empty")
        before = commit_count(adapter)

        outcome = engine.perform_strict_merge(main_branch, empty)

        assert isinstance(outcome, MergeConflict)
        assert outcome.content_1 is None
        assert "'empty' has no commits" in outcome.message
        assert commit_count(adapter) == before
        assert graph.get_branch(empty).head_commit_id is None

    def test_same_head_is_up_to_date(self, adapter, engine, main_branch, feature_branch, graph):
        before = commit_count(adapter)

        outcome = engine.perform_strict_merge(main_branch, feature_branch)

        assert outcome == UpToDate(graph.get_branch(main_branch).head_commit_id)
        assert commit_count(adapter) == before

    def test_merge_branch_with_itself(self, engine, graph, owner_id, main_branch):
        head = graph.create_commit(main_branch, owner_id, "init", "A")
        assert engine.perform_strict_merge(main_branch, main_branch) == UpToDate(head)

    def test_fast_forward_second_branch(self, adapter, graph, engine, owner_id, main_branch, feature_branch):
        """Test that a branch behind the first one is moved forward."""
        ahead = graph.create_commit(main_branch, owner_id, "main edit", "different")
        before = commit_count(adapter)

        outcome = engine.perform_strict_merge(main_branch, feature_branch)

        assert outcome == FastForward(feature_branch, ahead)
        assert commit_count(adapter) == before
        assert graph.get_branch(feature_branch).head_commit_id == ahead
        assert graph.get_branch(main_branch).head_commit_id == ahead

    def test_fast_forward_first_branch(self, graph, engine, owner_id, main_branch, feature_branch):
        ahead = graph.create_commit(feature_branch, owner_id, "feature edit", "B")

        outcome = engine.perform_strict_merge(main_branch, feature_branch)

        assert outcome == FastForward(main_branch, ahead)
        assert graph.get_branch(main_branch).head_commit_id == ahead

    def test_missing_branch(self, engine, main_branch):
        with pytest.raises(NotFoundError):
            engine.perform_strict_merge(main_branch, 999)
        with pytest.raises(NotFoundError):
            engine.perform_strict_merge(999, main_branch)

    def test_branches_in_different_repositories(self, adapter, graph, engine, owner_id, main_branch):
        graph.create_commit(main_branch, owner_id, "init", "A")
        other_repo = create_repository(adapter, "other", owner_id)
        other_branch = create_branch(adapter, other_repo, "main")
        graph.create_commit(other_branch, owner_id, "init", "A")

        outcome = engine.perform_strict_merge(main_branch, other_branch)

        assert isinstance(outcome, MergeConflict)
        assert "different repositories" in outcome.message

    def test_holds_repository_lock(self, adapter, repository_id, main_branch, feature_branch):
        locks = RepositoryLocks()
        MergeEngine(adapter, locks=locks).perform_strict_merge(main_branch, feature_branch)
        assert locks.count() == 1
        assert locks.lock_for(repository_id) is locks.lock_for(repository_id)


class TestForceMerge:
    """Tests for MergeEngine.perform_force_merge."""

    def test_creates_merge_commit_with_resolved_content(
        self, adapter, graph, engine, owner_id, main_branch, feature_branch
    ):
        head_1 = graph.create_commit(main_branch, owner_id, "main edit", "C")
        head_2 = graph.create_commit(feature_branch, owner_id, "feature edit", "B")
        before = commit_count(adapter)

        assert engine.perform_force_merge(main_branch, feature_branch, "C+B") is True

        assert commit_count(adapter) == before + 1
        head = graph.get_branch(main_branch).head_commit_id
        assert graph.get_branch(feature_branch).head_commit_id == head
        merge = graph.get_commit(head)
        assert merge.parent_ids == (head_1, head_2)
        assert graph.get_snapshot(head).content == "C+B"

    def test_merges_even_when_contents_are_equal(
        self, adapter, graph, engine, main_branch, feature_branch
    ):
        before = commit_count(adapter)

        assert engine.perform_force_merge(main_branch, feature_branch, "resolved")

        assert commit_count(adapter) == before + 1
        head = graph.get_branch(main_branch).head_commit_id
        assert graph.get_commit(head).is_merge

    def test_same_branch(self, graph, engine, owner_id, main_branch):
        head = graph.create_commit(main_branch, owner_id, "init", "A")

        assert engine.perform_force_merge(main_branch, main_branch, "A2")

        merge = graph.get_commit(graph.get_branch(main_branch).head_commit_id)
        assert merge.parent_ids == (head, head)

    def test_missing_branch(self, adapter, engine, main_branch, feature_branch):
        before = commit_count(adapter)
        assert engine.perform_force_merge(main_branch, 999, "X") is False
        assert engine.perform_force_merge(999, main_branch, "X") is False
        assert commit_count(adapter) == before

    def test_branch_without_head(self, adapter, graph, engine, owner_id, repository_id, main_branch):
        graph.create_commit(main_branch, owner_id, "init", "A")
        empty = create_branch(adapter, repository_id, "empty")

        assert engine.perform_force_merge(main_branch, empty, "X") is False
        assert graph.get_branch(empty).head_commit_id is None

    def test_branches_in_different_repositories(self, adapter, graph, engine, owner_id, main_branch):
        graph.create_commit(main_branch, owner_id, "init", "A")
        other_repo = create_repository(adapter, "other", owner_id)
        other_branch = create_branch(adapter, other_repo, "main")
        graph.create_commit(other_branch, owner_id, "init", "A")
        before = commit_count(adapter)

        assert engine.perform_force_merge(main_branch, other_branch, "X") is False
        assert commit_count(adapter) == before

    def test_failure_after_merge_commit_rolls_back(
        self, adapter, graph, engine, owner_id, main_branch, feature_branch, monkeypatch
    ):
        """Test that a failed head update also removes the merge commit."""
        head_1 = graph.create_commit(main_branch, owner_id, "main edit", "C")
        head_2 = graph.create_commit(feature_branch, owner_id, "feature edit", "B")
        before = commit_count(adapter)
        advance = graph.advance_head
        calls = []

        def advance_then_fail(branch_id, commit_id, expected_head):
            calls.append(branch_id)
            if len(calls) == 2:
                raise RuntimeError("connection lost")
            advance(branch_id, commit_id, expected_head)

        monkeypatch.setattr(graph, "advance_head", advance_then_fail)

        with pytest.raises(RuntimeError):
            engine.perform_force_merge(main_branch, feature_branch, "C+B")

        monkeypatch.undo()
        assert commit_count(adapter) == before
        assert graph.get_branch(main_branch).head_commit_id == head_1
        assert graph.get_branch(feature_branch).head_commit_id == head_2


class TestEngineWiring:
    """Tests for MergeEngine collaborators and store failure translation."""

    def test_uses_injected_lock_registry(self, adapter):
        locks = RepositoryLocks()
        assert MergeEngine(adapter, locks=locks).locks is locks

    def test_uses_injected_commit_graph(self, adapter, graph):
        assert MergeEngine(adapter, commit_graph=graph).commit_graph is graph

    def test_strict_merge_store_failure_on_first_read(
        self, adapter, engine, main_branch, feature_branch, monkeypatch
    ):
        def fail(*args, **kwargs):
            raise DatabaseError("connection lost")

        monkeypatch.setattr(adapter, "fetchone", fail)

        with pytest.raises(StorageError) as exc_info:
            engine.perform_strict_merge(main_branch, feature_branch)
        assert isinstance(exc_info.value.__cause__, DatabaseError)

    def test_force_merge_store_failure_on_first_read(
        self, adapter, engine, main_branch, feature_branch, monkeypatch
    ):
        def fail(*args, **kwargs):
            raise DatabaseError("connection lost")

        monkeypatch.setattr(adapter, "fetchone", fail)

        with pytest.raises(StorageError):
            engine.perform_force_merge(main_branch, feature_branch, "X")


class TestMergeOutcome:
    """Tests for outcome serialization."""

    def test_success_to_dict(self):
        assert MergeSuccess(4).to_dict() == {
            "kind": "success",
            "succeeded": True,
            "commit_id": 4,
            "message": "Merge successful",
        }

    def test_conflict_to_dict(self):
        data = MergeConflict(1, "C", 2, "B").to_dict()
        assert data["kind"] == "conflict"
        assert data["succeeded"] is False
        assert (data["content_1"], data["content_2"]) == ("C", "B")

    def test_fast_forward_and_up_to_date_kinds(self):
        assert FastForward(1, 2).kind == "fast_forward"
        assert UpToDate(2).to_dict() == {"kind": "up_to_date", "succeeded": True, "commit_id": 2}
