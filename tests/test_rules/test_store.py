"""Unit tests for RuleStore, RuleStoreRegistry and FileRuleSource."""

import threading

import pytest

from atomic_rules.rules.errors import DuplicateRuleError, RuleParseError, UnknownRuleError
from atomic_rules.rules.models import Rule
from atomic_rules.rules.store import FileRuleSource, RuleStore, RuleStoreRegistry


def create_test_rule(rule_id: str = "test_rule", **kwargs) -> Rule:
    """Helper to create test rules."""
    defaults = {"description": "Test rule description"}
    defaults.update(kwargs)
    return Rule(id=rule_id, **defaults)


class TestRuleStore:
    """Tests for RuleStore."""

    def test_load_and_get(self) -> None:
        store = RuleStore.load([create_test_rule("a"), create_test_rule("b")])

        assert store.get("a").id == "a"
        assert len(store) == 2
        assert "b" in store
        assert "c" not in store

    def test_get_unknown_rule(self) -> None:
        store = RuleStore.load([create_test_rule("a")])

        with pytest.raises(UnknownRuleError) as exc_info:
            store.get("ghost")

        assert exc_info.value.rule_id == "ghost"

    def test_duplicate_ids_rejected(self) -> None:
        rules = [
            create_test_rule("a", source_path="one.yaml"),
            create_test_rule("a", source_path="two.yaml"),
        ]

        with pytest.raises(DuplicateRuleError) as exc_info:
            RuleStore.load(rules)

        assert exc_info.value.rule_id == "a"
        assert exc_info.value.sources == ("one.yaml", "two.yaml")
        assert "one.yaml" in str(exc_info.value)

    def test_all_ids(self) -> None:
        store = RuleStore.load([create_test_rule("a"), create_test_rule("b")])

        assert store.all_ids() == frozenset({"a", "b"})

    def test_list_rules_keeps_load_order(self) -> None:
        store = RuleStore.load([
            create_test_rule("z", category="time"),
            create_test_rule("a", category="security"),
            create_test_rule("m", category="time"),
        ])

        assert [r.id for r in store.list_rules()] == ["z", "a", "m"]
        assert [r.id for r in store.list_rules("time")] == ["z", "m"]
        assert [r.id for r in store] == ["z", "a", "m"]

    def test_store_is_not_affected_by_source_list(self) -> None:
        rules = [create_test_rule("a")]
        store = RuleStore.load(rules)

        rules.append(create_test_rule("b"))

        assert store.all_ids() == frozenset({"a"})

    def test_empty_store(self) -> None:
        store = RuleStore()

        assert len(store) == 0
        assert store.all_ids() == frozenset()


class TestRuleStoreRegistry:
    """Tests for snapshot publishing."""

    def test_initial_snapshot_is_empty(self) -> None:
        registry = RuleStoreRegistry()

        assert len(registry.current()) == 0
        assert registry.current().version == 0

    def test_publish_increments_version(self) -> None:
        registry = RuleStoreRegistry()

        first = registry.publish([create_test_rule("a")])
        second = registry.publish([create_test_rule("a"), create_test_rule("b")])

        assert first.version == 1
        assert second.version == 2
        assert registry.current() is second

    def test_old_snapshot_unchanged_after_publish(self) -> None:
        registry = RuleStoreRegistry()
        registry.publish([create_test_rule("a", description="old")])
        in_flight = registry.current()

        registry.publish([create_test_rule("a", description="new")])

        assert in_flight.get("a").description == "old"
        assert registry.current().get("a").description == "new"

    def test_failed_publish_keeps_current(self) -> None:
        registry = RuleStoreRegistry()
        good = registry.publish([create_test_rule("a")])

        with pytest.raises(DuplicateRuleError):
            registry.publish([create_test_rule("b"), create_test_rule("b")])

        assert registry.current() is good

    def test_concurrent_publish_versions_unique(self) -> None:
        registry = RuleStoreRegistry()
        versions: list[int] = []
        lock = threading.Lock()

        def publish() -> None:
            store = registry.publish([create_test_rule("a")])
            with lock:
                versions.append(store.version)

        threads = [threading.Thread(target=publish) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(versions) == list(range(1, 9))
        assert registry.current().version == 8

    def test_reload_from_source(self, rules_dir) -> None:
        registry = RuleStoreRegistry()

        store = registry.reload(FileRuleSource(rules_dir))

        assert "fiscal_year_handling" in store
        assert store.version == 1


class TestFileRuleSource:
    """Tests for FileRuleSource."""

    def test_load_directory(self, rules_dir) -> None:
        rules = FileRuleSource(rules_dir).load()

        ids = [r.id for r in rules]
        assert set(ids) == {
            "default_period",
            "fiscal_year_handling",
            "pii_filtering",
            "response_format",
            "legacy_currency",
        }

    def test_load_order_is_sorted_by_path(self, rules_dir) -> None:
        rules = FileRuleSource(rules_dir).load()

        # pii_filtering.md < response_format.yml < time/periods.yaml < unused.yaml
        assert [r.id for r in rules] == [
            "pii_filtering",
            "response_format",
            "default_period",
            "fiscal_year_handling",
            "legacy_currency",
        ]

    def test_ignores_other_files(self, rules_dir) -> None:
        (rules_dir / "notes.txt").write_text("not a rule", encoding="utf-8")

        assert len(FileRuleSource(rules_dir).load()) == 5

    def test_missing_directory_yields_no_rules(self, tmp_path) -> None:
        assert FileRuleSource(tmp_path / "missing").load() == []

    def test_duplicate_across_files(self, rules_dir) -> None:
        (rules_dir / "copy.yaml").write_text(
            "id: response_format\ndescription: Another format rule.\n",
            encoding="utf-8",
        )

        with pytest.raises(DuplicateRuleError) as exc_info:
            FileRuleSource(rules_dir).load_store()

        assert exc_info.value.rule_id == "response_format"
        assert len(exc_info.value.sources) == 2

    def test_invalid_file_aborts_load(self, rules_dir) -> None:
        (rules_dir / "broken.yaml").write_text("id: [unclosed\n", encoding="utf-8")

        with pytest.raises(RuleParseError) as exc_info:
            FileRuleSource(rules_dir).load()

        assert exc_info.value.path is not None
        assert exc_info.value.path.endswith("broken.yaml")
