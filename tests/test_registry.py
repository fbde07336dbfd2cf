# ============================================================================
# BACKFILL REGISTRY TESTS
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Tests - Registration, lookup and overrides
# PURPOSE: Verify decorator registration and running named backfills
# CREATED: 17 OCT 2026
# ============================================================================
"""
Backfill Registry Tests

Run with:
    pytest tests/test_registry.py -v
"""

import asyncio
from datetime import timedelta

import pytest

from checkpoints import Checkpoint, MemoryCheckpointAdapter
from core.contracts import DONE, OperationMode, Outcome
from core.models import BatchOperationOptions, ConfigurationError, SingleOperationOptions
from handlers import (
    BackfillKind,
    BackfillNotFoundError,
    BackfillRegistry,
    DuplicateBackfillError,
    batch_operation,
    get_registry,
    run_backfill,
)
from health import HealthSignal


def ok_probe():
    return HealthSignal.ok()


def halt_probe():
    return HealthSignal.halt("degraded")


@pytest.fixture
def registry():
    return BackfillRegistry()


@pytest.fixture
def global_registry():
    registry = get_registry()
    registry.clear()
    yield registry
    registry.clear()


class TestRegistration:
    """Decorator registration."""

    def test_batch_registration(self, registry):
        @registry.batch_operation("users", initial_state=0, health_checkers=[ok_probe])
        def users(state):
            return Outcome.done()

        entry = registry.get("users")
        assert entry.kind == BackfillKind.BATCH
        assert isinstance(entry.options, BatchOperationOptions)
        assert entry.options.handle_batch is users
        assert entry.function == "users"
        assert "users" in registry

    def test_decorator_returns_function(self, registry):
        def handle(health_check):
            return Outcome.done()

        assert registry.single_operation("one", health_checkers=[ok_probe])(handle) is handle

    def test_single_registration(self, registry):
        @registry.single_operation("reindex", mode="async", health_checkers=[ok_probe])
        def reindex(health_check):
            return Outcome.done()

        entry = registry.get_or_raise("reindex")
        assert entry.kind == BackfillKind.SINGLE
        assert isinstance(entry.options, SingleOperationOptions)
        assert entry.options.mode == OperationMode.ASYNC

    def test_backfills_in_registration_order(self, registry):
        registry.batch_operation("b", health_checkers=[ok_probe])(lambda s: Outcome.done())
        registry.single_operation("a", health_checkers=[ok_probe])(lambda hc: Outcome.done())

        assert registry.backfills() == [("batch", "b"), ("single", "a")]
        assert len(registry) == 2
        assert [d["name"] for d in registry.list_backfills()] == ["b", "a"]

    def test_duplicate_name(self, registry):
        registry.batch_operation("users", health_checkers=[ok_probe])(lambda s: Outcome.done())

        with pytest.raises(DuplicateBackfillError) as exc_info:
            registry.single_operation("users", health_checkers=[ok_probe])(lambda hc: Outcome.done())
        assert isinstance(exc_info.value, ValueError)

    def test_invalid_config_fails_at_registration(self, registry):
        with pytest.raises(ConfigurationError) as exc_info:
            registry.batch_operation("users", health_checkers=[])(lambda s: Outcome.done())

        assert exc_info.value.code == "invalid_health_checkers"
        assert "users" not in registry

    def test_to_dict(self, registry):
        registry.batch_operation("users", health_checkers=[ok_probe, halt_probe])(lambda s: Outcome.done())
        data = registry.get("users").to_dict()

        assert data["kind"] == "batch"
        assert data["mode"] == "sync"
        assert data["probes"] == 2
        assert "registered_at" in data

    def test_registered_at_is_timezone_aware(self, registry):
        registry.batch_operation("users", health_checkers=[ok_probe])(lambda s: Outcome.done())
        entry = registry.get("users")

        assert entry.registered_at.utcoffset() == timedelta(0)
        assert entry.to_dict()["registered_at"].endswith("+00:00")


class TestRunning:
    """Running registered backfills with overrides."""

    def test_run_batch(self, registry):
        @registry.batch_operation("count", initial_state=0, health_checkers=[ok_probe])
        def count(state):
            return Outcome.done() if state >= 3 else Outcome.ok(state + 1)

        assert registry.run_sync("count") == Outcome.ok(DONE)

    def test_health_checkers_override(self, registry):
        @registry.batch_operation("count", initial_state=0, health_checkers=[ok_probe])
        def count(state):
            return Outcome.ok(state + 1)

        assert registry.run_sync("count", health_checkers=[halt_probe]) == Outcome.halt(1)

    def test_initial_state_override(self, registry):
        seen = []

        @registry.batch_operation("count", initial_state=0, health_checkers=[ok_probe])
        def count(state):
            seen.append(state)
            return Outcome.done()

        registry.run_sync("count", initial_state=40)
        assert seen == [40]

    def test_overrides_do_not_change_defaults(self, registry):
        adapter = MemoryCheckpointAdapter()

        @registry.batch_operation("count", initial_state=0, health_checkers=[ok_probe])
        def count(state):
            return Outcome.ok(state + 1)

        checkpoint = Checkpoint(adapter, "count")
        registry.run_sync("count", health_checkers=[halt_probe], checkpoint=checkpoint)

        assert asyncio.run(adapter.load("count")) == 1
        assert registry.get("count").options.checkpoint is None

    def test_invalid_override(self, registry):
        registry.batch_operation("count", health_checkers=[ok_probe])(lambda s: Outcome.done())

        with pytest.raises(ConfigurationError) as exc_info:
            registry.run_sync("count", batch_size=0)
        assert exc_info.value.code == "invalid_batch_size"

    def test_run_single(self, registry):
        @registry.single_operation("check", health_checkers=[halt_probe])
        def check(health_check):
            return Outcome.halt("busy") if health_check().is_halt else Outcome.done()

        assert registry.run_sync("check") == Outcome.halt("busy")

    def test_not_found(self, registry):
        with pytest.raises(BackfillNotFoundError) as exc_info:
            registry.run_sync("missing")

        assert isinstance(exc_info.value, KeyError)
        assert str(exc_info.value) == "Backfill not found: missing"
        assert registry.get("missing") is None


class TestGlobalRegistry:
    """Module-level decorators and runner."""

    def test_global_decorator_and_run(self, global_registry):
        @batch_operation("global_count", initial_state=0, health_checkers=[ok_probe])
        def global_count(state):
            return Outcome.done() if state >= 1 else Outcome.ok(state + 1)

        assert "global_count" in get_registry()
        assert asyncio.run(run_backfill("global_count")) == Outcome.ok(DONE)

    def test_clear(self, global_registry):
        batch_operation("temp", health_checkers=[ok_probe])(lambda s: Outcome.done())
        global_registry.clear()
        assert len(get_registry()) == 0
