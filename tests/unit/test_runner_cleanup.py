"""Unit tests for running cleanup handlers."""

import pytest

from lifehooks import CleanupError, CleanupFailureMode, Hooks, Runner, RunnerState


def tracked(stack, label, cleanup_label=None):
    """Build a handler that records itself and returns a recording cleanup."""

    def handler(*args):
        stack.append(label)
        if cleanup_label:
            return lambda *cleanup_args: stack.append(cleanup_label)
        return None

    handler.__name__ = label.replace(" ", "_")
    return handler


class TestRunnerCleanup:
    """Tests for Runner.cleanup."""

    @pytest.mark.asyncio
    async def test_cleanup_in_reverse(self, hooks, stack):
        """Cleanup handlers run in reverse of their handlers' order."""
        hooks.add("save", tracked(stack, "h1", "c1"))
        hooks.add("save", tracked(stack, "h2", "c2"))

        runner = hooks.runner("save")
        await runner.run()
        assert runner.is_cleanup_pending is True

        await runner.cleanup()

        assert runner.is_cleanup_pending is False
        assert stack == ["h1", "h2", "c2", "c1"]

    @pytest.mark.asyncio
    async def test_cleanup_during_error(self, hooks, stack):
        """Cleanups collected before a failure still run."""

        def before_save():
            stack.append("before save")
            return lambda: stack.append("cleanup save")

        def before_save_1():
            raise RuntimeError("Failed")

        hooks.add("save", before_save)
        hooks.add("save", before_save_1)

        runner = hooks.runner("save")
        with pytest.raises(RuntimeError, match="Failed"):
            await runner.run()
        assert runner.is_cleanup_pending is True

        await runner.cleanup()

        assert runner.is_cleanup_pending is False
        assert stack == ["before save", "cleanup save"]

    @pytest.mark.asyncio
    async def test_failing_first_handler_has_nothing_to_clean(self, hooks, stack):
        """A run failing on its only handler leaves a no-op cleanup."""

        def before_save():
            raise ValueError("boom")

        hooks.add("save", before_save)

        runner = hooks.runner("save")
        with pytest.raises(ValueError, match="boom"):
            await runner.run()
        assert runner.is_cleanup_pending is True

        await runner.cleanup()

        assert stack == []
        assert runner.state == RunnerState.CLEANUP_COMPLETED

    @pytest.mark.asyncio
    async def test_cleanup_is_idempotent(self, hooks, stack):
        """Calling cleanup() multiple times runs the cleanups once."""
        hooks.add("save", tracked(stack, "before save", "cleanup save"))
        hooks.add("save", tracked(stack, "before save 1", "cleanup save 1"))

        runner = hooks.runner("save")
        await runner.run()
        await runner.cleanup()
        await runner.cleanup()
        await runner.cleanup()

        assert stack == ["before save", "before save 1", "cleanup save 1", "cleanup save"]

    @pytest.mark.asyncio
    async def test_cleanup_before_run_is_noop(self, hooks, stack):
        """cleanup() before run() does nothing."""
        hooks.add("save", tracked(stack, "before save", "cleanup save"))

        runner = hooks.runner("save")
        await runner.cleanup()

        assert runner.state == RunnerState.IDLE

        await runner.run()
        await runner.cleanup()

        assert stack == ["before save", "cleanup save"]

    @pytest.mark.asyncio
    async def test_pass_data_to_cleanup_handlers(self, hooks, stack):
        """Arguments given to cleanup() are passed to every cleanup handler."""

        def before_save():
            return lambda message: stack.append(message)

        def before_save_1():
            return lambda message: stack.append(message.upper())

        hooks.add("save", before_save)
        hooks.add("save", before_save_1)

        runner = hooks.runner("save")
        await runner.run()
        await runner.cleanup("cleanup")

        assert stack == ["CLEANUP", "cleanup"]

    @pytest.mark.asyncio
    async def test_shared_cleanup_handler_is_not_deduplicated(self, hooks, stack):
        """Two hooks returning the same cleanup function both get it called."""

        def shared_cleanup():
            stack.append("cleanup")

        hooks.add("save", lambda: shared_cleanup)
        hooks.add("save", lambda: shared_cleanup)

        runner = hooks.runner("save")
        await runner.run()
        await runner.cleanup()

        assert stack == ["cleanup", "cleanup"]

    @pytest.mark.asyncio
    async def test_async_cleanup_handlers(self, hooks, stack):
        """Async handlers may return async cleanup handlers."""

        async def before_save():
            stack.append("before save")

            async def cleanup():
                stack.append("cleanup save")

            return cleanup

        hooks.add("save", before_save)

        runner = hooks.runner("save")
        await runner.run()
        await runner.cleanup()

        assert stack == ["before save", "cleanup save"]

    @pytest.mark.asyncio
    async def test_state_transitions(self, hooks):
        """The runner walks through its four states."""
        hooks.add("save", lambda: None)

        runner = hooks.runner("save")
        assert runner.state == RunnerState.IDLE

        await runner.run()
        assert runner.state == RunnerState.CLEANUP_PENDING

        await runner.cleanup()
        assert runner.state == RunnerState.CLEANUP_COMPLETED


class TestCleanupFailures:
    """Tests for the cleanup failure policies."""

    @pytest.mark.asyncio
    async def test_abort_mode_stops_at_first_failure(self, hooks, stack):
        """By default the first failing cleanup propagates unchanged."""

        def failing_cleanup():
            raise ValueError("cleanup failed")

        hooks.add("save", tracked(stack, "h1", "c1"))
        hooks.add("save", lambda: failing_cleanup)

        runner = hooks.runner("save")
        await runner.run()

        with pytest.raises(ValueError, match="cleanup failed"):
            await runner.cleanup()

        assert stack == ["h1"]
        assert runner.state == RunnerState.CLEANUP_COMPLETED

        # Not retried
        await runner.cleanup()
        assert stack == ["h1"]

    @pytest.mark.asyncio
    async def test_continue_mode_runs_every_cleanup(self, stack):
        """In continue mode all cleanups run before the failure is raised."""

        def failing_cleanup():
            raise ValueError("cleanup failed")

        hooks = Hooks(cleanup_failure_mode=CleanupFailureMode.CONTINUE)
        hooks.add("save", tracked(stack, "h1", "c1"))
        hooks.add("save", lambda: failing_cleanup)

        runner = hooks.runner("save")
        await runner.run()

        with pytest.raises(ValueError, match="cleanup failed"):
            await runner.cleanup()

        assert stack == ["h1", "c1"]
        assert runner.state == RunnerState.CLEANUP_COMPLETED

    @pytest.mark.asyncio
    async def test_continue_mode_aggregates_failures(self, stack):
        """Several failing cleanups are reported together."""

        def first():
            raise ValueError("first")

        def second():
            raise KeyError("second")

        runner = Runner(
            "save",
            handlers=[lambda: first, lambda: second, tracked(stack, "h3", "c3")],
            cleanup_failure_mode=CleanupFailureMode.CONTINUE,
        )
        await runner.run()

        with pytest.raises(CleanupError) as exc_info:
            await runner.cleanup()

        assert stack == ["h3", "c3"]
        assert [type(e) for e in exc_info.value.errors] == [KeyError, ValueError]
        assert exc_info.value.event == "save"

    @pytest.mark.asyncio
    async def test_mode_defaults_to_settings(self, monkeypatch, stack):
        """Runners pick up the configured failure mode."""
        from lifehooks.config import config

        monkeypatch.setattr(config, "CLEANUP_FAILURE_MODE", CleanupFailureMode.CONTINUE)

        def failing_cleanup():
            raise ValueError("cleanup failed")

        runner = Runner("save", handlers=[tracked(stack, "h1", "c1"), lambda: failing_cleanup])
        await runner.run()

        with pytest.raises(ValueError):
            await runner.cleanup()

        assert stack == ["h1", "c1"]
