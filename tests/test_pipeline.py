"""
Tests for the step executor: filtering, probing, failure policy, ordering.
"""

import random

import pytest

from dotfiles_setup.errors import SetupError
from dotfiles_setup.lib.osdetect import Platform
from dotfiles_setup.pipeline import BaseStep, run_pipeline, validate_steps
from dotfiles_setup.report import StepStatus


class FakeStep(BaseStep):
    """Records its own execution into a shared list."""

    def __init__(
        self,
        step_id,
        journal,
        *,
        satisfied=False,
        fail=False,
        critical=True,
        platforms=None,
        requires=(),
        manual=None,
        status=None,
    ):
        self.step_id = step_id
        self.title = step_id.replace("_", " ")
        self.journal = journal
        self.satisfied = satisfied
        self.fail = fail
        self.critical = critical
        self.platforms = platforms
        self.requires = tuple(requires)
        self.manual = manual
        self.status = status

    def probe(self, ctx):
        return self.satisfied

    def run(self, ctx):
        self.journal.append(self.step_id)
        if self.fail:
            raise SetupError(f"{self.step_id} broke")
        if self.manual:
            ctx.manual_step(self.manual)
        return self.status


@pytest.fixture
def ctx(make_host, make_ctx):
    return make_ctx(make_host(Platform.UBUNTU))


class TestExecutor:
    """run_pipeline() behaviour per step outcome."""

    def test_runs_unsatisfied_and_skips_satisfied(self, ctx):
        journal = []
        steps = [FakeStep("10_a", journal), FakeStep("20_b", journal, satisfied=True), FakeStep("30_c", journal)]
        report = run_pipeline(ctx=ctx, steps=steps)

        assert journal == ["10_a", "30_c"]
        assert report.completed == ["10_a", "30_c"]
        assert report.skipped == ["20_b"]
        assert report.records[1].message == "already done"
        assert report.aborted is False

    def test_platform_filter_skips_silently(self, ctx):
        journal = []
        steps = [
            FakeStep("10_mac_only", journal, platforms=frozenset({Platform.MACOS})),
            FakeStep("20_linux", journal, platforms=frozenset({Platform.UBUNTU, Platform.ARCH})),
        ]
        report = run_pipeline(ctx=ctx, steps=steps)

        assert journal == ["20_linux"]
        assert [r.step_id for r in report.records] == ["20_linux"]

    def test_critical_failure_aborts(self, ctx):
        journal = []
        steps = [
            FakeStep("10_ok", journal),
            FakeStep("20_boom", journal, fail=True),
            FakeStep("30_never", journal),
            FakeStep("40_never_either", journal, satisfied=True),
        ]
        report = run_pipeline(ctx=ctx, steps=steps)

        assert report.aborted is True
        assert "20_boom" in report.abort_reason
        assert journal == ["10_ok", "20_boom"]
        assert "30_never" not in report.completed + report.skipped
        assert "40_never_either" not in report.completed + report.skipped
        assert report.records[-1].status == StepStatus.FAILED

    def test_non_critical_failure_warns_and_continues(self, ctx):
        journal = []
        steps = [FakeStep("10_flaky", journal, fail=True, critical=False), FakeStep("20_next", journal)]
        report = run_pipeline(ctx=ctx, steps=steps)

        assert report.aborted is False
        assert [w.step_id for w in report.warnings] == ["10_flaky"]
        assert "broke" in report.warnings[0].message
        assert report.completed == ["20_next"]

    def test_probe_failure_follows_criticality(self, ctx):
        class BadProbe(FakeStep):
            def probe(self, ctx):
                raise OSError("cannot stat")

        journal = []
        report = run_pipeline(ctx=ctx, steps=[BadProbe("10_bad", journal, critical=False), FakeStep("20_ok", journal)])
        assert report.warnings[0].step_id == "10_bad"
        assert journal == ["20_ok"]

    def test_remediated_status_is_distinct(self, ctx):
        journal = []
        report = run_pipeline(ctx=ctx, steps=[FakeStep("10_fix", journal, status=StepStatus.REMEDIATED)])
        assert report.remediated == ["10_fix"]
        assert report.records[0].status == StepStatus.REMEDIATED

    def test_manual_steps_in_discovery_order(self, ctx):
        journal = []
        steps = [
            FakeStep("10_first", journal, manual="do the first thing"),
            FakeStep("20_quiet", journal),
            FakeStep("30_second", journal, manual="do the second thing", status=StepStatus.MANUAL),
        ]
        assert ctx.report.manual_steps == []
        report = run_pipeline(ctx=ctx, steps=steps)
        assert [m.description for m in report.manual_steps] == ["do the first thing", "do the second thing"]

    def test_on_record_streams_every_record(self, ctx):
        journal, seen = [], []
        steps = [FakeStep("10_a", journal), FakeStep("20_b", journal, satisfied=True)]
        run_pipeline(ctx=ctx, steps=steps, on_record=seen.append)
        assert [(r.step_id, r.status) for r in seen] == [("10_a", StepStatus.COMPLETED), ("20_b", StepStatus.SKIPPED)]

    def test_start_at_and_stop_after(self, ctx):
        journal = []
        steps = [FakeStep(f"{i}0_s", journal) for i in range(1, 6)]
        run_pipeline(ctx=ctx, steps=steps, start_at="20_s", stop_after="40_s")
        assert journal == ["20_s", "30_s", "40_s"]

    @pytest.mark.parametrize("bound", ["start_at", "stop_after"])
    def test_unknown_bound_is_rejected_before_anything_runs(self, ctx, bound):
        journal = []
        steps = [FakeStep("10_a", journal), FakeStep("20_b", journal)]
        with pytest.raises(ValueError, match=f"Unknown step id for {bound}: 20_typo"):
            run_pipeline(ctx=ctx, steps=steps, **{bound: "20_typo"})
        assert journal == []
        assert ctx.report.records == []


class TestOrdering:
    """Declared dependencies are validated and respected."""

    def test_requires_must_come_earlier(self):
        journal = []
        with pytest.raises(ValueError, match="must come earlier"):
            validate_steps([FakeStep("20_pkgs", journal, requires=["10_pm"]), FakeStep("10_pm", journal)])

    def test_duplicate_ids_rejected(self):
        journal = []
        with pytest.raises(ValueError, match="Duplicate"):
            validate_steps([FakeStep("10_a", journal), FakeStep("10_a", journal)])

    def test_dependent_step_not_run_when_requirement_warned(self, ctx):
        journal = []
        steps = [
            FakeStep("10_pm", journal, fail=True, critical=False),
            FakeStep("20_pkgs", journal, requires=["10_pm"]),
        ]
        report = run_pipeline(ctx=ctx, steps=steps)
        assert journal == ["10_pm"]
        assert [w.step_id for w in report.warnings] == ["10_pm", "20_pkgs"]

    def test_requirement_filtered_by_platform_does_not_block(self, ctx):
        journal = []
        steps = [
            FakeStep("10_brew", journal, platforms=frozenset({Platform.MACOS})),
            FakeStep("20_pkgs", journal, requires=["10_brew"]),
        ]
        report = run_pipeline(ctx=ctx, steps=steps)
        assert report.completed == ["20_pkgs"]

    @pytest.mark.parametrize("seed", range(5))
    def test_postcondition_holds_with_unrelated_steps_inserted(self, ctx, seed):
        """The dependent step always sees the earlier step's post-condition."""
        state = {}
        journal = []

        class PackageManagerStep(FakeStep):
            def probe(self, ctx):
                return state.get("pm", False)

            def run(self, ctx):
                journal.append(self.step_id)
                state["pm"] = True

        class PackagesStep(FakeStep):
            def run(self, ctx):
                journal.append(self.step_id)
                if not state.get("pm"):
                    raise SetupError("package manager missing")

        rng = random.Random(seed)
        unrelated = [FakeStep(f"x{i}", journal, satisfied=rng.random() < 0.5) for i in range(rng.randint(1, 6))]
        cut = rng.randint(0, len(unrelated))
        steps = [
            *unrelated[:cut],
            PackageManagerStep("pm", journal),
            *unrelated[cut:],
            PackagesStep("pkgs", journal, requires=["pm"]),
        ]

        report = run_pipeline(ctx=ctx, steps=steps)
        assert report.aborted is False
        assert journal.index("pm") < journal.index("pkgs")
