"""Tests for the memory budget."""

from css_reducer.budget import ProcessingBudget, counting_budget, process_memory_usage
from css_reducer.config import OptimizerConfig

from .conftest import FakeProbe


class TestProcessingBudget:
    def test_under_fraction(self):
        budget = ProcessingBudget(1000, 0.8, probe=FakeProbe([800]))
        assert not budget.exceeded()

    def test_over_fraction(self):
        budget = ProcessingBudget(1000, 0.8, probe=FakeProbe([801]))
        assert budget.exceeded()

    def test_zero_ceiling_never_exceeded(self):
        budget = ProcessingBudget(0, probe=FakeProbe([10 ** 12]))
        assert not budget.exceeded()

    def test_charge_accumulates(self):
        budget = ProcessingBudget(1000, probe=FakeProbe([0]))
        budget.charge(10)
        budget.charge(-5)
        budget.charge(15)
        assert budget.consumed == 25

    def test_from_config(self):
        budget = ProcessingBudget.from_config(OptimizerConfig(memory_limit="1k", memory_fraction=0.5))
        assert budget.ceiling == 1024
        assert budget.safe_limit == 512

    def test_default_probe_reads_process_rss(self):
        assert process_memory_usage() > 0


class TestCountingBudget:
    def test_consumed_bytes_drive_the_check(self):
        budget = counting_budget(100, 0.8)
        budget.charge(80)
        assert not budget.exceeded()
        budget.charge(1)
        assert budget.exceeded()
