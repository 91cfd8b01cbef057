"""Tests for ScenarioGenerator."""
import pytest

from src.scenario.generator import ScenarioGenerator, chain_counts, sort_chains
from src.scenario.models import ScenarioStatus, SweepRequest
from src.scenario.settings import GeneratorSettings


def make_request(**overrides) -> SweepRequest:
    """Create a SweepRequest with sensible defaults."""
    data = dict(
        project_name="upload-test",
        user_id="u1",
        data_size={"mode": "fixed", "fixed": 100},
        chunk_size={"mode": "fixed", "fixed": 64},
        allocators=["RoundRobin"],
        transmitters=["OneByOne"],
        chain_mode="fixed",
        selected_chains=["datachain-0", "datachain-1", "datachain-2"],
    )
    data.update(overrides)
    return SweepRequest(**data)


@pytest.fixture
def generator():
    return ScenarioGenerator(clock=lambda: 1700000000000)


class TestSortChains:
    def test_numbers_sorted_numerically(self):
        assert sort_chains(["chain-10", "chain-2", "chain-1"]) == ["chain-1", "chain-2", "chain-10"]

    def test_mixed_prefixes(self):
        assert sort_chains(["b-1", "a-2", "a-10"]) == ["a-2", "a-10", "b-1"]


class TestChainCounts:
    def test_fixed_mode_uses_all_chains(self):
        assert chain_counts(make_request(), 3) == [3]

    def test_range_mode_clamped_to_available(self):
        request = make_request(chain_mode="range", chain_range={"start": 1, "end": 5, "step": 1})

        assert chain_counts(request, 3) == [1, 2, 3]

    def test_range_mode_falls_back_to_one(self):
        request = make_request(chain_mode="range", chain_range={"start": 4, "end": 6, "step": 1})

        assert chain_counts(request, 3) == [1]

    def test_range_mode_zero_step_falls_back_to_one(self):
        request = make_request(chain_mode="range", chain_range={"start": 1, "end": 3, "step": 0})

        assert chain_counts(request, 3) == [1]


class TestScenarioGenerator:
    def test_cardinality_is_product_of_dimensions(self, generator):
        request = make_request(
            data_size={"mode": "range", "start": 100, "end": 500, "step": 200},
            chunk_size={"mode": "range", "start": 32, "end": 64, "step": 32},
            allocators=["RoundRobin", "Available"],
            transmitters=["OneByOne", "MultiBurst"],
            chain_mode="range",
            chain_range={"start": 1, "end": 3, "step": 1},
        )

        scenarios = generator.generate(request)

        assert len(scenarios) == 3 * 2 * 3 * 2 * 2

    def test_ids_sequential_from_one(self, generator):
        request = make_request(allocators=["Static", "Random", "Hash"])

        scenarios = generator.generate(request)

        assert [s.id for s in scenarios] == [1, 2, 3]

    def test_all_start_pending(self, generator):
        scenarios = generator.generate(make_request(transmitters=["OneByOne", "MultiBurst"]))

        for scenario in scenarios:
            assert scenario.status == ScenarioStatus.PENDING
            assert scenario.cost == 0
            assert scenario.logs == []
            assert scenario.fail_reason is None
            assert scenario.user_id == "u1"

    def test_iteration_order(self, generator):
        request = make_request(
            data_size={"mode": "range", "start": 100, "end": 200, "step": 100},
            allocators=["Static", "Hash"],
        )

        scenarios = generator.generate(request)

        assert [(s.data_size_mb, s.allocator_strategy.value) for s in scenarios] == [
            (100, "Static"),
            (100, "Hash"),
            (200, "Static"),
            (200, "Hash"),
        ]

    def test_chain_targets_are_sorted_prefixes(self, generator):
        request = make_request(
            chain_mode="range",
            chain_range={"start": 1, "end": 3, "step": 1},
            selected_chains=["chain-10", "chain-2", "chain-1"],
        )

        scenarios = generator.generate(request)

        assert [s.target_chain_ids for s in scenarios] == [
            ["chain-1"],
            ["chain-1", "chain-2"],
            ["chain-1", "chain-2", "chain-10"],
        ]

    def test_fixed_mode_targets_all_chains(self, generator):
        scenarios = generator.generate(make_request())

        assert scenarios[0].target_chain_ids == ["datachain-0", "datachain-1", "datachain-2"]

    def test_range_outside_selection_uses_one_chain(self, generator):
        request = make_request(
            chain_mode="range",
            chain_range={"start": 5, "end": 8, "step": 1},
        )

        scenarios = generator.generate(request)

        assert len(scenarios) == 1
        assert scenarios[0].target_chain_ids == ["datachain-0"]

    def test_no_chains_selected_produces_nothing(self, generator):
        assert generator.generate(make_request(selected_chains=[])) == []

    def test_unique_ids_distinct_across_generations(self, generator):
        first = generator.generate(make_request(allocators=["Static", "Hash"]))
        second = generator.generate(make_request(allocators=["Static", "Hash"]))

        unique_ids = [s.unique_id for s in first + second]
        assert len(set(unique_ids)) == 4
        assert [s.id for s in second] == [1, 2]

    def test_unique_id_format(self, generator):
        scenarios = generator.generate(make_request(project_name="my test!"))

        assert scenarios[0].unique_id == "mytest_1700000000000_1"

    def test_empty_clean_name_uses_fallback(self):
        generator = ScenarioGenerator(
            settings=GeneratorSettings(fallback_project_name="Run"),
            clock=lambda: 42,
        )

        scenarios = generator.generate(make_request(project_name="!!!"))

        assert scenarios[0].unique_id.startswith("Run_42_")

    def test_budget_limit_from_settings(self):
        generator = ScenarioGenerator(settings=GeneratorSettings(budget_limit=250))

        scenarios = generator.generate(make_request())

        assert scenarios[0].budget_limit == 250
