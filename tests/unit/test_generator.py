"""Unit tests for the generator module."""

import logging

import pytest

from processflow import (
    CycleDetectedError,
    LayoutConfig,
    ParseError,
    ProcessGraphGenerator,
    generate_flow_graph,
)
from processflow.layout import LayoutError, NetworkXLayout


class TestProcessGraphGeneratorInit:
    """Tests for ProcessGraphGenerator initialization."""

    def test_default_initialization(self):
        gen = ProcessGraphGenerator()
        assert gen.algorithm == "layered"
        assert gen.direction == "DOWN"
        assert gen.centering is True
        assert gen.sizing == "label"
        assert gen.max_layout_passes == 2
        assert isinstance(gen.layout_engine, NetworkXLayout)

    def test_direction_is_case_insensitive(self):
        assert ProcessGraphGenerator(direction="right").direction == "RIGHT"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"algorithm": "force"},
            {"direction": "UP"},
            {"sizing": "auto"},
            {"max_layout_passes": 0},
            {"max_layout_passes": 1.5},
            {"config": LayoutConfig(node_height=0)},
        ],
    )
    def test_invalid_options(self, kwargs):
        with pytest.raises(ValueError):
            ProcessGraphGenerator(**kwargs)


class TestGenerate:
    """Tests for the generate pipeline."""

    def test_empty_input(self, generator):
        graph = generator.generate([])
        assert graph.nodes == []
        assert graph.edges == []
        assert graph.layout_passes == 1

    def test_single_process(self, generator):
        graph = generator.generate([{"name": "only"}])
        assert [n.id for n in graph.nodes] == ["only"]
        assert graph.get_node("only").position == (20, 20)

    def test_parse_error_propagates(self, generator):
        with pytest.raises(ParseError):
            generator.generate([{"name": "group-x"}])

    def test_collapsed_prefix_and_unknown_ids(self, generator, simple_processes):
        graph = generator.generate(simple_processes, collapsed=["group-b", "nope"])
        assert graph.get_node("group-b").data["collapsed"] is True
        assert graph.get_node("b.c") is None

    def test_fixed_sizing(self, simple_processes):
        records = simple_processes + [
            {"name": "a_process_with_a_rather_long_name", "upstream_processes": []}
        ]
        label = ProcessGraphGenerator().generate(records)
        fixed = ProcessGraphGenerator(sizing="fixed").generate(records)
        name = "a_process_with_a_rather_long_name"
        assert label.process_boxes[name].width > 180
        assert fixed.process_boxes[name].width == 180

    def test_cycle_warning(self, generator, cyclic_processes, caplog):
        with caplog.at_level(logging.WARNING, logger="processflow.generator"):
            graph = generator.generate(cyclic_processes)
        assert graph.has_cycles is True
        assert "cycle" in caplog.text
        assert len(graph.nodes) == 3

    def test_simple_algorithm_rejects_cycles(self, cyclic_processes):
        with pytest.raises(CycleDetectedError):
            ProcessGraphGenerator(algorithm="simple").generate(cyclic_processes)

    def test_engine_failure_is_wrapped(self, simple_processes):
        class BrokenEngine:
            def layout(self, graph):
                raise RuntimeError("boom")

        gen = ProcessGraphGenerator(layout_engine=BrokenEngine())
        with pytest.raises(LayoutError, match="boom"):
            gen.generate(simple_processes)

    def test_trace_only_in_debug(self, generator, simple_processes):
        generator.generate(simple_processes)
        assert generator.get_trace() is None
        generator.generate(simple_processes, debug=True)
        trace = generator.get_trace()
        assert trace.process_count == 3
        assert [s.name for s in trace.stages] == [
            "parse",
            "hierarchy",
            "classify",
            "compose_pass_1",
            "avoidance_pass_1",
            "margins",
            "confluence",
            "centering",
            "ports",
            "assemble",
        ]

    def test_no_centering_stage(self, simple_processes):
        gen = ProcessGraphGenerator(centering=False)
        gen.generate(simple_processes, debug=True)
        assert gen.get_trace().get_stage("centering") is None

    def test_generate_flow_graph(self, simple_processes):
        graph = generate_flow_graph(simple_processes, collapsed={"b"}, centering=False)
        assert graph.hidden_edges == {"group-b": 1}
