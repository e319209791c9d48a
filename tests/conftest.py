"""Pytest configuration and shared fixtures for processflow tests."""

import pytest

from processflow import LayoutConfig, ProcessGraphGenerator, Process, ProcessStatus


@pytest.fixture
def simple_processes():
    """One ungrouped process feeding a two-process group."""
    return [
        {"name": "a", "status": "SUCCESS", "upstream_processes": []},
        {"name": "b.c", "status": "INPROGRESS", "upstream_processes": ["a"]},
        {"name": "b.d", "status": "NOTSTARTED", "upstream_processes": ["b.c"]},
    ]


@pytest.fixture
def nested_processes():
    """Two levels of nesting with edges crossing group boundaries."""
    return [
        {"name": "extract", "status": "SUCCESS"},
        {"name": "etl.load.stage", "status": "SUCCESS", "upstream_processes": ["extract"]},
        {
            "name": "etl.load.commit",
            "status": "FAILED",
            "upstream_processes": ["etl.load.stage"],
            "last_run_error_message": "constraint violated",
        },
        {"name": "etl.audit", "status": "SKIPPED", "upstream_processes": ["etl.load.commit"]},
        {"name": "report", "status": "NOTSTARTED", "upstream_processes": ["etl.audit"]},
    ]


@pytest.fixture
def obstructed_processes():
    """A direct edge inside group g that has to pass around nested group g.h."""
    return [
        {"name": "g.p", "status": "SUCCESS"},
        {"name": "g.h.x", "status": "SUCCESS", "upstream_processes": ["g.p"]},
        {"name": "g.q", "status": "SUCCESS", "upstream_processes": ["g.h.x", "g.p"]},
    ]


@pytest.fixture
def cyclic_processes():
    """Three processes depending on each other in a ring."""
    return [
        Process("a", status=ProcessStatus.SUCCESS, upstream_processes=("c",)),
        Process("b", status=ProcessStatus.SUCCESS, upstream_processes=("a",)),
        Process("c", status=ProcessStatus.SUCCESS, upstream_processes=("b",)),
    ]


@pytest.fixture
def config():
    """Default geometric constants."""
    return LayoutConfig()


@pytest.fixture
def generator():
    """Default ProcessGraphGenerator instance."""
    return ProcessGraphGenerator()
