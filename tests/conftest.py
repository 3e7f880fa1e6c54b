"""
Shared fixtures: PDDL models loaded from tests/data.
"""

from pathlib import Path

import pytest

from symbolic.planning.pddl import Pddl

DATA_DIR = Path(__file__).parent / "data"


def data_file(name: str) -> Path:
    return DATA_DIR / name


def load(name: str) -> Pddl:
    return Pddl.from_files(data_file(f"{name}_domain.pddl"), data_file(f"{name}_problem.pddl"))


@pytest.fixture(scope="module")
def blocksworld():
    return load("blocksworld")


@pytest.fixture(scope="module")
def briefcase():
    return load("briefcase")


@pytest.fixture(scope="module")
def tower():
    return load("tower")
