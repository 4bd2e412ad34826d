from random import Random

from hypothesis import given
from hypothesis import strategies as st

from stackyard.core.workspace import dump_manifest, parse_manifest
from stackyard.models.container import Container, ContainerState
from stackyard.models.project import (
    GitSource,
    ProjectFile,
    ProjectName,
    ProjectStatusKind,
    derive_status,
)

FORBIDDEN = "/\\:*?\"<>|"

containers = st.lists(
    st.builds(Container, name=st.text(min_size=1, max_size=10), state=st.sampled_from(ContainerState))
)
names = st.text(
    alphabet=st.characters(categories=("L", "N", "P", "S", "Zs"), exclude_characters=FORBIDDEN),
    min_size=1,
    max_size=100,
).filter(lambda value: value.strip() != "")
plain_text = st.text(alphabet=st.characters(categories=("L", "N", "P", "S", "Zs")), max_size=40)


@given(st.sampled_from([member.value for member in ProjectStatusKind]))
def test_status_kind_values_are_lowercase(value: str) -> None:
    assert value == value.lower()


@given(containers)
def test_derive_status_counts_running_containers(snapshot: list[Container]) -> None:
    status = derive_status(snapshot)
    running = sum(1 for container in snapshot if container.state is ContainerState.RUNNING)

    if not snapshot:
        assert status.kind is ProjectStatusKind.UNKNOWN
    elif running == 0:
        assert status.kind is ProjectStatusKind.STOPPED
    elif running == len(snapshot):
        assert status.kind is ProjectStatusKind.RUNNING
        assert (status.active, status.total) == (running, len(snapshot))
    else:
        assert status.kind is ProjectStatusKind.PARTIALLY_RUNNING
        assert (status.active, status.total) == (running, len(snapshot))


@given(containers, st.randoms())
def test_derive_status_ignores_order(snapshot: list[Container], random: Random) -> None:
    shuffled = list(snapshot)
    random.shuffle(shuffled)
    assert derive_status(shuffled) == derive_status(snapshot)


@given(names)
def test_valid_names_round_trip(value: str) -> None:
    name = ProjectName(value)
    assert str(name) == value
    assert ProjectName(name) is name


@given(names, plain_text, plain_text, plain_text)
def test_manifest_round_trip(name: str, url: str, branch: str, path: str) -> None:
    definition = ProjectFile(
        name=ProjectName(name),
        source=GitSource(url=url, branch=branch, path=path),
    )
    assert parse_manifest(dump_manifest(definition)) == definition
