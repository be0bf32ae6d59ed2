"""Shared pytest configuration for the test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from cmctl.core.models import (
    Deployment,
    DeploymentCluster,
    DeploymentService,
    Host,
    RoleAssignment,
)


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Tag every test that is not marked as system as a unit test."""

    for item in items:
        if "system" not in item.keywords:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def isolated_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Keep registry, config and log files inside the test's tmp dir."""

    data_dir = tmp_path / "cmctl-data"
    monkeypatch.setenv("CMCTL_DATA_DIR", str(data_dir))
    monkeypatch.setenv("COLUMNS", "200")
    return data_dir


class FakeFetcher:
    """In-memory topology source that records how often it is queried."""

    def __init__(self, hosts: list[Host], deployment: Deployment) -> None:
        self.hosts = hosts
        self.deployment = deployment
        self.host_calls = 0
        self.deployment_calls = 0

    def fetch_hosts(self) -> list[Host]:
        self.host_calls += 1
        return list(self.hosts)

    def fetch_deployment(self) -> Deployment:
        self.deployment_calls += 1
        return self.deployment


def _role(role_type: str, host_id: str) -> RoleAssignment:
    return RoleAssignment(name=f"{role_type.lower()}-{host_id}", role_type=role_type, host_id=host_id)


@pytest.fixture()
def sample_hosts() -> list[Host]:
    """Four hosts: two in c1, one in c2 and one outside any cluster."""

    return [
        Host(hostname="h1", ip_address="10.0.0.1", host_id="id1", cluster_name="c1"),
        Host(hostname="h2", ip_address="10.0.0.2", host_id="id2", cluster_name="c1"),
        Host(hostname="h3", ip_address="10.0.0.3", host_id="id3", cluster_name="c2"),
        Host(hostname="h4", ip_address="10.0.0.4", host_id="id4"),
    ]


@pytest.fixture()
def sample_deployment() -> Deployment:
    """Deployment tree matching :func:`sample_hosts`."""

    return Deployment(
        clusters=(
            DeploymentCluster(
                name="c1",
                services=(
                    DeploymentService(
                        name="hdfs",
                        service_type="HDFS",
                        roles=(_role("NAMENODE", "id1"), _role("DATANODE", "id2")),
                    ),
                    DeploymentService(
                        name="yarn",
                        service_type="YARN",
                        roles=(_role("RESOURCEMANAGER", "id1"),),
                    ),
                ),
            ),
            DeploymentCluster(
                name="c2",
                services=(
                    DeploymentService(
                        name="hdfs-2",
                        service_type="HDFS",
                        roles=(_role("NAMENODE", "id3"), _role("DATANODE", "id3")),
                    ),
                    DeploymentService(
                        name="zookeeper",
                        service_type="ZOOKEEPER",
                        roles=(_role("SERVER", "id3"),),
                    ),
                ),
            ),
        )
    )


@pytest.fixture()
def fetcher(sample_hosts: list[Host], sample_deployment: Deployment) -> FakeFetcher:
    """Topology source backed by the sample hosts and deployment."""

    return FakeFetcher(sample_hosts, sample_deployment)


@pytest.fixture()
def make_fetcher() -> type[FakeFetcher]:
    """Expose the fake fetcher class for tests that build their own topology."""

    return FakeFetcher
