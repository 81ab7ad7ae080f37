from __future__ import annotations

from pathlib import Path

import pytest

from brokerconf.config import ClusterSpec, discover_config, load_config
from brokerconf.endpoints import Endpoint, StaticEndpointResolver
from brokerconf.topology import ClusterTopology


# ---------------------------------------------------------------------------
# ClusterSpec
# ---------------------------------------------------------------------------


class TestClusterSpec:
    def test_defaults(self) -> None:
        spec = ClusterSpec()
        assert spec.topology.node_count == 1
        assert spec.endpoints == StaticEndpointResolver()
        assert spec.coordinator is None

    def test_generate_quorum(self) -> None:
        spec = ClusterSpec(topology=ClusterTopology(node_count=2))
        configs = spec.generate()
        assert [c.properties["process.roles"] for c in configs] == [
            "broker,controller",
            "broker",
        ]

    def test_generate_legacy(self) -> None:
        spec = ClusterSpec(
            topology=ClusterTopology(quorum_mode=False),
            coordinator=Endpoint("zk", 2181),
        )
        (config,) = spec.generate()
        assert config.properties["zookeeper.connect"] == "zk:2181"

    def test_generate_legacy_without_coordinator_raises(self) -> None:
        spec = ClusterSpec(topology=ClusterTopology(quorum_mode=False))
        with pytest.raises(ValueError, match="coordinator"):
            spec.generate()


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_full_config(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("""\
[cluster]
nodes = 3
quorum_nodes = 3
quorum_mode = true
cluster_id = "MkU3OEVBNTcwNTJENDM2Qk"

[security]
mechanism = "PLAIN"

[security.users]
alice = "alice-secret"
bob = "bob-secret"

[overrides]
"num.partitions" = 3
"auto.create.topics.enable" = false
"log.dirs" = "/var/lib/kafka"

[endpoints]
bind_host = "127.0.0.1"
advertised_host = "broker.local"
client_port = 19092
inter_broker_port = 19093
controller_port = 19094
stride = 10
""")
        spec = load_config(toml_file)
        topology = spec.topology
        assert topology.node_count == 3
        assert topology.quorum_node_count == 3
        assert topology.quorum_mode is True
        assert topology.cluster_id == "MkU3OEVBNTcwNTJENDM2Qk"
        assert topology.credential_mechanism == "PLAIN"
        assert dict(topology.users) == {"alice": "alice-secret", "bob": "bob-secret"}
        assert dict(topology.overrides) == {
            "num.partitions": "3",
            "auto.create.topics.enable": "false",
            "log.dirs": "/var/lib/kafka",
        }
        assert spec.endpoints == StaticEndpointResolver(
            bind_host="127.0.0.1",
            advertised_host="broker.local",
            client_port=19092,
            inter_broker_port=19093,
            controller_port=19094,
            stride=10,
        )
        assert spec.coordinator is None

    def test_minimal_config(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("")
        spec = load_config(toml_file)
        assert spec.topology.node_count == 1
        assert spec.topology.quorum_mode is True
        assert spec.topology.credential_mechanism is None
        assert spec.endpoints == StaticEndpointResolver()

    def test_random_cluster_id_when_absent(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("[cluster]\nnodes = 1\n")
        assert len(load_config(toml_file).topology.cluster_id) == 22

    def test_legacy_with_coordinator(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("""\
[cluster]
nodes = 2
quorum_mode = false

[coordinator]
connect = "zookeeper:2181"
""")
        spec = load_config(toml_file)
        assert spec.topology.quorum_mode is False
        assert spec.coordinator == Endpoint("zookeeper", 2181)
        configs = spec.generate()
        assert len(configs) == 2
        assert all(c.properties["zookeeper.connect"] == "zookeeper:2181" for c in configs)

    def test_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.toml")

    def test_unknown_endpoint_key_raises(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("[endpoints]\nclient_prot = 9092\n")
        with pytest.raises(ValueError, match="client_prot"):
            load_config(toml_file)

    def test_bad_coordinator_raises(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text('[coordinator]\nconnect = "zookeeper"\n')
        with pytest.raises(ValueError, match="host:port"):
            load_config(toml_file)

    def test_quorum_larger_than_cluster_loads(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("[cluster]\nnodes = 1\nquorum_nodes = 2\n")
        spec = load_config(toml_file)
        (config,) = spec.generate()
        assert config.properties["controller.quorum.voters"] == (
            "0@//localhost:9094,1@//localhost:9097"
        )

    @pytest.mark.parametrize(
        ("content", "key"),
        [
            ('[cluster]\nnodes = "3"\n', "nodes"),
            ("[cluster]\nnodes = true\n", "nodes"),
            ("[cluster]\nquorum_nodes = 1.5\n", "quorum_nodes"),
            ('[cluster]\nquorum_mode = "no"\n', "quorum_mode"),
            ("[cluster]\ncluster_id = 7\n", "cluster_id"),
            ("[security]\nmechanism = 1\n", "mechanism"),
            ('[security]\nusers = "alice"\n', "users"),
            ("[security.users]\nalice = 123\n", "alice"),
            ('[endpoints]\nclient_port = "x"\n', "client_port"),
            ("[endpoints]\nadvertised_host = 1\n", "advertised_host"),
            ("[coordinator]\nconnect = 2181\n", "connect"),
            ("cluster = 3\n", "cluster"),
            ("[overrides]\n\"log.dirs\" = [\"/a\", \"/b\"]\n", "log.dirs"),
        ],
    )
    def test_wrong_value_type_raises(self, tmp_path: Path, content: str, key: str) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text(content)
        with pytest.raises(ValueError, match=key):
            load_config(toml_file)

    def test_dotted_override_keys_flattened(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("[overrides]\nnum.partitions = 3\nlog.retention.hours = 1\n")
        spec = load_config(toml_file)
        assert spec.topology.overrides == {
            "num.partitions": "3",
            "log.retention.hours": "1",
        }


# ---------------------------------------------------------------------------
# discover_config
# ---------------------------------------------------------------------------


class TestDiscoverConfig:
    def test_finds_in_cwd(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("")
        assert discover_config(tmp_path) == toml_file.resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("")
        child = tmp_path / "a" / "b" / "c"
        child.mkdir(parents=True)
        assert discover_config(child) == toml_file.resolve()

    def test_not_found_returns_none(self, tmp_path: Path) -> None:
        child = tmp_path / "isolated"
        child.mkdir()
        assert discover_config(child) is None

    def test_load_config_no_args_auto_discovery(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        toml_file = tmp_path / "brokerconf.toml"
        toml_file.write_text("[cluster]\nnodes = 4\n")
        monkeypatch.chdir(tmp_path)
        assert load_config().topology.node_count == 4

    def test_load_config_no_args_no_file_returns_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("brokerconf.config.discover_config", lambda start=None: None)
        spec = load_config()
        assert spec.topology.node_count == 1
        assert spec.coordinator is None
