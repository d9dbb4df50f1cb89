"""Tests for host fingerprint probes"""
import hashlib
from unittest.mock import patch

import pytest

from telemetry import environment
from telemetry.machine_id import MachineIdProbe, NullProbe


class FakeProbe(MachineIdProbe):
    def __init__(self, value):
        self.value = value

    def probe(self):
        return self.value


class BrokenProbe(MachineIdProbe):
    def probe(self):
        raise RuntimeError("no registry")


class TestOsRelease:
    """Test release descriptor parsing"""

    def test_parse_os_release(self, tmp_path):
        release = tmp_path / "os-release"
        release.write_text('NAME="Ubuntu"\nVERSION="22.04"\nID=ubuntu\n\nnot a pair\nPRETTY_NAME="A=B"\n')

        info = environment.parse_os_release(str(release))

        assert info == {
            "name": "Ubuntu",
            "version": "22.04",
            "id": "ubuntu",
            "pretty_name": "A=B",
        }

    def test_get_os_release(self, tmp_path):
        release = tmp_path / "os-release"
        release.write_text('NAME="Ubuntu"\nVERSION="22.04"\n')

        assert environment.get_os_release(str(release)) == ("ubuntu", "22.04")

    def test_missing_file(self, tmp_path):
        missing = str(tmp_path / "missing")

        assert environment.parse_os_release(missing) == {}
        assert environment.get_os_release(missing) == ("unknown", "unknown")

    def test_missing_keys(self, tmp_path):
        release = tmp_path / "os-release"
        release.write_text("ID=alpine\n")

        assert environment.get_os_release(str(release)) == ("unknown", "unknown")


class TestArchitecture:
    """Test architecture classification"""

    @pytest.mark.parametrize("machine,expected", [
        ("x86_64", "amd"),
        ("AMD64", "amd"),
        ("x64", "amd"),
        ("aarch64", "arm"),
        ("arm64", "arm"),
        ("armv7l", "arm"),
        ("riscv64", "unknown"),
        ("", "unknown"),
    ])
    def test_classification(self, machine, expected):
        assert environment.get_architecture(machine) == expected

    def test_uses_platform_machine_by_default(self):
        with patch("telemetry.environment.platform.machine", return_value="x86_64"):
            assert environment.get_architecture() == "amd"


class TestMachineId:
    """Test machine id hashing"""

    def test_raw_id_is_hashed_with_prefix(self):
        expected = hashlib.sha256(b"manticore:abc123").hexdigest()

        assert environment.get_machine_id("Linux", FakeProbe("abc123")) == expected

    def test_empty_probe_gives_unknown(self):
        assert environment.get_machine_id("Linux", FakeProbe("")) == "unknown"

    def test_failing_probe_gives_unknown(self):
        assert environment.get_machine_id("Windows", BrokenProbe()) == "unknown"

    def test_unknown_platform(self):
        assert environment.get_machine_id("Plan9") == "unknown"

    def test_probe_selected_by_os_name(self):
        with patch("telemetry.environment.select_probe", return_value=NullProbe()) as select:
            environment.get_machine_id("Darwin")

        select.assert_called_once_with("Darwin")


class TestDockerized:
    """Test container detection from process 1 scheduling info"""

    def _sched(self, tmp_path, content):
        sched = tmp_path / "sched"
        sched.write_text(content)
        return str(sched)

    def test_missing_file_is_unknown(self, tmp_path):
        assert environment.is_dockerized(str(tmp_path / "missing")) == "unknown"

    @pytest.mark.parametrize("first_line", [
        "systemd (1, #threads: 1)",
        "init (1, #threads: 1)",
    ])
    def test_init_process_maps_to_no(self, tmp_path, first_line):
        # Literal mapping kept from the original probe: init/systemd as pid 1 reports "no"
        path = self._sched(tmp_path, first_line + "\n-------\n")
        assert environment.is_dockerized(path) == "no"

    @pytest.mark.parametrize("first_line", [
        "bash (1, #threads: 1)",
        "searchd (1, #threads: 4)",
    ])
    def test_other_process_maps_to_yes(self, tmp_path, first_line):
        path = self._sched(tmp_path, first_line + "\n")
        assert environment.is_dockerized(path) == "yes"

    def test_empty_file_maps_to_yes(self, tmp_path):
        assert environment.is_dockerized(self._sched(tmp_path, "")) == "yes"

    def test_unreadable_file_is_unknown(self, tmp_path):
        path = self._sched(tmp_path, "systemd (1)\n")
        with patch("builtins.open", side_effect=PermissionError("denied")):
            assert environment.is_dockerized(path) == "unknown"


class TestOfficialDocker:
    """Test official image detection"""

    def test_marker_present(self):
        assert environment.is_official_docker({"DAEMON_URL": "http://manticore:9308"}) == "yes"

    def test_marker_absent(self):
        assert environment.is_official_docker({"DAEMON_URL": "http://localhost:9308"}) == "no"

    def test_variable_missing(self):
        assert environment.is_official_docker({}) == "no"

    def test_reads_process_environment(self):
        with patch.dict("os.environ", {"DAEMON_URL": "manticore"}):
            assert environment.is_official_docker() == "yes"


class TestDefaultLabels:
    """Test the full set of host labels"""

    def test_default_labels(self):
        with patch("telemetry.environment.get_os_name", return_value="Linux"), \
                patch("telemetry.environment.get_os_release", return_value=("ubuntu", "22.04")), \
                patch("telemetry.environment.get_machine_type", return_value="x86_64"), \
                patch("telemetry.environment.is_dockerized", return_value="yes"), \
                patch("telemetry.environment.is_official_docker", return_value="no"):
            labels = environment.default_labels(FakeProbe("abc"))

        assert list(labels) == [
            "os_name",
            "os_release_name",
            "os_release_version",
            "machine_type",
            "machine_id",
            "dockerized",
            "official_docker",
            "arch",
        ]
        assert labels["os_name"] == "Linux"
        assert labels["os_release_name"] == "ubuntu"
        assert labels["os_release_version"] == "22.04"
        assert labels["machine_type"] == "x86_64"
        assert labels["machine_id"] == hashlib.sha256(b"manticore:abc").hexdigest()
        assert labels["dockerized"] == "yes"
        assert labels["official_docker"] == "no"
        assert labels["arch"] == "amd"
