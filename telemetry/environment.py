"""
Host fingerprint probes used to seed the default labels.

Every probe is independent and falls back to a fixed value instead of
raising, so a strange host never prevents the client from being built.
"""
import hashlib
import logging
import os
import platform
import re
from typing import Dict, Mapping, Optional, Tuple

from . import config
from .machine_id import MachineIdProbe, select_probe

logger = logging.getLogger(__name__)

UNKNOWN = 'unknown'

_INIT_RE = re.compile(r'^init|systemd$')


def get_os_name() -> str:
    return platform.system()


def get_machine_type() -> str:
    return platform.machine()


def parse_os_release(path: str = config.OS_RELEASE_FILE) -> Dict[str, str]:
    """
    Parse a key=value release descriptor such as /etc/os-release.

    Keys are lower-cased and surrounding double quotes are stripped from
    values. Lines without "=" are skipped.

    Args:
        path (str): File to read. Defaults to config.OS_RELEASE_FILE.

    Returns:
        dict: Parsed values, empty if the file is missing or unreadable
    """
    try:
        with open(path, 'r') as f:
            lines = f.read().splitlines()
    except (IOError, UnicodeDecodeError) as e:
        logger.debug("Cannot read %s: %s", path, e)
        return {}

    os_info = {}
    for line in lines:
        if '=' not in line:
            continue
        key, value = line.split('=', 1)
        os_info[key.lower()] = value.strip('"')
    return os_info


def get_os_release(path: str = config.OS_RELEASE_FILE) -> Tuple[str, str]:
    """
    Returns:
        tuple: (release name lower-cased, release version), "unknown" for missing keys
    """
    os_info = parse_os_release(path)
    name = os_info.get('name', UNKNOWN).lower() or UNKNOWN
    version = os_info.get('version', UNKNOWN) or UNKNOWN
    return name, version


def get_architecture(machine: Optional[str] = None) -> str:
    """Classify the machine type as "amd", "arm" or "unknown"."""
    if machine is None:
        machine = get_machine_type()
    machine = machine.lower()

    if any(marker in machine for marker in ('x86_64', 'amd64', 'x64')):
        return 'amd'
    if 'arm' in machine or 'aarch64' in machine:
        return 'arm'
    return UNKNOWN


def get_machine_id(os_name: str, probe: Optional[MachineIdProbe] = None) -> str:
    """
    Hashed machine identifier.

    The raw identifier is prefixed and hashed with SHA-256 so it never leaves
    the host in clear text.

    Args:
        os_name (str): Operating system family used to select the probe
        probe (MachineIdProbe, optional): Probe to use instead of the platform default

    Returns:
        str: Hex digest, or "unknown" if no identifier could be read
    """
    probe = probe or select_probe(os_name)
    try:
        machine_id = probe.probe()
    except Exception as e:
        logger.debug("Machine id probe %s failed: %s", probe.name, e)
        machine_id = ''

    if not machine_id:
        return UNKNOWN
    return hashlib.sha256(f"{config.MACHINE_ID_PREFIX}:{machine_id}".encode('utf-8')).hexdigest()


def is_dockerized(sched_path: str = config.PROC1_SCHED_FILE) -> str:
    """
    Check process 1 to tell whether we run inside a container.

    Returns:
        str: "unknown" when the sched file is missing (not linux) or unreadable,
        "no" when process 1 is init or systemd, "yes" otherwise
    """
    # If there is no such path, probably we are not on linux
    if not os.path.exists(sched_path):
        return UNKNOWN

    try:
        with open(sched_path, 'r') as f:
            first_line = f.readline()
    except (IOError, UnicodeDecodeError) as e:
        logger.debug("Cannot read %s: %s", sched_path, e)
        return UNKNOWN

    fields = first_line.split()
    command = fields[0] if fields else ''
    return 'no' if _INIT_RE.search(command) else 'yes'


def is_official_docker(environ: Optional[Mapping[str, str]] = None) -> str:
    """Detect if we are running inside the official docker image."""
    if environ is None:
        environ = os.environ
    daemon_url = environ.get(config.OFFICIAL_IMAGE_ENV, '') or ''
    return 'yes' if config.OFFICIAL_IMAGE_MARKER in daemon_url else 'no'


def default_labels(probe: Optional[MachineIdProbe] = None) -> Dict[str, str]:
    """
    Collect the host fingerprint as labels.

    Args:
        probe (MachineIdProbe, optional): Machine-id probe override

    Returns:
        dict: Default labels in the order they are applied
    """
    os_name = get_os_name()
    release_name, release_version = get_os_release()
    machine_type = get_machine_type()

    labels = {
        'os_name': os_name,
        'os_release_name': release_name,
        'os_release_version': release_version,
        'machine_type': machine_type,
        'machine_id': get_machine_id(os_name, probe),
        'dockerized': is_dockerized(),
        'official_docker': is_official_docker(),
        'arch': get_architecture(machine_type),
    }
    logger.debug("Default labels: %s", labels)
    return labels
