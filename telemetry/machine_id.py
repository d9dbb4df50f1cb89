"""
Platform specific strategies for reading a raw machine identifier.

Each probe returns the raw identifier or an empty string. Probes never raise:
missing files, missing binaries and failing commands all end up as "".
"""
import logging
import os
import socket
import subprocess
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Type

from . import config

logger = logging.getLogger(__name__)


def run_command(args: List[str], timeout: Optional[float] = None) -> str:
    """
    Run a command and return its stripped stdout.

    Args:
        args (list): Command and arguments
        timeout (float, optional): Seconds to wait. Defaults to config.PROBE_TIMEOUT.

    Returns:
        str: Command output, or "" if the command failed or could not be run
    """
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout or config.PROBE_TIMEOUT
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Command %s failed: %s", args[0], e)
        return ''

    if result.returncode != 0:
        logger.debug("Command %s exited with code %s", args[0], result.returncode)
        return ''
    return result.stdout.strip()


class MachineIdProbe(ABC):
    """
    Abstract base class for machine identifier probes.

    Subclasses implement probe() for one operating system family.
    """

    @abstractmethod
    def probe(self) -> str:
        """
        Read the raw machine identifier.

        Returns:
            str: The identifier, or "" when it cannot be determined
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__


class NullProbe(MachineIdProbe):
    """Probe for platforms we do not know how to identify."""

    def probe(self) -> str:
        return ''


class DarwinProbe(MachineIdProbe):
    """Platform serial number reported by the I/O registry."""

    def probe(self) -> str:
        output = run_command(['ioreg', '-rd1', '-c', 'IOPlatformExpertDevice'])
        for line in output.splitlines():
            if 'IOPlatformSerialNumber' not in line:
                continue
            # "IOPlatformSerialNumber" = "C02XXXXXXXXX", the third field keeps its quotes
            fields = line.split()
            if len(fields) >= 3:
                return fields[2]
        return ''


class LinuxProbe(MachineIdProbe):
    """D-Bus or systemd machine-id, then the hostname."""

    def __init__(self, paths: Iterable[str] = config.MACHINE_ID_FILES):
        self.paths = tuple(paths)

    def probe(self) -> str:
        for path in self.paths:
            try:
                with open(path, 'r') as f:
                    first_line = f.readline().strip()
            except (IOError, UnicodeDecodeError):
                continue
            if first_line:
                return first_line

        try:
            return socket.gethostname().strip()
        except OSError as e:
            logger.debug("Failed to read hostname: %s", e)
            return ''


class BsdProbe(MachineIdProbe):
    """SMBIOS system UUID, falling back to the kernel host UUID."""

    def probe(self) -> str:
        return (
            run_command(['kenv', '-q', 'smbios.system.uuid'])
            or run_command(['sysctl', '-n', 'kern.hostuuid'])
        )


class WindowsProbe(MachineIdProbe):
    """MachineGuid stored in the registry."""

    def probe(self) -> str:
        reg = os.path.join(os.environ.get('windir', r'C:\Windows'), 'System32', 'REG.exe')
        output = run_command([
            reg, 'QUERY',
            r'HKEY_LOCAL_MACHINE\SOFTWARE\Microsoft\Cryptography',
            '/v', 'MachineGuid'
        ])
        for line in output.splitlines():
            fields = line.split()
            # MachineGuid    REG_SZ    xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx
            if len(fields) >= 3 and fields[0] == 'MachineGuid':
                return fields[-1]
        return ''


_PROBES: Dict[str, Type[MachineIdProbe]] = {
    'Darwin': DarwinProbe,
    'Linux': LinuxProbe,
    'Unix': LinuxProbe,
    'FreeBSD': BsdProbe,
    'NetBSD': BsdProbe,
    'OpenBSD': BsdProbe,
    'Windows': WindowsProbe,
    'WINNT': WindowsProbe,
    'WIN32': WindowsProbe,
}


def select_probe(os_name: str) -> MachineIdProbe:
    """
    Pick the machine-id strategy for an operating system family.

    Args:
        os_name (str): Name as reported by platform.system()

    Returns:
        MachineIdProbe: Matching probe, NullProbe for unknown systems
    """
    probe_class = _PROBES.get(os_name, NullProbe)
    return probe_class()
