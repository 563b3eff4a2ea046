"""Shared test fixtures."""
import pytest

from metalhost.core.host import BMCDetails, Host, HostSpec, Image
from metalhost.core.resolver import InMemoryResolver

CLEAN_STEPS_YAML = """
- interface: raid
  step: delete_configuration
- interface: deploy
  step: erase_devices_metadata
  args:
    force: true
"""


@pytest.fixture
def host():
    """Create a bare host with no spec or status."""
    return Host(name="myhost", namespace="myns")


@pytest.fixture
def managed_host():
    """Create a host with BMC details and a desired image."""
    return Host(
        name="myhost",
        namespace="myns",
        spec=HostSpec(
            bmc=BMCDetails(address="ipmi://192.168.122.1:6233", credentials_name="myhost-bmc"),
            image=Image(url="http://images.local/ubuntu.qcow2", checksum="abc123"),
            online=True,
        ),
    )


@pytest.fixture
def resolver():
    """Create an in-memory resolver holding the managed host's secret."""
    r = InMemoryResolver()
    r.add_secret("myns", "myhost-bmc", {"username": "admin", "password": "s3cret"})
    r.add_config_source("myns", "clean-steps", {"steps": CLEAN_STEPS_YAML})
    return r
