"""Tests for BMC credential and config-step resolution."""
import pytest

from metalhost.config.settings import ResolverSettings
from metalhost.core.errors import HostResolutionError, ResolutionErrorKind
from metalhost.core.host import BMCDetails, Host, HostSpec
from metalhost.core.resolver import InMemoryResolver, validate_bmc_details


class TestValidateBMCDetails:
    """Test validate_bmc_details."""

    def test_no_bmc(self, host):
        """Host without BMC descriptor has an empty address."""
        with pytest.raises(HostResolutionError) as exc_info:
            validate_bmc_details(host)
        assert exc_info.value.kind is ResolutionErrorKind.EMPTY_BMC_ADDRESS
        assert "myns/myhost" in str(exc_info.value)

    def test_empty_address(self):
        """Empty address is reported before the secret."""
        host = Host(name="h", spec=HostSpec(bmc=BMCDetails()))
        with pytest.raises(HostResolutionError) as exc_info:
            validate_bmc_details(host)
        assert exc_info.value.kind is ResolutionErrorKind.EMPTY_BMC_ADDRESS

    def test_empty_secret(self):
        """Address without credentials reference is an empty secret."""
        host = Host(name="h", spec=HostSpec(bmc=BMCDetails(address="ipmi://10.0.0.1")))
        with pytest.raises(HostResolutionError) as exc_info:
            validate_bmc_details(host)
        assert exc_info.value.kind is ResolutionErrorKind.EMPTY_BMC_SECRET

    def test_valid(self, managed_host):
        """Complete descriptor passes."""
        validate_bmc_details(managed_host)


class TestResolveBMCCredentials:
    """Test InMemoryResolver.resolve_bmc_credentials."""

    def test_resolves_credentials(self, resolver, managed_host):
        """Credentials are read from the referenced secret."""
        creds = resolver.resolve_bmc_credentials(managed_host)

        assert creds.username == "admin"
        assert creds.password == "s3cret"
        assert creds.secret_name == "myhost-bmc"
        assert creds.version == "1"
        assert creds.is_valid is True

    def test_missing_secret(self, managed_host):
        """Missing secret raises RESOLVE_BMC_SECRET_REF."""
        with pytest.raises(HostResolutionError) as exc_info:
            InMemoryResolver().resolve_bmc_credentials(managed_host)
        assert exc_info.value.kind is ResolutionErrorKind.RESOLVE_BMC_SECRET_REF
        assert "myns/myhost" in str(exc_info.value)

    def test_secret_in_other_namespace_not_found(self, managed_host):
        """Secrets resolve only in the host's namespace."""
        resolver = InMemoryResolver()
        resolver.add_secret("other", "myhost-bmc", {"username": "u", "password": "p"})
        with pytest.raises(HostResolutionError):
            resolver.resolve_bmc_credentials(managed_host)

    def test_default_keys_from_package_settings(self, monkeypatch, managed_host):
        """Resolver defaults to the package settings, environment included."""
        from metalhost.config.settings import Settings

        monkeypatch.setenv("METALHOST_RESOLVER__USERNAME_KEY", "user")
        monkeypatch.setenv("USERNAME_KEY", "leaked")
        monkeypatch.setattr("metalhost.config.settings", Settings())

        resolver = InMemoryResolver()
        resolver.add_secret("myns", "myhost-bmc", {"user": "root", "password": "calvin"})

        assert resolver.settings.username_key == "user"
        assert resolver.resolve_bmc_credentials(managed_host).username == "root"

    def test_custom_keys(self, managed_host):
        """Secret data keys come from settings."""
        resolver = InMemoryResolver(settings=ResolverSettings(username_key="user", password_key="pass"))
        resolver.add_secret("myns", "myhost-bmc", {"user": "root", "pass": "calvin"})

        creds = resolver.resolve_bmc_credentials(managed_host)

        assert creds.username == "root"
        assert creds.password == "calvin"


class TestSaveSecretOwner:
    """Test InMemoryResolver.save_secret_owner."""

    def test_claims_secret(self, resolver, managed_host):
        """Owner is recorded on first save."""
        resolver.save_secret_owner(managed_host, "myhost-bmc")
        assert resolver.secrets[("myns", "myhost-bmc")].owner == "myns/myhost"

    def test_same_owner_is_noop(self, resolver, managed_host):
        """Saving the same owner twice succeeds."""
        resolver.save_secret_owner(managed_host, "myhost-bmc")
        resolver.save_secret_owner(managed_host, "myhost-bmc")
        assert resolver.secrets[("myns", "myhost-bmc")].owner == "myns/myhost"

    def test_owned_by_other_host(self, resolver, managed_host):
        """Secret owned by another host cannot be claimed."""
        resolver.secrets[("myns", "myhost-bmc")].owner = "myns/otherhost"

        with pytest.raises(HostResolutionError) as exc_info:
            resolver.save_secret_owner(managed_host, "myhost-bmc")

        assert exc_info.value.kind is ResolutionErrorKind.SAVE_BMC_SECRET_OWNER
        assert "otherhost" in str(exc_info.value)

    def test_missing_secret(self, managed_host):
        """Missing secret cannot be owned."""
        with pytest.raises(HostResolutionError) as exc_info:
            InMemoryResolver().save_secret_owner(managed_host, "myhost-bmc")
        assert exc_info.value.kind is ResolutionErrorKind.SAVE_BMC_SECRET_OWNER


class TestResolveConfigSteps:
    """Test InMemoryResolver.resolve_config_steps."""

    def test_no_source_configured(self, resolver, managed_host):
        """Host naming no source has no steps."""
        assert resolver.resolve_config_steps(managed_host) == []

    def test_parses_steps(self, resolver, managed_host):
        """Steps are parsed from YAML in order."""
        managed_host.spec.config_steps_name = "clean-steps"

        steps = resolver.resolve_config_steps(managed_host)

        assert [(s.interface, s.step) for s in steps] == [
            ("raid", "delete_configuration"),
            ("deploy", "erase_devices_metadata"),
        ]
        assert steps[1].args == {"force": True}

    def test_missing_source(self, resolver, managed_host):
        """Missing source raises RESOLVE_CONFIG_STEPS_REF."""
        managed_host.spec.config_steps_name = "nonexistent"

        with pytest.raises(HostResolutionError) as exc_info:
            resolver.resolve_config_steps(managed_host)

        assert exc_info.value.kind is ResolutionErrorKind.RESOLVE_CONFIG_STEPS_REF

    def test_missing_key(self, resolver, managed_host):
        """Source without the steps key is unresolvable."""
        resolver.add_config_source("myns", "empty", {"other": "[]"})
        managed_host.spec.config_steps_name = "empty"

        with pytest.raises(HostResolutionError) as exc_info:
            resolver.resolve_config_steps(managed_host)

        assert "steps" in str(exc_info.value)

    def test_empty_document(self, resolver, managed_host):
        """Empty steps document yields no steps."""
        resolver.add_config_source("myns", "none", {"steps": ""})
        managed_host.spec.config_steps_name = "none"

        assert resolver.resolve_config_steps(managed_host) == []

    @pytest.mark.parametrize("content", [
        "interface: raid",
        "- interface: raid",
        "- [unterminated",
    ])
    def test_invalid_steps(self, resolver, managed_host, content):
        """Malformed steps raise RESOLVE_CONFIG_STEPS_REF."""
        resolver.add_config_source("myns", "bad", {"steps": content})
        managed_host.spec.config_steps_name = "bad"

        with pytest.raises(HostResolutionError) as exc_info:
            resolver.resolve_config_steps(managed_host)

        assert exc_info.value.kind is ResolutionErrorKind.RESOLVE_CONFIG_STEPS_REF
        assert "invalid steps" in str(exc_info.value)
