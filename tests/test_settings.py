"""Tests for configuration loading."""
import json

import pytest

from config.constants import GATEKEEPER
from config.exceptions import ConfigurationError
from storage.settings import AppConfig, load_config, parse_host_port, save_config


class TestAppConfig:
    """Tests for the AppConfig dataclass."""

    def test_default_values(self):
        config = AppConfig()
        assert config.subnet == ""
        assert config.upstream_dns == "1.1.1.1:53"
        assert config.dns_port == "53"
        assert config.resolver_mode == "udp"
        assert config.devices_file == "devices.json"
        assert config.log_file == "homenet.log"
        assert config.block_list == list(GATEKEEPER.DEFAULT_BLOCK_LIST)

    def test_default_block_lists_are_independent(self):
        first = AppConfig()
        first.block_list.append("extra.test.")
        assert "extra.test." not in AppConfig().block_list

    def test_round_trip(self):
        config = AppConfig(subnet="10.0.0", resolver_mode="doh", block_list=["a.test."])
        assert AppConfig.from_dict(config.to_dict()) == config

    def test_empty_fields_fall_back_to_defaults(self):
        config = AppConfig.from_dict({"upstream_dns": "", "dns_port": "", "log_file": ""})
        assert config.upstream_dns == "1.1.1.1:53"
        assert config.dns_port == "53"
        assert config.log_file == "homenet.log"

    def test_numeric_port_accepted(self):
        assert AppConfig.from_dict({"dns_port": 5353}).port == 5353

    def test_explicit_empty_block_list_kept(self):
        assert AppConfig.from_dict({"block_list": []}).block_list == []

    def test_mode_is_lowercased(self):
        assert AppConfig.from_dict({"resolver_mode": "DoH"}).resolver_mode == "doh"

    def test_upstream_address(self):
        assert AppConfig(upstream_dns="9.9.9.9:5353").upstream_address == ("9.9.9.9", 5353)
        assert AppConfig(upstream_dns="9.9.9.9").upstream_address == ("9.9.9.9", 53)


class TestValidate:
    """Tests for configuration validation."""

    def test_defaults_are_valid(self):
        AppConfig().validate()

    def test_unknown_mode(self):
        with pytest.raises(ConfigurationError):
            AppConfig(resolver_mode="dot").validate()

    def test_doh_requires_https(self):
        with pytest.raises(ConfigurationError):
            AppConfig(resolver_mode="doh", doh_url="http://plain.test/dns-query").validate()

    def test_bad_port(self):
        with pytest.raises(ConfigurationError):
            AppConfig(dns_port="dns").validate()
        with pytest.raises(ConfigurationError):
            AppConfig(dns_port="70000").validate()

    def test_bad_interval(self):
        with pytest.raises(ConfigurationError):
            AppConfig(scan_interval=0).validate()


class TestParseHostPort:
    """Tests for upstream address parsing."""

    def test_host_and_port(self):
        assert parse_host_port("1.1.1.1:53", 53) == ("1.1.1.1", 53)

    def test_bare_host(self):
        assert parse_host_port("dns.test", 53) == ("dns.test", 53)

    def test_bracketed_ipv6(self):
        assert parse_host_port("[2606:4700::1111]:853", 53) == ("2606:4700::1111", 853)

    def test_bare_ipv6(self):
        assert parse_host_port("2606:4700::1111", 53) == ("2606:4700::1111", 53)

    def test_bad_port(self):
        with pytest.raises(ConfigurationError):
            parse_host_port("1.1.1.1:abc", 53)

    def test_missing_host(self):
        with pytest.raises(ConfigurationError):
            parse_host_port(":53", 53)


class TestLoadConfig:
    """Tests for reading and writing the configuration file."""

    def test_missing_file_created_with_defaults(self, config_path):
        config = load_config(config_path)
        assert config == AppConfig()
        assert json.loads(config_path.read_text())["upstream_dns"] == "1.1.1.1:53"

    def test_existing_file(self, config_path):
        config_path.write_text(json.dumps({"subnet": "10.0.0", "dns_port": "5353"}))
        config = load_config(config_path)
        assert config.subnet == "10.0.0"
        assert config.port == 5353
        assert config.resolver_mode == "udp"

    def test_invalid_json(self, config_path):
        config_path.write_text("{broken")
        with pytest.raises(ConfigurationError):
            load_config(config_path)

    def test_not_an_object(self, config_path):
        config_path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError):
            load_config(config_path)

    def test_save_creates_parent(self, temp_data_dir):
        path = temp_data_dir / "nested" / "config.json"
        save_config(AppConfig(subnet="172.16.4"), path)
        assert load_config(path).subnet == "172.16.4"
