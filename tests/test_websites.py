import json

import pytest

from iisadmin.runner import CommandResult, IISError
from iisadmin.websites import AuthenticationMode, Binding, Website, WebsitesClient

DEFAULT_LOG_PATH = "%SystemDrive%\\inetpub\\logs\\LogFiles"
DEFAULT_NETWORK_LIMIT = 4294967295
DEFAULT_WEBSITE_PATH = "C:\\inetpub\\wwwroot"


class FakeRunner:
    def __init__(self, *results):
        self.results = list(results)
        self.scripts = []

    def run(self, commands):
        self.scripts.append(commands)
        result = self.results.pop(0) if self.results else CommandResult("", "")
        if isinstance(result, Exception):
            raise result
        return result


def ok(stdout=""):
    return CommandResult(stdout=stdout, stderr="")


def failed(stderr):
    return CommandResult(stdout="", stderr=stderr)


def client_with(*results):
    runner = FakeRunner(*results)
    return WebsitesClient(runner), runner


def test_exists_true_when_name_listed():
    client, runner = client_with(ok('["Default Web Site", "acctestsite-1"]\n'))
    assert client.exists("acctestsite-1") is True
    assert "IIS:\\Sites" in runner.scripts[0]


def test_exists_false_when_not_listed():
    client, _ = client_with(ok("[]"))
    assert client.exists("doesntexist1") is False


def test_exists_stderr_raises():
    client, _ = client_with(failed("boom"))
    with pytest.raises(IISError, match="Error retrieving Website: boom"):
        client.exists("x")


def test_exists_invalid_json_raises():
    client, _ = client_with(ok("not json"))
    with pytest.raises(IISError, match="Error parsing Websites"):
        client.exists("x")


def test_get_parses_website():
    payload = json.dumps(
        {
            "name": "acctestsite-1",
            "applicationPool": "acctestpool-1",
            "physicalPath": "C:\\\\inetpub\\\\wwwroot",
            "state": "Started",
            "serverAutoStart": False,
            "limits": {"maxBandwidth": DEFAULT_NETWORK_LIMIT},
        }
    )
    client, runner = client_with(ok(payload))
    site = client.get("acctestsite-1")
    assert site == Website(
        name="acctestsite-1",
        application_pool="acctestpool-1",
        physical_path=DEFAULT_WEBSITE_PATH,
        state="Started",
        starts_on_boot=False,
        max_bandwidth_per_second_in_bytes=DEFAULT_NETWORK_LIMIT,
    )
    assert 'Get-Website -Name "acctestsite-1"' in runner.scripts[0]


def test_get_updated_bandwidth():
    payload = json.dumps({"name": "s", "limits": {"maxBandwidth": 2048}})
    client, _ = client_with(ok(payload))
    assert client.get("s").max_bandwidth_per_second_in_bytes == 2048


def test_get_missing_site_raises():
    client, _ = client_with(ok(""))
    with pytest.raises(IISError, match="was not found"):
        client.get("missing")


def test_get_bad_json_raises():
    client, _ = client_with(ok("{"))
    with pytest.raises(IISError, match="Error unmarshalling Website"):
        client.get("s")


@pytest.mark.parametrize("value", ["first", "second", "third"])
def test_get_app_setting_returns_value(value):
    client, runner = client_with(ok(json.dumps({"Value": f"  {value} "})))
    assert client.get_app_setting("site", "example-setting") == value
    assert "add[@key='example-setting']" in runner.scripts[0]


def test_get_app_setting_empty_output():
    client, _ = client_with(ok(""))
    assert client.get_app_setting("site", "missing") == ""


def test_set_app_setting_script_quotes_values():
    client, runner = client_with(ok())
    client.set_app_setting("site", "SomeAppSetting", "SomeValue")
    script = runner.scripts[0]
    assert '$key="SomeAppSetting"' in script
    assert '$value="SomeValue"' in script
    assert "@{key=$key;value=$value}" in script
    assert 'IIS:\\Sites\\site' in script


def test_get_authentication_mode_empty_is_none():
    client, _ = client_with(ok(json.dumps({"Value": ""})))
    assert client.get_authentication_mode("site") is AuthenticationMode.NONE


@pytest.mark.parametrize("mode", list(AuthenticationMode))
def test_authentication_mode_round_trip(mode):
    client, runner = client_with(ok(), ok(json.dumps({"Value": mode.value})))
    client.set_authentication_mode("site", mode)
    assert f'-value "{mode.value}"' in runner.scripts[0]
    assert client.get_authentication_mode("site") == mode


def test_set_authentication_mode_stderr_raises():
    client, _ = client_with(failed("  denied \n"))
    with pytest.raises(IISError, match="denied"):
        client.set_authentication_mode("site", AuthenticationMode.FORMS)


def test_add_binding_script_and_error():
    client, runner = client_with(ok(), failed("exists"))
    client.add_binding("site", "*", "example.com", 80)
    assert 'New-WebBinding -Name "site" -IPAddress "*" -HostHeader "example.com" -Port 80' in (
        runner.scripts[0]
    )
    with pytest.raises(IISError, match="example.com"):
        client.add_binding("site", "*", "example.com", 80)


def test_remove_binding_script():
    client, runner = client_with(ok())
    client.remove_binding("site", "*", "example.com", 8080)
    assert "Remove-WebBinding" in runner.scripts[0]
    assert "-Port 8080" in runner.scripts[0]


def test_get_bindings_parses_information():
    payload = json.dumps(
        [
            {"bindingInformation": "*:80:example.com", "protocol": "http"},
            {"bindingInformation": "10.0.0.1:443:", "protocol": "https"},
        ]
    )
    client, _ = client_with(ok(payload))
    assert client.get_bindings("site") == [
        Binding(ip_address="*", port=80, domain_name="example.com", protocol="http"),
        Binding(ip_address="10.0.0.1", port=443, domain_name="", protocol="https"),
    ]


def test_get_bindings_empty_output():
    client, _ = client_with(ok(""))
    assert client.get_bindings("site") == []


def test_get_bindings_bad_port_raises():
    payload = json.dumps([{"bindingInformation": "*:http:example.com", "protocol": "http"}])
    client, _ = client_with(ok(payload))
    with pytest.raises(IISError, match="to an int"):
        client.get_bindings("site")


def test_get_bindings_malformed_information_raises():
    payload = json.dumps([{"bindingInformation": "*", "protocol": "http"}])
    client, _ = client_with(ok(payload))
    with pytest.raises(IISError):
        client.get_bindings("site")


def test_get_bindings_list_of_strings_raises():
    client, _ = client_with(ok('["http *:80:"]'))
    with pytest.raises(IISError, match="Error unmarshalling Bindings"):
        client.get_bindings("site")


def test_create_script_and_error():
    client, runner = client_with(ok(), failed("bad pool"))
    client.create("site", "pool", DEFAULT_WEBSITE_PATH)
    script = runner.scripts[0]
    assert '[IO.Path]::GetFullPath("C:\\\\inetpub\\\\wwwroot")' in script
    assert 'New-Website -Name "site" -ApplicationPool "pool"' in script
    with pytest.raises(IISError, match="bad pool"):
        client.create("site", "pool", DEFAULT_WEBSITE_PATH)


@pytest.mark.parametrize(
    "method, command",
    [("delete", "Remove-Website"), ("start", "Start-Website"), ("stop", "Stop-Website")],
)
def test_simple_commands(method, command):
    client, runner = client_with(ok(), failed("oops"))
    getattr(client, method)("site")
    assert f'{command} -Name "site"' in runner.scripts[0]
    with pytest.raises(IISError, match="oops"):
        getattr(client, method)("site")


def test_list_multiple_sites():
    client, _ = client_with(ok(json.dumps([{"name": "a"}, {"name": "b"}])))
    assert client.list() == ["a", "b"]


def test_list_single_site_object():
    client, _ = client_with(ok(json.dumps({"name": "Default Web Site"})))
    assert client.list() == ["Default Web Site"]


def test_list_empty_output():
    client, _ = client_with(ok(""))
    assert client.list() == []


def test_list_invalid_raises():
    client, _ = client_with(ok("[1, 2]"))
    with pytest.raises(IISError, match="Error unmarshalling Websites"):
        client.list()


def test_get_log_directory_default_path():
    payload = json.dumps({"directory": "%SystemDrive%\\\\inetpub\\\\logs\\\\LogFiles"})
    client, _ = client_with(ok(payload))
    assert client.get_log_directory("site") == DEFAULT_LOG_PATH


def test_set_then_get_log_directory():
    client, runner = client_with(ok(), ok(json.dumps({"directory": "C:\\inetpub"})))
    client.set_log_directory("site", "C:\\inetpub")
    assert '@{directory="C:\\\\inetpub"}' in runner.scripts[0]
    assert client.get_log_directory("site") == "C:\\inetpub"


@pytest.mark.parametrize("value", [0, 1023, 4294967296])
def test_set_network_limits_out_of_range(value):
    client, runner = client_with()
    with pytest.raises(ValueError, match="maxBandwidth must be between"):
        client.set_network_limits("site", value)
    assert runner.scripts == []


def test_set_network_limits_script():
    client, runner = client_with(ok())
    client.set_network_limits("site", 2048)
    assert "site[@name=\"site\"]" in runner.scripts[0]
    assert "-Value 2048 -Force" in runner.scripts[0]


def test_reset_network_limits_uses_default():
    client, runner = client_with(ok())
    client.reset_network_limits("site")
    assert f"-Value {DEFAULT_NETWORK_LIMIT} -Force" in runner.scripts[0]


def test_runner_failure_is_wrapped():
    client, _ = client_with(IISError("Error waiting: exit status 1"))
    with pytest.raises(IISError, match="Error retrieving Website: Error waiting"):
        client.get("site")