"""Managing IIS Websites."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from iisadmin.helpers import fix_powershell_path
from iisadmin.runner import CommandResult, IISError, PowerShellRunner

MIN_BANDWIDTH = 1024
MAX_BANDWIDTH = 4294967295

_INTEGER = re.compile(r"[+-]?[0-9]+")

_EXISTS_SCRIPT = r"""
Import-Module WebAdministration
$appPools = Get-Item IIS:\Sites
$appPoolNames = $appPools.Children.Keys
if ($appPoolNames.Count -eq 0) {
    Write-Host "[]"
} else {
    if ($appPoolNames.Count -gt 1) {
        $v = $appPoolNames | ConvertTo-Json
        Write-Host $v
    } else {
       $v = "[""{0}""]" -f $appPoolNames[0].ToString()
        Write-Host $v
    }
}
"""

_LIST_SCRIPT = """
Import-Module WebAdministration
Get-Website | select name | ConvertTo-Json -Compress
"""


class AuthenticationMode(str, Enum):
    """ASP.NET authentication mode of a Website."""

    NONE = "None"
    FEDERATED = "Federated"
    FORMS = "Forms"
    PASSPORT = "Passport"
    WINDOWS = "Windows"


@dataclass(frozen=True)
class Website:
    """A Website within IIS."""

    name: str
    application_pool: str
    physical_path: str
    state: str
    starts_on_boot: bool
    max_bandwidth_per_second_in_bytes: int


@dataclass(frozen=True)
class Binding:
    """A binding of a Website to an address, port and host name."""

    ip_address: str
    port: int
    domain_name: str
    protocol: str


def _quote(value: Any) -> str:
    return json.dumps(str(getattr(value, "value", value)), ensure_ascii=False)


def _field(obj: dict, key: str) -> Any:
    if key in obj:
        return obj[key]
    lowered = key.lower()
    for k, v in obj.items():
        if k.lower() == lowered:
            return v
    return None


def _string(obj: dict, key: str) -> str:
    value = _field(obj, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} is not a string: {value!r}")
    return value


def _bool(obj: dict, key: str) -> bool:
    value = _field(obj, key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"field {key!r} is not a boolean: {value!r}")
    return value


def _int(obj: dict, key: str) -> int:
    value = _field(obj, key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} is not an integer: {value!r}")
    return value


def _as_object(value: Any) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"expected an object, got {value!r}")
    return value


def _decode_object(text: str) -> dict:
    return _as_object(json.loads(text))


def _string_list(text: str) -> list[str]:
    decoded = json.loads(text)
    if decoded is None:
        return []
    if not isinstance(decoded, list) or not all(isinstance(v, str) for v in decoded):
        raise ValueError(f"expected a list of strings, got {decoded!r}")
    return decoded


def _site_names(decoded: Any) -> list[str]:
    if decoded is None:
        return []
    if isinstance(decoded, dict):
        entries = [decoded]
    elif isinstance(decoded, list) and all(isinstance(e, dict) for e in decoded):
        entries = decoded
    else:
        raise ValueError(f"expected a list of objects, got {decoded!r}")
    names = []
    for entry in entries:
        name = entry.get("name")
        if name is not None and not isinstance(name, str):
            raise ValueError(f"site name is not a string: {name!r}")
        names.append(name or "")
    return names


class WebsitesClient:
    """Creates, inspects and configures IIS Websites."""

    def __init__(self, runner: PowerShellRunner | None = None) -> None:
        self.runner = runner if runner is not None else PowerShellRunner()

    def _run(self, commands: str, failure: str) -> CommandResult:
        try:
            return self.runner.run(commands)
        except IISError as exc:
            raise IISError(f"{failure}: {exc}") from exc

    def _run_checked(self, commands: str, failure: str, detail: str) -> CommandResult:
        result = self._run(commands, failure)
        if result.stderr:
            raise IISError(f"{detail}: {result.stderr.strip()}")
        return result

    def get_app_setting(self, website_name: str, name: str) -> str:
        """Return the value of an appSetting of the Website."""
        commands = rf"""
Import-Module WebAdministration
$path = "IIS:\Sites\{website_name}"
$keyPath = "/appSettings/add[@key='{name}']"
Get-WebConfigurationProperty -pspath $path -filter $keyPath -name "value" | ConvertTo-Json
"""
        result = self._run(commands, "Error retrieving App Setting for Website")
        value = ""
        if result.stdout:
            try:
                value = _string(_decode_object(result.stdout), "Value")
            except ValueError as exc:
                raise IISError(
                    f"Error unmarshalling App Setting for Website {_quote(website_name)}: {exc}"
                ) from exc
        return value.strip()

    def set_app_setting(self, website_name: str, name: str, value: str) -> None:
        """Add or update an appSetting of the Website."""
        commands = rf"""
Import-Module WebAdministration
$path = "IIS:\Sites\{website_name}"
$key={_quote(name)}
$value={_quote(value)}
$keyPath = "/appSettings/add[@key='$key']"
$prop = Get-WebConfigurationProperty -pspath $path -filter $keyPath -name "value"
if ($prop -eq $null) {{
    Add-WebConfigurationProperty -pspath $path -filter "appSettings" -name "." -value @{{key=$key;value=$value}}
}} else {{
    Set-WebConfigurationProperty -pspath $path -filter $keyPath -name "value" -value $value
}}
  """
        self._run(commands, "Error setting App Setting for Website")

    def get_authentication_mode(self, website_name: str) -> AuthenticationMode | str:
        """Return the authentication mode configured for the Website."""
        commands = rf"""
Import-Module WebAdministration
$path = "IIS:\Sites\{website_name}"
Get-WebConfigurationProperty -pspath $path -filter "system.web/authentication" -name "mode" | ConvertTo-Json -Compress
"""
        result = self._run(commands, "Error retrieving Authentication Mode for Website")
        value = ""
        if result.stdout:
            try:
                value = _string(_decode_object(result.stdout), "Value")
            except ValueError as exc:
                raise IISError(
                    "Error unmarshalling Authentication Mode for Website "
                    f"{_quote(website_name)}: {exc}"
                ) from exc
        if not value:
            return AuthenticationMode.NONE
        try:
            return AuthenticationMode(value)
        except ValueError:
            return value

    def set_authentication_mode(
        self, website_name: str, mode: AuthenticationMode | str
    ) -> None:
        """Set the authentication mode of the Website."""
        commands = rf"""
Import-Module WebAdministration
$path = "IIS:\Sites\{website_name}"
Set-WebConfigurationProperty -pspath $path -filter "system.web/authentication" -name "mode" -value {_quote(mode)}
  """
        self._run_checked(
            commands,
            "Error setting Authentication Mode for Website",
            "Error setting Authentication Mode for Website",
        )

    def add_binding(
        self, website_name: str, ip_address: str, host_header: str, port: int
    ) -> None:
        """Add a binding to the Website."""
        commands = f"""
Import-Module WebAdministration
New-WebBinding -Name {_quote(website_name)} -IPAddress {_quote(ip_address)} -HostHeader {_quote(host_header)} -Port {int(port)}
  """
        failure = f"Error creating Binding {_quote(host_header)} for Website {_quote(website_name)}"
        self._run_checked(commands, failure, failure)

    def get_bindings(self, name: str) -> list[Binding]:
        """Return the bindings of the Website."""
        commands = f"""
Import-Module WebAdministration
$bindings = Get-WebBinding -name {_quote(name)}
if ($bindings.Count -gt 1) {{
    $v = $bindings | ConvertTo-Json -Compress
    Write-Host $v
}} else {{
    $v = "[""{{0}}""]" -f $bindings[0].ToString()
    Write-Host $v
}}
  """
        result = self._run(commands, f"Error retrieving Bindings for Website {_quote(name)}")
        entries: list[dict] = []
        if result.stdout:
            try:
                decoded = json.loads(result.stdout)
                if decoded is not None:
                    if not isinstance(decoded, list):
                        raise ValueError(f"expected a list, got {decoded!r}")
                    entries = [_as_object(item) for item in decoded]
                raw = [
                    (_string(e, "bindingInformation"), _string(e, "protocol"))
                    for e in entries
                ]
            except ValueError as exc:
                raise IISError(
                    f"Error unmarshalling Bindings for Website {_quote(name)}: {exc}"
                ) from exc
        else:
            raw = []

        bindings = []
        for information, protocol in raw:
            # ip:port:domain, e.g. "*:80:mysite.com"
            segments = information.split(":")
            if len(segments) < 3:
                raise IISError(f"Error parsing binding information {_quote(information)}")
            ip, port, domain = segments[0], segments[1], segments[2]
            if not _INTEGER.fullmatch(port):
                raise IISError(f"Error converting {_quote(port)} to an int")
            bindings.append(
                Binding(ip_address=ip, port=int(port), domain_name=domain, protocol=protocol)
            )
        return bindings

    def remove_binding(
        self, website_name: str, ip_address: str, host_header: str, port: int
    ) -> None:
        """Remove a binding from the Website."""
        commands = f"""
Import-Module WebAdministration
Remove-WebBinding -Name {_quote(website_name)} -IPAddress {_quote(ip_address)} -HostHeader {_quote(host_header)} -Port {int(port)}
  """
        failure = f"Error removing Binding {_quote(host_header)} for Website {_quote(website_name)}"
        self._run_checked(commands, failure, failure)

    def create(self, name: str, application_pool: str, physical_path: str) -> None:
        """Create a Website in the given Application Pool serving the given path."""
        # The path is normalised by PowerShell, otherwise appSettings and
        # authentication mode fail on mixed separators.
        commands = f"""
Import-Module WebAdministration
$path = [IO.Path]::GetFullPath({_quote(physical_path)})
New-Website -Name {_quote(name)} -ApplicationPool {_quote(application_pool)} -PhysicalPath $path
  """
        self._run_checked(
            commands, "Error creating Website", f"Error creating Website {_quote(name)}"
        )

    def delete(self, name: str) -> None:
        """Delete the Website."""
        commands = f"""
Import-Module WebAdministration
Remove-Website -Name {_quote(name)}
  """
        self._run_checked(
            commands, "Error deleting Website", f"Error deleting Website {_quote(name)}"
        )

    def exists(self, name: str) -> bool:
        """Return whether a Website with this name exists."""
        result = self._run(_EXISTS_SCRIPT, f"Error determining if Website {_quote(name)} exists")
        if result.stderr:
            raise IISError(f"Error retrieving Website: {result.stderr}")
        try:
            names = _string_list(result.stdout)
        except ValueError as exc:
            raise IISError(f"Error parsing Websites: {exc}") from exc
        return name in names

    def get(self, name: str) -> Website:
        """Retrieve the configuration of the Website."""
        commands = f"""
Import-Module WebAdministration
Get-Website -Name {_quote(name)} | ConvertTo-Json -Compress
  """
        result = self._run(commands, "Error retrieving Website")
        data: dict = {}
        if result.stdout:
            try:
                data = _decode_object(result.stdout)
                site = Website(
                    name=_string(data, "name"),
                    application_pool=_string(data, "applicationPool"),
                    physical_path=fix_powershell_path(_string(data, "physicalPath")),
                    state=_string(data, "state"),
                    starts_on_boot=_bool(data, "serverAutoStart"),
                    max_bandwidth_per_second_in_bytes=_int(
                        _as_object(_field(data, "limits")), "maxBandwidth"
                    ),
                )
            except ValueError as exc:
                raise IISError(f"Error unmarshalling Website {_quote(name)}: {exc}") from exc
            if site.name:
                return site
        raise IISError(f"Website {_quote(name)} was not found")

    def list(self) -> list[str]:
        """Return the names of all Websites."""
        result = self._run(_LIST_SCRIPT, "Error listing all Website")
        if not result.stdout:
            return []
        try:
            # A single site is emitted as a bare object rather than a list.
            return _site_names(json.loads(result.stdout))
        except ValueError as exc:
            raise IISError(f"Error unmarshalling Websites: {exc}") from exc

    def get_log_directory(self, name: str) -> str:
        """Return the log file directory of the Website."""
        commands = rf"""
Import-Module WebAdministration
Get-ItemProperty "IIS:\Sites\{name}" -name logFile | ConvertTo-Json -Compress
"""
        result = self._run(commands, "Error retrieving Log Directory for Website")
        directory = ""
        if result.stdout:
            try:
                directory = _string(_decode_object(result.stdout), "directory")
            except ValueError as exc:
                raise IISError(
                    f"Error unmarshalling Log Directory for Website {_quote(name)}: {exc}"
                ) from exc
        return fix_powershell_path(directory).strip()

    def set_log_directory(self, name: str, physical_path: str) -> None:
        """Set the log file directory of the Website."""
        commands = rf"""
Import-Module WebAdministration
Set-ItemProperty "IIS:\Sites\{name}" -name logFile -value @{{directory={_quote(physical_path)}}}
  """
        self._run_checked(
            commands,
            "Error setting Log Directory",
            f"Error setting Log Directory {_quote(name)}",
        )

    def reset_network_limits(self, name: str) -> None:
        """Restore the default (maximum) bandwidth limit of the Website."""
        self.set_network_limits(name, MAX_BANDWIDTH)

    def set_network_limits(self, name: str, max_bandwidth: int) -> None:
        """Limit the Website's bandwidth, in bytes per second."""
        if not MIN_BANDWIDTH <= max_bandwidth <= MAX_BANDWIDTH:
            raise ValueError(
                f"maxBandwidth must be between {MIN_BANDWIDTH} and {MAX_BANDWIDTH}"
                f" - got {max_bandwidth}"
            )
        commands = f"""
Import-Module WebAdministration
Set-WebConfigurationProperty '/system.applicationHost/sites/site[@name="{name}"]' -Name Limits.MaxBandwidth -Value {int(max_bandwidth)} -Force
  """
        self._run_checked(
            commands,
            "Error setting Network Limits for Website",
            f"Error setting Network Limits for Website {_quote(name)}",
        )

    def start(self, name: str) -> None:
        """Start the Website."""
        commands = f"""
Import-Module WebAdministration
Start-Website -Name {_quote(name)}
  """
        self._run_checked(
            commands, "Error starting Website", f"Error starting Website {_quote(name)}"
        )

    def stop(self, name: str) -> None:
        """Stop the Website."""
        commands = f"""
Import-Module WebAdministration
Stop-Website -Name {_quote(name)}
  """
        self._run_checked(
            commands, "Error stopping Website", f"Error stopping Website {_quote(name)}"
        )