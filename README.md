# iisadmin

Manage websites in Internet Information Services (IIS) from Python. The
package writes small PowerShell scripts that use the `WebAdministration`
module. It runs them with `powershell.exe` and parses the output into Python
objects.

It needs a Windows host with IIS and the IIS PowerShell module installed.

## Installation

```
pip install .
```

## Websites

`iisadmin.websites.WebsitesClient` has one method for each operation. By
default it runs scripts through a `PowerShellRunner`.

```python
from iisadmin.websites import AuthenticationMode, WebsitesClient

sites = WebsitesClient()

sites.create("my-site", "my-pool", r"C:\inetpub\wwwroot")
sites.exists("my-site")              # True / False
site = sites.get("my-site")          # Website
print(site.name, site.application_pool, site.physical_path, site.state,
      site.starts_on_boot, site.max_bandwidth_per_second_in_bytes)
sites.list()                         # names of every website

sites.set_app_setting("my-site", "SomeAppSetting", "SomeValue")
sites.get_app_setting("my-site", "SomeAppSetting")   # "SomeValue"

sites.set_authentication_mode("my-site", AuthenticationMode.FORMS)
sites.get_authentication_mode("my-site")

sites.add_binding("my-site", "*", "example.com", 80)
for binding in sites.get_bindings("my-site"):
    print(binding.ip_address, binding.port, binding.domain_name, binding.protocol)
sites.remove_binding("my-site", "*", "example.com", 80)

sites.set_log_directory("my-site", r"C:\inetpub")
sites.get_log_directory("my-site")

sites.set_network_limits("my-site", 2048)  # bytes per second
sites.reset_network_limits("my-site")      # back to 4294967295

sites.stop("my-site")
sites.start("my-site")
sites.delete("my-site")
```

Some details of the results:

- `get_authentication_mode` returns an `AuthenticationMode` member: `NONE`,
  `FEDERATED`, `FORMS`, `PASSPORT` or `WINDOWS`. It returns `NONE` when no
  mode is set. It returns the raw string for any value outside those five.
- `get` raises `IISError` when there is no website with the given name.
- `get_app_setting` returns an empty string when the setting is not present.
- `get` and `get_log_directory` collapse the doubled backslashes in paths
  that PowerShell prints.
- `set_network_limits` raises `ValueError` for values outside 1024 to
  4294967295, before any script runs.

Any other failure raises `iisadmin.runner.IISError`. Failures include a
script that cannot be started, one that exits with a non-zero status, output
that cannot be parsed, and error text on standard error for the operations
that check it.

## Running PowerShell

`iisadmin.runner.PowerShellRunner(executable="powershell.exe", directory=None)`
works in three steps:

1. It writes each script to a file named `command-<random number>.ps1`, in
   `directory` or, if that is not set, in the current working directory.
2. It runs the file with
   `-ExecutionPolicy Bypass -NoLogo -NonInteractive -NoProfile -File`.
3. It deletes the file afterwards.

`run(commands)` returns a `CommandResult` with `stdout` and `stderr` as
strings.

`WebsitesClient(runner)` accepts any object whose `run(commands)` method
returns a `CommandResult`. You can use this to record scripts or to feed back
canned output:

```python
from iisadmin.runner import CommandResult
from iisadmin.websites import WebsitesClient

class CannedRunner:
    def __init__(self, stdout):
        self.stdout = stdout
        self.scripts = []

    def run(self, commands):
        self.scripts.append(commands)
        return CommandResult(stdout=self.stdout, stderr="")

WebsitesClient(CannedRunner('["Default Web Site"]')).exists("Default Web Site")  # True
```

## Helpers

`iisadmin.helpers` provides two functions:

- `fix_powershell_path(value)` replaces doubled backslashes with single ones
  and trims whitespace.
- `random_int()` returns a random non-negative 63-bit integer. The runner
  uses it to name script files.

## What this package does not do

- It does not manage application pools. It cannot create, start, stop,
  configure or delete them. `WebsitesClient.create` needs an application pool
  that already exists.
- It does not check at start-up that PowerShell and the `WebAdministration`
  module are available. The first failing operation raises `IISError`.
- It provides no command-line program. It is used only as a library.

## Running the tests

```
pip install .[test]
pytest
```